"""Unit tests for auth/sessions.py -- session lifecycle.

Covers:
- create -> resolve -> destroy
- absolute expiry: a session stops resolving at expires_at, and is not
  extended by being resolved
- destroy is idempotent
- resolve never raises for junk ids or vanished users
- purge_expired sweeps only expired records
"""

import pytest

from auth.models import Role, User
from auth.sessions import MemorySessionBackend, SessionManager
from auth.store import UserStore

TTL = 24 * 60 * 60


@pytest.fixture
def users():
    s = UserStore()
    yield s
    s.close()


@pytest.fixture
def backend():
    return MemorySessionBackend()


@pytest.fixture
def manager(backend, users, clock):
    return SessionManager(backend, users, ttl_seconds=TTL, clock=clock)


@pytest.fixture
def alice(users):
    return users.create_user(
        User(username="alice", email="alice@lrm2e.fr", role=Role.RESEARCHER, hashed_password="ab" * 64 + ".00")
    )


def test_created_session_resolves_to_user(manager, alice):
    sid = manager.create(alice.id)
    resolved = manager.resolve(sid)
    assert resolved is not None
    assert resolved.id == alice.id
    assert resolved.username == "alice"


def test_session_ids_are_unique_and_opaque(manager, alice):
    ids = {manager.create(alice.id) for _ in range(50)}
    assert len(ids) == 50
    for sid in ids:
        assert len(sid) >= 40
        assert str(alice.id) != sid


def test_destroyed_session_no_longer_resolves(manager, alice):
    sid = manager.create(alice.id)
    manager.destroy(sid)
    assert manager.resolve(sid) is None


def test_destroy_is_idempotent(manager, alice):
    sid = manager.create(alice.id)
    manager.destroy(sid)
    manager.destroy(sid)
    manager.destroy("never-issued")
    manager.destroy(None)
    manager.destroy("")


def test_destroy_only_affects_one_session(manager, alice):
    first = manager.create(alice.id)
    second = manager.create(alice.id)
    manager.destroy(first)
    assert manager.resolve(first) is None
    assert manager.resolve(second).id == alice.id


def test_session_resolves_until_expiry(manager, alice, clock):
    sid = manager.create(alice.id)
    clock.advance(TTL - 1)
    assert manager.resolve(sid) is not None
    clock.advance(1)
    assert manager.resolve(sid) is None


def test_expired_session_is_removed_on_access(manager, backend, alice, clock):
    sid = manager.create(alice.id)
    clock.advance(TTL + 10)
    assert manager.resolve(sid) is None
    assert backend.get(sid) is None


def test_activity_does_not_extend_lifetime(manager, alice, clock):
    sid = manager.create(alice.id)
    for _ in range(23):
        clock.advance(60 * 60)
        assert manager.resolve(sid) is not None
    clock.advance(60 * 60)
    assert manager.resolve(sid) is None


@pytest.mark.parametrize("junk", [None, "", "does-not-exist", 12345, {"sid": "x"}])
def test_resolve_junk_is_unauthenticated(manager, junk):
    assert manager.resolve(junk) is None


def test_session_for_vanished_user_is_unauthenticated(manager, backend):
    sid = manager.create(9999)
    assert manager.resolve(sid) is None
    assert backend.get(sid) is None


def test_purge_expired_removes_only_expired(manager, backend, alice, clock):
    old = manager.create(alice.id)
    clock.advance(TTL / 2)
    fresh = manager.create(alice.id)
    clock.advance(TTL / 2)
    assert manager.purge_expired() == 1
    assert backend.get(old) is None
    assert backend.get(fresh) is not None
    assert len(backend) == 1
