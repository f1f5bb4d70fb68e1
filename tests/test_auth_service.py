"""Unit tests for auth/service.py -- register, login, logout, current user.

Covers:
- registration forces role=researcher and returns a stripped user
- DuplicateUsername with exactly one record left
- concurrent registrations of the same username: exactly one wins
- login: one InvalidCredentials for unknown user and wrong password
- logout and current_user state transitions
- update_role: InvalidRole / UserNotFound
- seed_user skips existing accounts
"""

import threading

import pytest

from auth.errors import DuplicateUsername, InvalidCredentials, InvalidRole, Unauthenticated, UserNotFound
from auth.models import NewUser, Role


def _candidate(username: str = "bob", password: str = "secret1") -> NewUser:
    return NewUser(username=username, email=f"{username}@lrm2e.fr", password=password)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def test_register_creates_researcher_and_session(service):
    user, sid = service.register(_candidate())
    assert user.role is Role.RESEARCHER
    assert user.hashed_password is None
    assert service.current_user(sid).username == "bob"


def test_register_stores_hash_not_plaintext(service):
    service.register(_candidate(password="secret1"))
    stored = service.users.get_by_username("bob")
    assert stored.hashed_password
    assert stored.hashed_password != "secret1"
    assert "secret1" not in stored.hashed_password


def test_register_keeps_optional_profile_fields(service):
    candidate = NewUser(
        username="marie",
        email="marie@lrm2e.fr",
        password="secret1",
        full_name="Marie Curie",
        department="Materials Science",
    )
    user, _ = service.register(candidate)
    assert user.full_name == "Marie Curie"
    assert user.department == "Materials Science"
    assert user.position is None


def test_register_duplicate_username(service):
    service.register(_candidate("alice"))
    with pytest.raises(DuplicateUsername):
        service.register(_candidate("alice", password="different"))
    assert [u.username for u in service.list_users()].count("alice") == 1


def test_concurrent_registration_same_username_one_winner(service):
    results: list[str] = []
    barrier = threading.Barrier(2)

    def attempt():
        barrier.wait()
        try:
            service.register(_candidate("alice"))
            results.append("ok")
        except DuplicateUsername:
            results.append("duplicate")

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(results) == ["duplicate", "ok"]
    assert [u.username for u in service.list_users()] == ["alice"]


# ---------------------------------------------------------------------------
# Login / logout / current user
# ---------------------------------------------------------------------------


def test_login_success_returns_stripped_user(service):
    service.register(_candidate())
    user, sid = service.login("bob", "secret1")
    assert user.username == "bob"
    assert user.hashed_password is None
    assert service.current_user(sid).id == user.id


def test_login_wrong_password_and_unknown_user_are_indistinguishable(service):
    service.register(_candidate())
    with pytest.raises(InvalidCredentials) as wrong_password:
        service.login("bob", "nope")
    with pytest.raises(InvalidCredentials) as unknown_user:
        service.login("nobody", "secret1")
    assert str(wrong_password.value) == str(unknown_user.value)
    assert wrong_password.value.code == unknown_user.value.code


def test_login_username_is_case_sensitive(service):
    service.register(_candidate("bob"))
    with pytest.raises(InvalidCredentials):
        service.login("Bob", "secret1")


def test_each_login_opens_a_distinct_session(service):
    service.register(_candidate())
    _, first = service.login("bob", "secret1")
    _, second = service.login("bob", "secret1")
    assert first != second


def test_logout_ends_session(service):
    _, sid = service.register(_candidate())
    service.logout(sid)
    with pytest.raises(Unauthenticated):
        service.current_user(sid)


def test_logout_always_succeeds(service):
    service.logout(None)
    service.logout("unknown")


def test_current_user_without_session(service):
    with pytest.raises(Unauthenticated):
        service.current_user(None)


def test_session_expires_after_ttl(service_factory, clock):
    svc = service_factory(ttl_seconds=60, clock=clock)
    _, sid = svc.register(_candidate())
    clock.advance(59)
    assert svc.current_user(sid).username == "bob"
    clock.advance(1)
    with pytest.raises(Unauthenticated):
        svc.current_user(sid)

# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


def test_update_role(service):
    user, _ = service.register(_candidate())
    updated = service.update_role(user.id, "admin")
    assert updated.role is Role.ADMIN
    assert updated.hashed_password is None


def test_update_role_invalid(service):
    user, _ = service.register(_candidate())
    with pytest.raises(InvalidRole):
        service.update_role(user.id, "superuser")
    assert service.users.get_by_id(user.id).role is Role.RESEARCHER


def test_update_role_unknown_user(service):
    with pytest.raises(UserNotFound):
        service.update_role(404, "user")


def test_role_change_applies_to_existing_session(service):
    user, sid = service.register(_candidate())
    service.update_role(user.id, Role.USER)
    assert service.current_user(sid).role is Role.USER


def test_list_users_is_stripped(service):
    service.register(_candidate("alice"))
    service.register(_candidate("bob"))
    assert all(u.hashed_password is None for u in service.list_users())


def test_seed_user_uses_given_role_and_skips_existing(service):
    admin = service.seed_user("admin", "admin-pass", "admin@lrm2e.fr", Role.ADMIN)
    assert admin.role is Role.ADMIN
    assert service.seed_user("admin", "other-pass", "x@lrm2e.fr", Role.USER) is None
    user, _ = service.login("admin", "admin-pass")
    assert user.role is Role.ADMIN
