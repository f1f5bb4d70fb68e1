"""
tests/conftest.py -- Shared test fixtures for the LRM2E site.

This module provides:
  - make_auth_service(): fresh UserStore + SessionManager + AuthService for unit tests
  - clock, service_factory: manual clock and AuthService builder for expiry tests
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - site: a TestEnv with fresh stores per test, a seeded admin and researcher,
          and a factory for independent TestClients (one cookie jar each)

Design: every test gets brand-new in-memory stores. The app object is shared,
but its lifespan is swapped for one that installs the test's instances on
app.state, so no state leaks between tests.

Environment variables must be set before any project import so get_settings()
sees them: DEBUG auto-generates SESSION_SECRET, the rate limit is raised so
repeated logins in a test module never hit 429, and "testserver" (the
TestClient host) is allowed by TrustedHostMiddleware.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

# CRITICAL: Set these before any project import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from asgi import app
from auth.models import Role
from auth.service import AuthService
from auth.sessions import MemorySessionBackend, SessionManager
from auth.store import UserStore
from contact.store import ContactStore

ADMIN_USERNAME = "testadmin"
ADMIN_PASSWORD = "testpass123"
RESEARCHER_USERNAME = "testresearcher"
RESEARCHER_PASSWORD = "research123"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced clock for session expiry tests."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_auth_service(ttl_seconds: int = 24 * 60 * 60, clock=None) -> AuthService:
    users = UserStore()
    kwargs = {"ttl_seconds": ttl_seconds}
    if clock is not None:
        kwargs["clock"] = clock
    sessions = SessionManager(MemorySessionBackend(), users, **kwargs)
    return AuthService(users, sessions)


def _patch_lifespan(service: AuthService, contact: ContactStore):
    """Return an async context manager that replaces the real lifespan.

    The purge_task is a long-sleeping coroutine (a real asyncio.Task is
    required; MagicMock would fail on .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = service.users
        app.state.sessions = service.sessions
        app.state.auth = service
        app.state.contact = contact
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@dataclass
class TestEnv:
    __test__ = False  # not a test class

    service: AuthService
    contact: ContactStore
    admin_id: int
    researcher_id: int
    _clients: list[TestClient] = field(default_factory=list)

    def client(self) -> TestClient:
        """Return a new anonymous client with its own cookie jar.

        follow_redirects=False so tests can assert on redirect locations.
        """
        c = TestClient(app, follow_redirects=False)
        self._clients.append(c)
        return c

    def login(self, username: str, password: str) -> TestClient:
        c = self.client()
        resp = c.post("/api/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
        return c

    def admin(self) -> TestClient:
        return self.login(ADMIN_USERNAME, ADMIN_PASSWORD)

    def researcher(self) -> TestClient:
        return self.login(RESEARCHER_USERNAME, RESEARCHER_PASSWORD)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service_factory() -> Generator:
    """Build AuthServices with a custom TTL or clock; all are closed on teardown."""
    built: list[AuthService] = []

    def factory(ttl_seconds: int = 24 * 60 * 60, clock=None) -> AuthService:
        svc = make_auth_service(ttl_seconds, clock)
        built.append(svc)
        return svc

    yield factory
    for svc in built:
        svc.users.close()


@pytest.fixture
def service() -> Generator[AuthService, None, None]:
    svc = make_auth_service()
    yield svc
    svc.users.close()


@pytest.fixture
def site() -> Generator[TestEnv, None, None]:
    """Yield a TestEnv wired into the real FastAPI app with fresh stores."""
    svc = make_auth_service()
    contact = ContactStore()
    admin = svc.seed_user(ADMIN_USERNAME, ADMIN_PASSWORD, "admin@lrm2e.fr", Role.ADMIN)
    researcher = svc.seed_user(
        RESEARCHER_USERNAME,
        RESEARCHER_PASSWORD,
        "researcher@lrm2e.fr",
        Role.RESEARCHER,
        full_name="Dr. Marie Curie",
        department="Materials Science",
    )

    app.router.lifespan_context = _patch_lifespan(svc, contact)

    with TestClient(app, follow_redirects=False):
        env = TestEnv(service=svc, contact=contact, admin_id=admin.id, researcher_id=researcher.id)
        yield env
        for c in env._clients:
            c.close()

    contact.close()
    svc.users.close()
