"""
tests/test_rate_limit.py -- Integration tests for the credential rate limit.

The limit is read from settings on every request, so each test lowers
LOGIN_RATE_LIMIT on the cached Settings object and clears the limiter's
counters before and after.

Coverage:
  - POST /api/login and /api/register answer 429 with Retry-After past the limit
  - The HTML form handlers (/auth/login, /auth/register) share the same limit
  - Wrong passwords count toward the limit
  - Routes without a password check are never limited
"""

from __future__ import annotations

import pytest

from core.config import get_settings
from core.limiter import limiter


@pytest.fixture
def tight_limit(monkeypatch):
    monkeypatch.setattr(get_settings(), "login_rate_limit", "2/minute")
    limiter.reset()
    yield
    limiter.reset()


def _assert_rate_limited(resp) -> None:
    assert resp.status_code == 429
    assert resp.json()["error"]["code"] == "rate_limited"
    assert "retry-after" in resp.headers


class TestApiRateLimit:
    def test_login_limited_after_threshold(self, site, tight_limit) -> None:
        client = site.client()
        body = {"username": "testadmin", "password": "wrong"}
        assert client.post("/api/login", json=body).status_code == 401
        assert client.post("/api/login", json=body).status_code == 401
        _assert_rate_limited(client.post("/api/login", json=body))

    def test_limited_login_opens_no_session(self, site, tight_limit) -> None:
        client = site.client()
        for _ in range(2):
            client.post("/api/login", json={"username": "testadmin", "password": "wrong"})
        resp = client.post("/api/login", json={"username": "testadmin", "password": "testpass123"})
        _assert_rate_limited(resp)
        assert client.get("/api/user").status_code == 401

    def test_register_limited_after_threshold(self, site, tight_limit) -> None:
        client = site.client()
        for i in range(2):
            resp = client.post(
                "/api/register",
                json={"username": f"user{i}", "email": f"user{i}@lrm2e.fr", "password": "secret1"},
            )
            assert resp.status_code == 201
        resp = client.post(
            "/api/register",
            json={"username": "user9", "email": "user9@lrm2e.fr", "password": "secret1"},
        )
        _assert_rate_limited(resp)
        assert site.service.users.get_by_username("user9") is None

    def test_unlimited_routes_unaffected(self, site, tight_limit) -> None:
        client = site.client()
        for _ in range(5):
            assert client.get("/api/health").status_code == 200


class TestFormRateLimit:
    def test_form_login_limited(self, site, tight_limit) -> None:
        client = site.client()
        form = {"username": "testadmin", "password": "wrong"}
        assert client.post("/auth/login", data=form).status_code == 302
        assert client.post("/auth/login", data=form).status_code == 302
        _assert_rate_limited(client.post("/auth/login", data=form))

    def test_form_register_limited(self, site, tight_limit) -> None:
        client = site.client()
        form = {"username": "ab", "email": "x@lrm2e.fr", "password": "secret1"}
        for _ in range(2):
            assert client.post("/auth/register", data=form).status_code == 302
        _assert_rate_limited(client.post("/auth/register", data=form))
