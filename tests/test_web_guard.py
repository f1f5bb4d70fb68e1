"""Unit tests for web/guard.py -- the route guard decision table."""

import pytest

from auth.models import Role, User
from web.guard import AuthState, GuardDecision, decide, landing_path


def _user(role: Role) -> User:
    return User(username="u", email="u@lrm2e.fr", role=role, id=1)


ADMIN_ONLY = {Role.ADMIN}
STAFF = {Role.ADMIN, Role.RESEARCHER}


def test_loading_is_pending_whatever_the_roles():
    assert decide(AuthState.loading(), ADMIN_ONLY) is GuardDecision.PENDING
    assert decide(AuthState.loading()) is GuardDecision.PENDING


def test_anonymous_redirects_to_login():
    assert decide(AuthState.anonymous(), ADMIN_ONLY) is GuardDecision.REDIRECT_LOGIN
    assert decide(AuthState.anonymous()) is GuardDecision.REDIRECT_LOGIN


@pytest.mark.parametrize(
    "role,allowed,expected",
    [
        (Role.ADMIN, ADMIN_ONLY, GuardDecision.RENDER),
        (Role.RESEARCHER, ADMIN_ONLY, GuardDecision.REDIRECT_HOME),
        (Role.USER, ADMIN_ONLY, GuardDecision.REDIRECT_HOME),
        (Role.ADMIN, STAFF, GuardDecision.RENDER),
        (Role.RESEARCHER, STAFF, GuardDecision.RENDER),
        (Role.USER, STAFF, GuardDecision.REDIRECT_HOME),
    ],
)
def test_authenticated_role_table(role, allowed, expected):
    assert decide(AuthState.authenticated(_user(role)), allowed) is expected


@pytest.mark.parametrize("allowed", [None, set()])
def test_no_role_restriction_renders_for_any_user(allowed):
    assert decide(AuthState.authenticated(_user(Role.USER)), allowed) is GuardDecision.RENDER


def test_allowed_roles_accept_plain_strings():
    assert decide(AuthState.authenticated(_user(Role.RESEARCHER)), ["researcher"]) is GuardDecision.RENDER


@pytest.mark.parametrize(
    "role,path",
    [(Role.ADMIN, "/admin"), (Role.RESEARCHER, "/researcher"), (Role.USER, "/")],
)
def test_landing_path(role, path):
    assert landing_path(_user(role)) == path
