"""
web/guard.py -- Route guard for role-gated pages.

decide() is a pure function from the cached auth state to what the page
should do:

  loading                          -> PENDING        (neutral spinner)
  anonymous                        -> REDIRECT_LOGIN (/auth)
  authenticated, role not allowed  -> REDIRECT_HOME  (/)
  authenticated, role allowed      -> RENDER

This is a presentation convenience and NOT a security control. It only
decides whether a page is worth rendering. Every action the page triggers
goes through an /api route that re-checks the session and role with
auth.dependencies on its own; skipping the guard (curl, a crafted fetch)
gains nothing.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from enum import Enum

from fastapi import Request
from fastapi.responses import RedirectResponse

from auth.dependencies import try_get_current_user
from auth.models import Role, User

LOGIN_PATH = "/auth"
HOME_PATH = "/"


class AuthStatus(Enum):
    LOADING = "loading"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class AuthState:
    status: AuthStatus
    user: User | None = None

    @classmethod
    def loading(cls) -> AuthState:
        return cls(AuthStatus.LOADING)

    @classmethod
    def anonymous(cls) -> AuthState:
        return cls(AuthStatus.ANONYMOUS)

    @classmethod
    def authenticated(cls, user: User) -> AuthState:
        return cls(AuthStatus.AUTHENTICATED, user)

    @classmethod
    def from_request(cls, request: Request) -> AuthState:
        """Resolve the state for a server-rendered request. Never LOADING: resolution is synchronous."""
        user = try_get_current_user(request)
        return cls.authenticated(user) if user is not None else cls.anonymous()


class GuardDecision(Enum):
    PENDING = "pending"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_HOME = "redirect_home"
    RENDER = "render"


def decide(state: AuthState, allowed_roles: Collection[Role] | None = None) -> GuardDecision:
    """Return the guard decision. allowed_roles=None (or empty) means any authenticated user."""
    if state.status is AuthStatus.LOADING:
        return GuardDecision.PENDING
    if state.status is AuthStatus.ANONYMOUS or state.user is None:
        return GuardDecision.REDIRECT_LOGIN
    if allowed_roles and state.user.role not in {Role.parse(r) for r in allowed_roles}:
        return GuardDecision.REDIRECT_HOME
    return GuardDecision.RENDER


def guard_page(request: Request, allowed_roles: Collection[Role] | None = None) -> RedirectResponse | None:
    """Apply decide() to a page request.

    Returns a RedirectResponse to send instead of the page, or None when the
    page should render. AuthState.from_request() never yields LOADING, so
    PENDING does not arise here. Call at the top of gated page handlers:
        if redirect := guard_page(request, {Role.ADMIN}):
            return redirect
    """
    decision = decide(AuthState.from_request(request), allowed_roles)
    if decision is GuardDecision.REDIRECT_LOGIN:
        return RedirectResponse(LOGIN_PATH, status_code=302)
    if decision is GuardDecision.REDIRECT_HOME:
        return RedirectResponse(HOME_PATH, status_code=302)
    return None


def landing_path(user: User) -> str:
    """Where a user goes right after logging in."""
    if user.role is Role.ADMIN:
        return "/admin"
    if user.role is Role.RESEARCHER:
        return "/researcher"
    return HOME_PATH
