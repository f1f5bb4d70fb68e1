"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication and roles.

The session id travels in the "sid" key of the signed cookie managed by
Starlette's SessionMiddleware. The cookie holds nothing else: the user, their
role, and the expiry all live server-side and are looked up on every request.
No authorization decision is cached between requests.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises Unauthenticated (401).
require_role(...) wraps get_current_user() and raises Forbidden (403).

The web route guard (web/guard.py) mirrors these checks for page rendering.
These dependencies are the enforcement point; every protected API route must
declare one of them.

Layer rule: no imports from web/ or contact/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request

from auth.errors import Forbidden, Unauthenticated
from auth.models import Role, User
from auth.service import AuthService

_SESSION_KEY = "sid"


# ---------------------------------------------------------------------------
# Session cookie plumbing
# ---------------------------------------------------------------------------


def get_session_id(request: Request) -> str | None:
    """Return the session id carried by the request's signed cookie, if any."""
    value = request.session.get(_SESSION_KEY)
    return value if isinstance(value, str) else None


def bind_session(request: Request, session_id: str) -> None:
    """Attach a freshly issued session id to the response cookie.

    Any session the client already held is destroyed server-side and the
    cookie payload is cleared first, so a pre-login session id can never be
    carried into an authenticated session (session fixation).
    """
    service: AuthService = request.app.state.auth
    service.logout(get_session_id(request))
    request.session.clear()
    request.session[_SESSION_KEY] = session_id


def clear_session(request: Request) -> None:
    """Destroy the server-side session and empty the cookie."""
    service: AuthService = request.app.state.auth
    service.logout(get_session_id(request))
    request.session.clear()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def try_get_current_user(request: Request) -> User | None:
    """Resolve the request's session to a stripped User. Never raises."""
    service: AuthService = request.app.state.auth
    session_id = get_session_id(request)
    if session_id is None:
        return None
    try:
        return service.current_user(session_id)
    except Unauthenticated:
        return None


def get_current_user(request: Request) -> User:
    """Require authentication. Raises Unauthenticated (401) if there is no valid session.

    The resolved user is also attached to request.state.user for downstream use.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise Unauthenticated()
    request.state.user = user
    return user


def require_role(*allowed: Role) -> Callable[[Request], User]:
    """Build a dependency that requires one of the allowed roles.

    Raises Unauthenticated (401) without a valid session, Forbidden (403) when
    the user's role is not in allowed.

    Use as a FastAPI dependency:
        @router.get("/admin-only")
        def route(user: User = Depends(require_role(Role.ADMIN))): ...
    """
    if not allowed:
        raise ValueError("require_role() needs at least one role.")
    allowed_roles = frozenset(Role.parse(r) for r in allowed)

    def dependency(request: Request) -> User:
        user = get_current_user(request)
        if user.role not in allowed_roles:
            raise Forbidden()
        return user

    dependency.__name__ = f"require_role_{'_'.join(sorted(r.value for r in allowed_roles))}"
    return dependency


require_admin = require_role(Role.ADMIN)
require_researcher = require_role(Role.ADMIN, Role.RESEARCHER)
