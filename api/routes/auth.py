"""
api/routes/auth.py -- Authentication REST endpoints.

Routes:
  POST /api/register   -- create a researcher account; opens a session; 201
  POST /api/login      -- password login; opens a session
  POST /api/logout     -- destroys the session; always 200
  GET  /api/user       -- current user (requires auth)

Security:
  - /register and /login are rate-limited per client IP. @limiter.limit sits
    under @router.post so the router registers the limited wrapper; SlowAPI's
    middleware does not apply per-route limits on its own.
  - /login answers one generic 401 for unknown usernames and wrong passwords.
    AuthService.authenticate() equalizes timing -- never inline the lookup
    and the password check here.
  - Any session the client already held is destroyed before a new one is
    bound (bind_session), so a pre-login session id cannot be fixated.
  - Cache-Control: no-store on every response that opens a session.
  - register/login are plain `def` so scrypt runs in the thread pool, not on
    the event loop.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import LoginRequest, MessageResponse, RegisterRequest, UserResponse
from auth.dependencies import bind_session, clear_session, get_current_user
from auth.models import User
from auth.service import AuthService
from core.limiter import credential_rate_limit, limiter

# Auth policy:
# - POST /api/register: public -- anyone may sign up; role is forced to researcher
# - POST /api/login:    public
# - POST /api/logout:   public -- ending a session needs no prior auth
# - GET  /api/user:     requires auth (get_current_user)
router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=201)
@limiter.limit(credential_rate_limit)
def register(request: Request, response: Response, body: RegisterRequest) -> UserResponse:
    """Create an account and log it in. Returns the stripped user.

    400 duplicate_username if the username is taken.
    """
    service: AuthService = request.app.state.auth
    user, session_id = service.register(body.to_new_user())
    bind_session(request, session_id)
    response.headers["Cache-Control"] = "no-store"
    return UserResponse.from_user(user)


@router.post("/login", response_model=UserResponse)
@limiter.limit(credential_rate_limit)
def login(request: Request, response: Response, body: LoginRequest) -> UserResponse:
    """Authenticate with username and password. Returns the stripped user.

    401 invalid_credentials on any failure; the message never says which part
    was wrong.
    """
    service: AuthService = request.app.state.auth
    user, session_id = service.login(body.username, body.password)
    bind_session(request, session_id)
    response.headers["Cache-Control"] = "no-store"
    return UserResponse.from_user(user)


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request) -> MessageResponse:
    """End the session. Succeeds whether or not one existed."""
    clear_session(request)
    return MessageResponse(message="Logged out.")


@router.get("/user", response_model=UserResponse)
def current_user(user: User = Depends(get_current_user)) -> UserResponse:
    """Return the currently authenticated user."""
    return UserResponse.from_user(user)
