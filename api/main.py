"""
api/main.py -- FastAPI application entry point for the LRM2E site.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. log_requests          -- @app.middleware("http"), registered last, so it
                              also times and logs requests the layers below reject
  2. SessionMiddleware     -- signed session cookie carrying the session id
  3. SlowAPIMiddleware     -- enforces per-route rate limits from core.limiter
  4. CORSMiddleware        -- adds CORS headers for allowed browser origins
  5. TrustedHostMiddleware -- rejects requests with unexpected Host headers

Lifespan owns every piece of shared state. The user directory, the session
manager, the auth service, and the contact store are created here and hung on
app.state; nothing is a module-level singleton, so tests can swap in fresh
instances per test.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException
from starlette.middleware.sessions import SessionMiddleware

from core.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.admin import router as admin_router
from api.routes.auth import router as auth_router
from api.routes.contact import router as contact_router
from auth.errors import AuthError
from auth.models import Role
from auth.service import AuthService
from auth.sessions import MemorySessionBackend, SessionManager
from auth.store import UserStore
from contact.store import ContactStore
from core.config import Settings, get_settings

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("lrm2e.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------

_PURGE_INTERVAL_SECONDS = 60 * 60


async def _purge_loop(app: FastAPI) -> None:
    """Sweep expired sessions every hour.

    Expired sessions are already unusable (resolve() checks expires_at); this
    only reclaims memory. CancelledError from task.cancel() during shutdown
    propagates out of asyncio.sleep and unwinds the coroutine cleanly.
    """
    while True:
        await asyncio.sleep(_PURGE_INTERVAL_SECONDS)
        app.state.sessions.purge_expired()


def seed_bootstrap_accounts(service: AuthService, settings: Settings) -> None:
    """Create the configured admin and researcher accounts if they do not exist yet.

    An account is only seeded when its password is set in the environment.
    """
    bootstrap = [
        (
            Role.ADMIN,
            settings.bootstrap_admin_username,
            settings.bootstrap_admin_password,
            settings.bootstrap_admin_email,
            "Admin LRM2E",
            "Administration",
        ),
        (
            Role.RESEARCHER,
            settings.bootstrap_researcher_username,
            settings.bootstrap_researcher_password,
            settings.bootstrap_researcher_email,
            None,
            None,
        ),
    ]
    for role, username, password, email, full_name, department in bootstrap:
        if not password:
            continue
        service.seed_user(
            username=username,
            password=password,
            email=email,
            role=role,
            full_name=full_name,
            department=department,
        )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.
    """
    logger.info("LRM2E site starting up")
    app.state.user_store = UserStore()
    app.state.sessions = SessionManager(
        MemorySessionBackend(),
        app.state.user_store,
        ttl_seconds=_settings.session_max_age,
    )
    app.state.auth = AuthService(app.state.user_store, app.state.sessions)
    # scrypt is CPU-bound; keep it off the event loop.
    await asyncio.to_thread(seed_bootstrap_accounts, app.state.auth, _settings)
    app.state.contact = ContactStore()
    logger.info("Stores initialized (users=%d)", len(app.state.user_store.list_users()))
    app.state.purge_task = asyncio.create_task(_purge_loop(app))

    yield

    app.state.purge_task.cancel()
    app.state.contact.close()
    app.state.user_store.close()
    logger.info("LRM2E site shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="LRM2E API",
    description="Website and back office of the LRM2E research laboratory.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# add_middleware() wraps the current stack, so the LAST middleware added is
# the OUTERMOST. Registered here innermost-first.
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# The cookie is signed with SESSION_SECRET and holds only the opaque session
# id. Starlette always marks it HttpOnly; SameSite=lax blocks it on cross-site
# POSTs; Secure is on when SECURE_COOKIES=true. max_age mirrors the server-side
# session lifetime.
app.add_middleware(
    SessionMiddleware,
    secret_key=_settings.session_secret,
    session_cookie=_settings.session_cookie,
    max_age=_settings.session_max_age,
    same_site="lax",
    https_only=_settings.secure_cookies,
)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


# Added after the stack above, which makes it the outermost layer.
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(admin_router, prefix="/api", tags=["Admin"])
app.include_router(contact_router, prefix="/api", tags=["Contact"])
# Web UI router is mounted by asgi.py, not here.
# api/ and web/ are independent layers -- only the top-level asgi.py imports both.


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Translate auth failures into their status code and fixed message.

    The message comes from the error class, never from user input, so a
    failed login cannot reveal whether the username exists.
    """
    response = _error_response(exc.status_code, exc.code, exc.message)
    if request.url.path.endswith(("/login", "/register")):
        response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error_response(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    # Drop the offending input values -- they may contain a password.
    errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
    return _error_response(422, "validation_error", "Request validation failed.", str(errors))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Registered on Starlette's base class so router-level 404/405 are covered.

    When detail is already a structured dict, use it directly as the error
    field rather than stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=__version__)
