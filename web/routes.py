"""
web/routes.py -- Jinja2 template routes for the LRM2E website.

These routes serve server-rendered HTML. They share app.state with the API
routes (same AuthService, same contact store) but return HTML and redirects
instead of JSON.

Routes:
  GET  /               -- public home page (hero, research, team, publications, gallery, contact)
  POST /contact        -- contact form submission, redirect back to /#contact
  GET  /auth           -- login + registration forms
  POST /auth/login     -- handle password login
  POST /auth/register  -- handle researcher registration
  POST /auth/logout    -- end session, redirect /
  GET  /admin          -- admin page (guard: admin)
  GET  /researcher     -- researcher dashboard (guard: admin, researcher)

The /admin page changes roles and deletes messages by calling the JSON API
from the browser (PATCH /api/admin/users/{id}, DELETE /api/contact/{id}).
Those routes enforce require_admin themselves; the page guard here only
decides what to render.

Any ?lang=fr|en query parameter switches language and is remembered in the
"lang" cookie.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import EmailStr, TypeAdapter, ValidationError

from auth.dependencies import bind_session, clear_session, try_get_current_user
from auth.errors import DuplicateUsername, InvalidCredentials
from auth.models import NewUser, Role
from auth.service import AuthService
from contact.models import ContactMessage
from contact.store import ContactStore
from core.limiter import credential_rate_limit, limiter
from web.guard import guard_page, landing_path
from web.i18n import LANG_COOKIE, LANGUAGES, get_language, translate

logger = logging.getLogger("lrm2e.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()

# Whitelist mapping for ?error= query params on /auth.
# The raw query param is NEVER passed to templates -- only the translation key
# from this dict is. Prevents reflected XSS via crafted error query strings.
_ERROR_KEYS: dict[str, str] = {
    "bad_credentials": "errorBadCredentials",
    "duplicate_username": "errorDuplicateUsername",
    "invalid_registration": "errorInvalidRegistration",
}

# Same email-validator check as EmailStr fields on the JSON API.
_EMAIL = TypeAdapter(EmailStr)
_USERNAME_MIN = 3
_USERNAME_MAX = 64
_PASSWORD_MIN = 6
_FIELD_MAX = 255

_ROLE_LABELS = {Role.ADMIN: "roleAdmin", Role.RESEARCHER: "roleResearcher", Role.USER: "roleUser"}

# Lab gallery on the home page: (image URL, caption key). Captions alternate
# between the lab itself and its equipment.
_GALLERY: tuple[tuple[str, str], ...] = (
    ("https://images.unsplash.com/photo-1581093806997-124204d9fa9d?auto=format&fit=crop&w=600&q=80", "galleryLab"),
    ("https://images.unsplash.com/photo-1582719471384-894fbb16e074?auto=format&fit=crop&w=600&q=80", "galleryEquipment"),
    ("https://images.unsplash.com/photo-1629118648464-a35a688b2466?auto=format&fit=crop&w=600&q=80", "galleryLab"),
    ("https://images.unsplash.com/photo-1518152006812-edab29b069ac?auto=format&fit=crop&w=600&q=80", "galleryEquipment"),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _render(request: Request, template: str, context: Optional[dict] = None) -> HTMLResponse:
    """Render a template with the language, translator, and current user filled in."""
    lang = get_language(request)
    full_context = {
        "lang": lang,
        "languages": LANGUAGES,
        "t": lambda key: translate(key, lang),
        "current_user": try_get_current_user(request),
        "roles": list(Role),
        "role_labels": _ROLE_LABELS,
    }
    full_context.update(context or {})
    response = templates.TemplateResponse(request, template, full_context)
    _remember_language(request, response)
    return response


def _remember_language(request: Request, response: Response) -> None:
    requested = request.query_params.get("lang")
    if requested in LANGUAGES:
        response.set_cookie(LANG_COOKIE, requested, max_age=365 * 24 * 60 * 60, samesite="lax")


def _auth_redirect(error: str) -> RedirectResponse:
    return RedirectResponse(f"/auth?error={error}", status_code=302)


def _normalize_email(value: str) -> Optional[str]:
    """Return the normalized address, or None if email-validator rejects it."""
    if len(value) > _FIELD_MAX:
        return None
    try:
        return _EMAIL.validate_python(value)
    except ValidationError:
        return None


def _valid_registration(username: str, password: str) -> bool:
    return _USERNAME_MIN <= len(username) <= _USERNAME_MAX and _PASSWORD_MIN <= len(password) <= _FIELD_MAX


# ---------------------------------------------------------------------------
# Public pages
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def home(request: Request) -> HTMLResponse:
    return _render(
        request,
        "home.html",
        {
            "message_sent": request.query_params.get("sent") == "1",
            "contact_error": request.query_params.get("contact_error") == "1",
            "gallery": _GALLERY,
        },
    )


@router.post("/contact")
def contact_post(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    subject: str = Form(""),
    message: str = Form(""),
) -> RedirectResponse:
    """Store a contact form submission and bounce back to the form."""
    name, subject, message = (v.strip() for v in (name, subject, message))
    normalized_email = _normalize_email(email.strip())
    if not (name and subject and message) or normalized_email is None:
        return RedirectResponse("/?contact_error=1#contact", status_code=302)
    store: ContactStore = request.app.state.contact
    store.create_message(
        ContactMessage(
            name=name[:_FIELD_MAX],
            email=normalized_email,
            subject=subject[:_FIELD_MAX],
            message=message[:5000],
        )
    )
    return RedirectResponse("/?sent=1#contact", status_code=302)


# ---------------------------------------------------------------------------
# Authentication pages
# ---------------------------------------------------------------------------


@router.get("/auth", response_class=HTMLResponse)
def auth_form(request: Request) -> HTMLResponse:
    """Render login and registration forms. Logged-in users go to their landing page."""
    user = try_get_current_user(request)
    if user is not None:
        return RedirectResponse(landing_path(user), status_code=302)
    error_key = _ERROR_KEYS.get(request.query_params.get("error", ""))
    return _render(request, "auth.html", {"error_key": error_key})


@router.post("/auth/login")
@limiter.limit(credential_rate_limit)
def login_post(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
) -> RedirectResponse:
    """Handle the login form. Same AuthService path and rate limit as POST /api/login."""
    service: AuthService = request.app.state.auth
    try:
        user, session_id = service.login(username, password)
    except InvalidCredentials:
        return _auth_redirect("bad_credentials")
    bind_session(request, session_id)
    resp = RedirectResponse(landing_path(user), status_code=302)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register")
@limiter.limit(credential_rate_limit)
def register_post(
    request: Request,
    username: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    full_name: str = Form(""),
    department: str = Form(""),
    position: str = Form(""),
) -> RedirectResponse:
    """Handle the registration form. The account is always a researcher."""
    username = username.strip()
    normalized_email = _normalize_email(email.strip())
    if normalized_email is None or not _valid_registration(username, password):
        return _auth_redirect("invalid_registration")
    service: AuthService = request.app.state.auth
    try:
        user, session_id = service.register(
            NewUser(
                username=username,
                email=normalized_email,
                password=password,
                full_name=full_name.strip()[:_FIELD_MAX] or None,
                department=department.strip()[:_FIELD_MAX] or None,
                position=position.strip()[:_FIELD_MAX] or None,
            )
        )
    except DuplicateUsername:
        return _auth_redirect("duplicate_username")
    bind_session(request, session_id)
    resp = RedirectResponse(landing_path(user), status_code=302)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout")
def logout_post(request: Request) -> RedirectResponse:
    clear_session(request)
    return RedirectResponse("/", status_code=302)


# ---------------------------------------------------------------------------
# Gated pages
# ---------------------------------------------------------------------------


@router.get("/admin", response_class=HTMLResponse)
def admin_page(request: Request) -> HTMLResponse:
    if redirect := guard_page(request, {Role.ADMIN}):
        return redirect
    service: AuthService = request.app.state.auth
    store: ContactStore = request.app.state.contact
    return _render(
        request,
        "admin.html",
        {"users": service.list_users(), "messages": store.list_messages()},
    )


@router.get("/researcher", response_class=HTMLResponse)
def researcher_page(request: Request) -> HTMLResponse:
    if redirect := guard_page(request, {Role.ADMIN, Role.RESEARCHER}):
        return redirect
    # Publications, experiments and equipment have no backing store yet; the
    # dashboard renders their empty states.
    return _render(request, "researcher.html", {"publications": [], "experiments": [], "equipment": []})
