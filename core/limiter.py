"""
core/limiter.py -- Shared slowapi rate limiter instance.

Lives in core/ because both layers apply it: api/routes/auth.py to the JSON
login/register routes and web/routes.py to the HTML form handlers that run the
same password check. api/main.py mounts it as middleware.

A single shared instance means all routes share the same in-memory counter
store. Each route still counts separately (the handler name is part of the
key), per client IP.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def credential_rate_limit() -> str:
    """Limit for every route that runs a password check (login, register).

    slowapi calls this on each request, so the value always follows the
    current LOGIN_RATE_LIMIT setting.
    """
    return get_settings().login_rate_limit
