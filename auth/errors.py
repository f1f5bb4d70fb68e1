"""
auth/errors.py -- Error taxonomy for the authentication subsystem.

Every error carries the HTTP status and the machine-readable code the API
boundary uses to build the ErrorResponse envelope. Messages are fixed strings:
nothing here ever echoes a username or says whether an account exists.

Anything that is not an AuthError (entropy failure in the hasher, a broken
store) is an internal error and is reported generically by the catch-all
handler in api/main.py.

Layer rule: no imports from api/, web/, or contact/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for recoverable auth failures."""

    status_code: int = 400
    code: str = "auth_error"
    message: str = "Authentication error."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class DuplicateUsername(AuthError):
    status_code = 400
    code = "duplicate_username"
    message = "Username already exists."


class InvalidCredentials(AuthError):
    """Unknown username and wrong password are deliberately the same error."""

    status_code = 401
    code = "invalid_credentials"
    message = "Invalid username or password."


class InvalidRole(AuthError):
    status_code = 400
    code = "invalid_role"
    message = "Invalid role. Valid roles are: admin, researcher, user."


class Unauthenticated(AuthError):
    status_code = 401
    code = "unauthenticated"
    message = "Authentication required."


class Forbidden(AuthError):
    status_code = 403
    code = "forbidden"
    message = "You do not have access to this resource."


class UserNotFound(AuthError):
    status_code = 404
    code = "not_found"
    message = "User not found."
