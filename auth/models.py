"""
auth/models.py -- Domain types for authentication entities.

Pattern: Data class (pure data container, no business logic). Stores and the
service do the work. Role is the one exception: it owns its own parsing so
that every role comparison in the codebase goes through a closed enum rather
than ad hoc string checks.

Layer rule: no imports from api/, web/, or contact/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from auth.errors import InvalidRole


class Role(str, Enum):
    ADMIN = "admin"
    RESEARCHER = "researcher"
    USER = "user"

    @classmethod
    def parse(cls, value: str | Role) -> Role:
        """Return the Role for value. Raises InvalidRole for anything outside the enum."""
        if isinstance(value, Role):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            raise InvalidRole() from exc


@dataclass
class User:
    """One account on the site.

    hashed_password is the Credential Hasher output ("<digest hex>.<salt hex>").
    Copies handed to callers outside auth/ have it set to None (stripped).
    """

    username: str
    email: str
    role: Role = Role.USER
    id: int | None = None
    hashed_password: str | None = None
    full_name: str | None = None
    department: str | None = None
    position: str | None = None
    created_at: str | None = None


@dataclass
class NewUser:
    """Registration candidate as submitted by a caller. Holds the plaintext password."""

    username: str
    email: str
    password: str
    full_name: str | None = None
    department: str | None = None
    position: str | None = None


@dataclass
class Session:
    """Server-side record behind the opaque token in the session cookie.

    expires_at is an absolute epoch timestamp; it is never extended.
    """

    session_id: str
    user_id: int
    expires_at: float
