"""
auth/service.py -- Auth Flow Controller: register, login, logout, current user.

AuthService orchestrates the hasher, the user directory, and the session
manager. It is the only place that decides what a successful login or
registration means, so the JSON API (api/routes/auth.py) and the HTML forms
(web/routes.py) share exactly the same rules:

  - Registration always yields role=researcher. NewUser has no role field, so
    a caller cannot self-assign admin no matter what the request body holds.
  - Login failures raise one InvalidCredentials whether the username is
    unknown or the password is wrong. The unknown-username branch still runs
    a full scrypt verification against a dummy hash, so response time does
    not reveal which case it was.
  - Every user that leaves this module is stripped of hashed_password.

Hashing and verification are CPU-bound and synchronous. Call these methods
from plain `def` route handlers so Starlette runs them in its thread pool
rather than on the event loop.

Layer rule: no imports from api/, web/, or contact/.
"""

from __future__ import annotations

import logging

from auth.errors import DuplicateUsername, InvalidCredentials, Unauthenticated, UserNotFound
from auth.models import NewUser, Role, User
from auth.passwords import hash_password, verify_dummy, verify_password
from auth.sessions import SessionManager
from auth.store import UserStore, strip_user

logger = logging.getLogger("lrm2e.auth")

# Role assigned by public registration.
REGISTRATION_ROLE = Role.RESEARCHER


class AuthService:
    def __init__(self, users: UserStore, sessions: SessionManager) -> None:
        self.users = users
        self.sessions = sessions

    # ------------------------------------------------------------------
    # Authentication flows
    # ------------------------------------------------------------------

    def register(self, candidate: NewUser) -> tuple[User, str]:
        """Create a researcher account and log it in.

        Returns (stripped user, session id). Raises DuplicateUsername if the
        username is taken. The store re-checks uniqueness atomically with the
        insert, so the early check below only spares a scrypt run.
        """
        if self.users.get_by_username(candidate.username) is not None:
            raise DuplicateUsername()
        user = self.users.create_user(
            User(
                username=candidate.username,
                email=candidate.email,
                role=REGISTRATION_ROLE,
                hashed_password=hash_password(candidate.password),
                full_name=candidate.full_name,
                department=candidate.department,
                position=candidate.position,
            )
        )
        session_id = self.sessions.create(user.id)
        logger.info("Registered user id=%s role=%s", user.id, user.role.value)
        return strip_user(user), session_id

    def authenticate(self, username: str, password: str) -> User:
        """Verify credentials with timing equalization. Returns the stripped user.

        Raises InvalidCredentials on any failure.
        """
        user = self.users.get_by_username(username)
        if user is None or not user.hashed_password:
            # Equalize timing -- do NOT return before running scrypt.
            verify_dummy(password)
            logger.warning("Failed login attempt")
            raise InvalidCredentials()
        if not verify_password(password, user.hashed_password):
            logger.warning("Failed login attempt")
            raise InvalidCredentials()
        return strip_user(user)

    def login(self, username: str, password: str) -> tuple[User, str]:
        """Authenticate and open a session. Returns (stripped user, session id)."""
        user = self.authenticate(username, password)
        session_id = self.sessions.create(user.id)
        logger.info("User id=%s logged in", user.id)
        return user, session_id

    def logout(self, session_id: str | None) -> None:
        """End a session. Always succeeds, even for unknown or missing ids."""
        self.sessions.destroy(session_id)

    def current_user(self, session_id: str | None) -> User:
        """Return the stripped user behind session_id. Raises Unauthenticated otherwise."""
        user = self.sessions.resolve(session_id)
        if user is None:
            raise Unauthenticated()
        return strip_user(user)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def list_users(self) -> list[User]:
        return [strip_user(u) for u in self.users.list_users()]

    def update_role(self, user_id: int, role: str | Role) -> User:
        """Change a user's role. Raises InvalidRole or UserNotFound."""
        new_role = Role.parse(role)
        updated = self.users.update_role(user_id, new_role)
        if updated is None:
            raise UserNotFound()
        logger.info("User id=%s role set to %s", user_id, new_role.value)
        return strip_user(updated)

    def seed_user(
        self,
        username: str,
        password: str,
        email: str,
        role: Role,
        full_name: str | None = None,
        department: str | None = None,
        position: str | None = None,
    ) -> User | None:
        """Create a bootstrap account if the username is free. Returns None if it already exists.

        Unlike register(), the role is taken as given and no session is opened.
        """
        if self.users.get_by_username(username) is not None:
            return None
        user = self.users.create_user(
            User(
                username=username,
                email=email,
                role=role,
                hashed_password=hash_password(password),
                full_name=full_name,
                department=department,
                position=position,
            )
        )
        logger.info("Seeded %s account id=%s", role.value, user.id)
        return strip_user(user)
