"""
auth/sessions.py -- Server-side sessions behind an opaque cookie token.

Pattern: Strategy. SessionManager owns the session rules (token generation,
absolute expiry, user resolution); a SessionBackend owns storage. The in-memory
backend is the only one shipped. A durable backend (Redis, SQL) implements the
same four methods and plugs in without changing AuthService.

Expiry:
  expires_at is fixed at issuance (no sliding expiration). resolve() never
  returns a user for an expired session even if the record is still stored;
  it deletes the stale record on the way out. purge_expired() sweeps the rest
  and is called periodically by the purge task in api/main.py.

Cookie transport is not handled here. Starlette's SessionMiddleware signs the
cookie that carries the session id; see api/main.py.

Layer rule: no imports from api/, web/, or contact/.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from auth.models import Session, User
from auth.store import UserStore

logger = logging.getLogger("lrm2e.auth")

DEFAULT_SESSION_TTL = 24 * 60 * 60


# ---------------------------------------------------------------------------
# Storage backends
# ---------------------------------------------------------------------------


class SessionBackend(ABC):
    """Storage contract for session records."""

    @abstractmethod
    def save(self, session: Session) -> None: ...

    @abstractmethod
    def get(self, session_id: str) -> Session | None: ...

    @abstractmethod
    def delete(self, session_id: str) -> None:
        """Remove a session. Must not raise if it does not exist."""

    @abstractmethod
    def purge_expired(self, now: float) -> int:
        """Delete every session with expires_at <= now. Returns the number removed."""


class MemorySessionBackend(SessionBackend):
    """Process-local dict guarded by a lock. Lost on restart."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def save(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.session_id] = session

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            return self._sessions.get(session_id)

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def purge_expired(self, now: float) -> int:
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.expires_at <= now]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


class SessionManager:
    """Issues, resolves, and destroys sessions.

    Usage:
        manager = SessionManager(MemorySessionBackend(), user_store)
        sid = manager.create(user.id)
        manager.resolve(sid)   # -> User
        manager.destroy(sid)
        manager.resolve(sid)   # -> None

    clock is injectable so tests can move time forward without sleeping.
    """

    def __init__(
        self,
        backend: SessionBackend,
        users: UserStore,
        ttl_seconds: int = DEFAULT_SESSION_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.backend = backend
        self.users = users
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def create(self, user_id: int) -> str:
        """Open a session for user_id and return its token.

        The record is saved before this returns, so the token is resolvable by
        the time the caller hands it to the client.
        """
        session_id = secrets.token_urlsafe(32)
        self.backend.save(
            Session(
                session_id=session_id,
                user_id=user_id,
                expires_at=self._clock() + self.ttl_seconds,
            )
        )
        return session_id

    def resolve(self, session_id: str | None) -> User | None:
        """Return the User behind session_id, or None if the session is not valid.

        None covers: no token, unknown token, expired session, and a session
        whose user record no longer exists. This method never raises for any
        of those.
        """
        if not session_id or not isinstance(session_id, str):
            return None
        session = self.backend.get(session_id)
        if session is None:
            return None
        if session.expires_at <= self._clock():
            self.backend.delete(session_id)
            return None
        user = self.users.get_by_id(session.user_id)
        if user is None:
            logger.warning("Session references missing user id=%s; discarding", session.user_id)
            self.backend.delete(session_id)
            return None
        return user

    def destroy(self, session_id: str | None) -> None:
        """Remove a session. Idempotent: unknown or empty ids are ignored."""
        if session_id:
            self.backend.delete(session_id)

    def purge_expired(self) -> int:
        removed = self.backend.purge_expired(self._clock())
        if removed:
            logger.info("Purged %d expired session(s)", removed)
        return removed
