"""
auth/store.py -- User Directory: SQLAlchemy Core repository for user accounts.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Route, service, and dependency code never touches SQL directly.

Storage: an in-memory SQLite database by default ("sqlite://"). StaticPool
keeps one connection alive for the life of the store, so every thread in the
server's worker pool sees the same data. Each app instance (and each test)
owns its own UserStore; there is no module-level singleton.

Concurrency:
  Every operation runs under one re-entrant lock. For create_user() this makes
  the username check and the insert a single atomic unit, so two concurrent
  registrations for the same name cannot both succeed. The UNIQUE constraint
  on username backs the check at the database level.

  sqlite_autoincrement makes ids strictly monotonic -- SQLite never reuses
  an id, even one freed by a deleted row.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/, web/, or contact/.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from auth.errors import DuplicateUsername
from auth.models import Role, User

_DEFAULT_DB_URL = "sqlite://"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(255), nullable=False),  # not unique -- see DESIGN.md
    Column("hashed_password", Text, nullable=False),
    Column("role", String(20), nullable=False, server_default=Role.USER.value),
    Column("full_name", String(255)),
    Column("department", String(255)),
    Column("position", String(255)),
    Column("created_at", String(32), nullable=False),
    sqlite_autoincrement=True,
)

# Fields update_user() accepts. id, username and created_at are immutable.
_MUTABLE_FIELDS = frozenset({"email", "hashed_password", "role", "full_name", "department", "position"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _blank_to_none(value: str | None) -> str | None:
    return value or None


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore()
        user = store.create_user(User(username="admin", email="a@lrm2e.fr",
                                      role=Role.ADMIN, hashed_password=hash_password("secret")))
        store.get_by_username("admin")
        store.close()

    Records returned here still carry hashed_password. Stripping it before
    anything leaves the server is the caller's job (see auth/service.py).
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        engine_kwargs: dict = {}
        if db_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if db_url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
        self.engine: Engine = create_engine(db_url, **engine_kwargs)
        self._lock = threading.RLock()
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        with self._lock, self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return (result or 0) > 0

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self._lock, self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found.

        SQLite's default BINARY collation makes = case-sensitive.
        """
        with self._lock, self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return a snapshot of all users ordered by id."""
        with self._lock, self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> User:
        """Insert a new user and return the stored record (hash included).

        id and created_at on the candidate are ignored; the store assigns both.
        Raises DuplicateUsername if the username is taken. Raises ValueError if
        the candidate carries no password hash.
        """
        if not user.hashed_password:
            raise ValueError("create_user() requires a hashed_password.")
        role = Role.parse(user.role)
        with self._lock:
            if self.get_by_username(user.username) is not None:
                raise DuplicateUsername()
            try:
                with self.engine.connect() as conn:
                    result = conn.execute(
                        _users.insert().values(
                            username=user.username,
                            email=user.email,
                            hashed_password=user.hashed_password,
                            role=role.value,
                            full_name=_blank_to_none(user.full_name),
                            department=_blank_to_none(user.department),
                            position=_blank_to_none(user.position),
                            created_at=_now_iso(),
                        )
                    )
                    conn.commit()
                    user_id = result.inserted_primary_key[0]
            except IntegrityError as exc:
                raise DuplicateUsername() from exc
            return self.get_by_id(user_id)

    def update_user(self, user_id: int, **fields) -> User | None:
        """Update mutable fields on an existing user.

        Accepted fields: email, hashed_password, role, full_name, department,
        position. role goes through Role.parse() and raises InvalidRole for
        anything outside the enum. Unknown fields raise ValueError.

        Returns the updated User, or None if user_id was not found.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)!r}")
        if "role" in fields:
            fields["role"] = Role.parse(fields["role"]).value
        if "hashed_password" in fields and not fields["hashed_password"]:
            raise ValueError("hashed_password cannot be cleared.")
        for name in ("full_name", "department", "position"):
            if name in fields:
                fields[name] = _blank_to_none(fields[name])
        with self._lock:
            if not fields:
                return self.get_by_id(user_id)
            with self.engine.connect() as conn:
                result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
                conn.commit()
            if result.rowcount == 0:
                return None
            return self.get_by_id(user_id)

    def update_role(self, user_id: int, role: str | Role) -> User | None:
        """Set a user's role. Raises InvalidRole before touching the store if role is unknown."""
        return self.update_user(user_id, role=Role.parse(role))

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        role=Role(row.role),
        full_name=row.full_name,
        department=row.department,
        position=row.position,
        created_at=row.created_at,
    )


def strip_user(user: User) -> User:
    """Return a copy of user with the password hash removed."""
    return replace(user, hashed_password=None)
