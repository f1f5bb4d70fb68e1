"""
contact/store.py -- SQLAlchemy Core persistence for contact form messages.

Pattern: Repository + Data Mapper, same as auth/store.py. In-memory SQLite by
default; pass a file URL to keep messages across restarts.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ContactStore()
    saved = store.create_message(ContactMessage(name="A", email="a@x.fr", subject="Hi", message="..."))
    store.list_messages()
    store.delete_message(saved.id)
    store.close()
"""

import threading
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from contact.models import ContactMessage

_DEFAULT_DB_URL = "sqlite://"

metadata = MetaData()

_messages = Table(
    "contact_messages",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False),
    Column("subject", String(255), nullable=False),
    Column("message", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    sqlite_autoincrement=True,
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ContactStore:
    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        engine_kwargs: dict = {}
        if db_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if db_url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
        self.engine: Engine = create_engine(db_url, **engine_kwargs)
        self._lock = threading.Lock()
        metadata.create_all(self.engine)

    def create_message(self, message: ContactMessage) -> ContactMessage:
        """Insert a message and return it with id and created_at filled in."""
        created_at = _now_iso()
        with self._lock, self.engine.connect() as conn:
            result = conn.execute(
                _messages.insert().values(
                    name=message.name,
                    email=message.email,
                    subject=message.subject,
                    message=message.message,
                    created_at=created_at,
                )
            )
            conn.commit()
            message_id = result.inserted_primary_key[0]
        return ContactMessage(
            id=message_id,
            name=message.name,
            email=message.email,
            subject=message.subject,
            message=message.message,
            created_at=created_at,
        )

    def get_message(self, message_id: int) -> Optional[ContactMessage]:
        with self._lock, self.engine.connect() as conn:
            row = conn.execute(_messages.select().where(_messages.c.id == message_id)).fetchone()
        return _row_to_message(row) if row is not None else None

    def list_messages(self) -> list[ContactMessage]:
        """Return all messages, newest first."""
        with self._lock, self.engine.connect() as conn:
            rows = conn.execute(_messages.select().order_by(_messages.c.id.desc())).fetchall()
        return [_row_to_message(r) for r in rows]

    def delete_message(self, message_id: int) -> bool:
        """Delete a message. Returns True if deleted, False if not found."""
        with self._lock, self.engine.connect() as conn:
            result = conn.execute(_messages.delete().where(_messages.c.id == message_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


def _row_to_message(row) -> ContactMessage:
    return ContactMessage(
        id=row.id,
        name=row.name,
        email=row.email,
        subject=row.subject,
        message=row.message,
        created_at=row.created_at,
    )
