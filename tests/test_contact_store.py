"""Unit tests for contact/store.py -- contact message persistence.

Covers:
- create_message() fills in id and created_at
- list_messages() returns newest first
- delete_message() reports whether a row was removed
"""

import pytest

from contact.models import ContactMessage
from contact.store import ContactStore


@pytest.fixture
def store():
    s = ContactStore()
    yield s
    s.close()


def _message(subject: str = "Collaboration") -> ContactMessage:
    return ContactMessage(name="Jean Dupont", email="jean@example.com", subject=subject, message="Bonjour")


def test_create_assigns_id_and_timestamp(store):
    saved = store.create_message(_message())
    assert saved.id == 1
    assert saved.created_at
    assert store.get_message(saved.id).subject == "Collaboration"


def test_list_newest_first(store):
    for subject in ("a", "b", "c"):
        store.create_message(_message(subject))
    assert [m.subject for m in store.list_messages()] == ["c", "b", "a"]


def test_delete_message(store):
    saved = store.create_message(_message())
    assert store.delete_message(saved.id) is True
    assert store.get_message(saved.id) is None
    assert store.delete_message(saved.id) is False


def test_get_unknown_message(store):
    assert store.get_message(42) is None
