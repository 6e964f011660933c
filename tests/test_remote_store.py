"""Tests for :mod:`services.remote_store` against an in-memory Firestore double."""

from __future__ import annotations

from typing import Any

import pytest
from google.api_core import exceptions as gcp_exceptions

from models import Conversation
from services.remote_store import FirestoreConversationStore, parse_snapshot


class FakeSnapshot:
    def __init__(self, doc_id: str, data: dict[str, Any]) -> None:
        self.id = doc_id
        self._data = data

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)


class FakeWatch:
    def __init__(self) -> None:
        self.unsubscribed = False
        self.is_active = True

    def unsubscribe(self) -> None:
        self.unsubscribed = True
        self.is_active = False


class FakeDocument:
    def __init__(self, db: "FakeFirestore", path: tuple[str, ...]) -> None:
        self._db = db
        self.path = path

    def collection(self, name: str) -> "FakeCollection":
        return FakeCollection(self._db, (*self.path, name))

    def set(self, data: dict[str, Any]) -> None:
        self._db.writes.append(("set", "/".join(self.path), data))

    def delete(self) -> None:
        self._db.writes.append(("delete", "/".join(self.path), None))


class FakeCollection:
    def __init__(self, db: "FakeFirestore", path: tuple[str, ...]) -> None:
        self._db = db
        self.path = path

    def document(self, doc_id: str) -> FakeDocument:
        return FakeDocument(self._db, (*self.path, doc_id))

    def order_by(self, field: str) -> "FakeCollection":
        self._db.ordered_by.append(field)
        return self

    def on_snapshot(self, callback):
        if self._db.watch_error is not None:
            raise self._db.watch_error
        self._db.watched.append(("/".join(self.path), callback))
        return self._db.watch


class FakeFirestore:
    def __init__(self) -> None:
        self.writes: list[tuple[str, str, Any]] = []
        self.ordered_by: list[str] = []
        self.watched: list[tuple[str, Any]] = []
        self.watch = FakeWatch()
        self.watch_error: Exception | None = None

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, (name,))


@pytest.fixture()
def db() -> FakeFirestore:
    return FakeFirestore()


def test_upsert_writes_full_document_under_user(db):
    store = FirestoreConversationStore(db)
    document = Conversation(id="c1", title="Trip", created_at=5).asdict()

    store.upsert("u1", document)
    store.delete("u1", "c1")

    assert db.writes == [
        ("set", "users/u1/conversations/c1", document),
        ("delete", "users/u1/conversations/c1", None),
    ]


def test_upsert_requires_id(db):
    with pytest.raises(ValueError):
        FirestoreConversationStore(db).upsert("u1", {"title": "x"})


def test_watch_orders_by_creation_and_parses_documents(db):
    received: list[list[Conversation]] = []
    errors: list[Exception] = []
    store = FirestoreConversationStore(db)

    subscription = store.watch("u1", received.append, errors.append)
    path, callback = db.watched[0]
    callback(
        [
            FakeSnapshot("b", {"title": "B", "createdAt": 20, "messages": []}),
            FakeSnapshot("a", {"id": "a", "title": "A", "createdAt": 10, "messages": [{"role": "user", "text": "hi"}]}),
        ],
        [],
        None,
    )
    subscription.unsubscribe()

    assert path == "users/u1/conversations"
    assert db.ordered_by == ["createdAt"]
    assert [c.id for c in received[0]] == ["a", "b"]
    assert received[0][0].messages[0].text == "hi"
    assert errors == []
    assert subscription is db.watch
    assert db.watch.unsubscribed


def test_watch_setup_failure_reports_error(db):
    db.watch_error = gcp_exceptions.PermissionDenied("Missing or insufficient permissions.")
    errors: list[Exception] = []

    subscription = FirestoreConversationStore(db).watch("u1", lambda _: None, errors.append)
    subscription.unsubscribe()

    assert len(errors) == 1
    assert isinstance(errors[0], gcp_exceptions.PermissionDenied)
    assert subscription.is_active is False


def test_parse_snapshot_skips_non_mappings():
    conversations = parse_snapshot([FakeSnapshot("x", {"title": "X", "createdAt": 1}), "garbage"])

    assert [c.id for c in conversations] == ["x"]
    assert parse_snapshot(None) == []
