"""Firestore-backed per-user replica of the conversation list."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Protocol

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore

from models import Conversation


logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
CONVERSATIONS_COLLECTION = "conversations"

SnapshotCallback = Callable[[list[Conversation]], None]
ErrorCallback = Callable[[Exception], None]


class Subscription(Protocol):
    """Live query handle; ``is_active`` turns false once the stream has closed."""

    @property
    def is_active(self) -> bool: ...

    def unsubscribe(self) -> None: ...


class RemoteStore(Protocol):
    """Subset of a document database the sync bridge relies on."""

    def watch(self, user_id: str, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Subscription: ...

    def upsert(self, user_id: str, document: Mapping[str, Any]) -> None: ...

    def delete(self, user_id: str, conversation_id: str) -> None: ...


class ClosedSubscription:
    """Handle for a subscription that never started."""

    is_active = False

    def unsubscribe(self) -> None:
        return None


def create_firestore_client(project_id: str | None, credentials_path: str | None = None) -> firestore.Client:
    """Build a Firestore client from a service account file or ambient credentials."""

    if credentials_path:
        return firestore.Client.from_service_account_json(credentials_path, project=project_id)
    return firestore.Client(project=project_id)


def parse_snapshot(documents: Any) -> list[Conversation]:
    """Convert Firestore document snapshots into conversations ordered by ``createdAt``."""

    conversations: list[Conversation] = []
    for snapshot in documents or []:
        data = snapshot.to_dict() if hasattr(snapshot, "to_dict") else snapshot
        if not isinstance(data, Mapping):
            continue
        payload = dict(data)
        payload.setdefault("id", getattr(snapshot, "id", None))
        conversation = Conversation.from_dict(payload)
        if conversation.id:
            conversations.append(conversation)
    conversations.sort(key=lambda conversation: conversation.created_at)
    return conversations


class FirestoreConversationStore:
    """Stores one document per conversation under ``users/{uid}/conversations``."""

    def __init__(self, client: firestore.Client) -> None:
        self._client = client

    def _collection(self, user_id: str):
        return (
            self._client.collection(USERS_COLLECTION)
            .document(user_id)
            .collection(CONVERSATIONS_COLLECTION)
        )

    def watch(self, user_id: str, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Subscription:
        query = self._collection(user_id).order_by("createdAt")

        def _callback(documents, _changes, _read_time) -> None:
            try:
                conversations = parse_snapshot(documents)
            except Exception as exc:  # runs on the watch thread
                logger.exception("Failed to parse conversation snapshot for %s", user_id)
                on_error(exc)
                return
            on_snapshot(conversations)

        try:
            watch = query.on_snapshot(_callback)
        except gcp_exceptions.GoogleAPICallError as exc:
            logger.error("Firestore subscription failed for %s: %s", user_id, exc)
            on_error(exc)
            return ClosedSubscription()
        return watch

    def upsert(self, user_id: str, document: Mapping[str, Any]) -> None:
        conversation_id = str(document.get("id") or "")
        if not conversation_id:
            raise ValueError("Conversation document is missing an id")
        self._collection(user_id).document(conversation_id).set(dict(document))

    def delete(self, user_id: str, conversation_id: str) -> None:
        self._collection(user_id).document(conversation_id).delete()


__all__ = [
    "CONVERSATIONS_COLLECTION",
    "ClosedSubscription",
    "FirestoreConversationStore",
    "RemoteStore",
    "Subscription",
    "USERS_COLLECTION",
    "create_firestore_client",
    "parse_snapshot",
]
