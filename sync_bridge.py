"""Mirror the conversation store to a per-user remote replica.

Local mutations are pushed out as whole documents (last write wins, no merge).
Remote change notifications arrive on the database client's own thread, so
they are only queued there and applied to the store by :meth:`drain`, which the
UI calls from its single script thread.
"""

from __future__ import annotations

import enum
import logging
import queue
from typing import Any

from conversation_store import ConversationStore
from models import Conversation
from services.remote_store import RemoteStore, Subscription


logger = logging.getLogger(__name__)


class SyncState(str, enum.Enum):
    UNSUBSCRIBED = "unsubscribed"
    LOADING = "loading"
    SYNCED = "synced"
    ERROR = "error"


_SNAPSHOT = "snapshot"
_ERROR = "error"
STREAM_CLOSED_MESSAGE = "Conversation stream closed by the server"


class RemoteSyncBridge:
    """Pushes local edits and reconciles remote snapshots for one signed-in user."""

    def __init__(self, remote: RemoteStore, store: ConversationStore) -> None:
        self._remote = remote
        self._store = store
        self._user_id: str | None = None
        self._subscription: Subscription | None = None
        self._generation = 0
        self._pending: "queue.Queue[tuple[int, str, Any]]" = queue.Queue()
        self.state = SyncState.UNSUBSCRIBED
        self.last_error: str | None = None

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def loading(self) -> bool:
        return self.state is SyncState.LOADING

    # Subscription -------------------------------------------------------
    def subscribe(self, user_id: str) -> None:
        self.unsubscribe()
        self._user_id = user_id
        self.state = SyncState.LOADING
        self.last_error = None
        generation = self._generation

        def on_snapshot(conversations: list[Conversation]) -> None:
            self._pending.put((generation, _SNAPSHOT, conversations))

        def on_error(error: Exception) -> None:
            self._pending.put((generation, _ERROR, error))

        try:
            self._subscription = self._remote.watch(user_id, on_snapshot, on_error)
        except Exception as exc:
            logger.exception("Could not subscribe to conversations for %s", user_id)
            self._fail(exc)

    def unsubscribe(self) -> None:
        if self._subscription is not None:
            try:
                self._subscription.unsubscribe()
            except Exception:
                logger.exception("Failed to tear down conversation subscription")
        self._subscription = None
        self._user_id = None
        self._generation += 1
        self.state = SyncState.UNSUBSCRIBED
        self.last_error = None

    def drain(self) -> int:
        """Apply queued notifications for the live subscription; return how many."""

        applied = 0
        while True:
            try:
                generation, kind, payload = self._pending.get_nowait()
            except queue.Empty:
                return applied + self._check_stream()
            if generation != self._generation or self._user_id is None:
                continue
            if self.state is SyncState.ERROR:
                continue
            if kind == _SNAPSHOT:
                self.apply_snapshot(payload)
            else:
                self._fail(payload)
            applied += 1

    def apply_snapshot(self, conversations: list[Conversation]) -> None:
        ordered = sorted(conversations, key=lambda conversation: conversation.created_at)
        # An empty result pushes the synthesized default back out.
        self._store.replace_all(ordered)
        self.state = SyncState.SYNCED

    # Outbound -----------------------------------------------------------
    def push(self, conversation: Conversation) -> None:
        if self._user_id is None:
            return
        try:
            self._remote.upsert(self._user_id, conversation.asdict())
        except Exception:
            logger.exception("Error saving conversation %s", conversation.id)

    def remove(self, conversation_id: str) -> None:
        if self._user_id is None:
            return
        try:
            self._remote.delete(self._user_id, conversation_id)
        except Exception:
            logger.exception("Error deleting conversation %s", conversation_id)

    # Internal helpers ---------------------------------------------------
    def _check_stream(self) -> int:
        # The client closes a failed stream without calling back.
        if self.state not in (SyncState.LOADING, SyncState.SYNCED):
            return 0
        if self._subscription is None or self._subscription.is_active:
            return 0
        self._fail(RuntimeError(STREAM_CLOSED_MESSAGE))
        return 1

    def _fail(self, error: Exception) -> None:
        self.state = SyncState.ERROR
        self.last_error = str(error) or error.__class__.__name__
        logger.error("Conversation sync stopped: %s", self.last_error)


__all__ = ["RemoteSyncBridge", "STREAM_CLOSED_MESSAGE", "SyncState"]
