"""React to sign-in and sign-out by re-initialising the conversation store."""

from __future__ import annotations

import logging

from conversation_store import ConversationStore
from models import ChatUser
from sync_bridge import RemoteSyncBridge


logger = logging.getLogger(__name__)


class SessionController:
    """Drives the store and sync bridge through identity transitions.

    Anonymous conversations are never pushed, and they are not carried over
    to the account on sign-in.
    """

    def __init__(self, store: ConversationStore, bridge: RemoteSyncBridge | None) -> None:
        self._store = store
        self._bridge = bridge
        self._user: ChatUser | None = None
        self._initialised = False

    @property
    def user(self) -> ChatUser | None:
        return self._user

    @property
    def authenticated(self) -> bool:
        return self._user is not None

    def on_user_changed(self, user: ChatUser | None) -> None:
        previous_uid = self._user.uid if self._user else None
        next_uid = user.uid if user else None
        if self._initialised and previous_uid == next_uid:
            self._user = user
            return
        self._initialised = True
        self._user = user
        if user is None:
            self._enter_anonymous()
        else:
            self._enter_authenticated(user)

    def _enter_anonymous(self) -> None:
        if self._bridge is not None:
            self._bridge.unsubscribe()
        self._store.listener = None
        self._store.reset()
        logger.info("Signed out; started a fresh anonymous conversation")

    def _enter_authenticated(self, user: ChatUser) -> None:
        if self._bridge is None:
            logger.warning("Remote sync disabled; conversations for %s stay local", user.uid)
            self._store.listener = None
            return
        self._bridge.unsubscribe()
        self._store.listener = self._bridge
        self._bridge.subscribe(user.uid)
        logger.info("Subscribed to conversations for %s", user.uid)


__all__ = ["SessionController"]
