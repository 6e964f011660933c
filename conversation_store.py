"""In-process conversation cache mirrored to a remote replica when signed in."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Protocol, Sequence

from models import Conversation, Message, create_default


logger = logging.getLogger(__name__)

MessageTransform = Callable[[tuple[Message, ...]], Sequence[Message]]


class SyncListener(Protocol):
    def push(self, conversation: Conversation) -> None: ...

    def remove(self, conversation_id: str) -> None: ...


class ConversationStore:
    """Ordered collection of conversations plus the active selection.

    The store is never empty: initialisation, ``delete`` and ``replace_all``
    synthesize a default conversation when nothing would remain. When a
    ``listener`` is attached every mutation is pushed to it; anonymous
    sessions run without one.
    """

    def __init__(self, listener: SyncListener | None = None) -> None:
        self.listener = listener
        first = create_default(1)
        self._conversations: list[Conversation] = [first]
        self._active_id: str | None = first.id

    # Read access --------------------------------------------------------
    @property
    def conversations(self) -> tuple[Conversation, ...]:
        return tuple(self._conversations)

    @property
    def active_id(self) -> str | None:
        return self._active_id

    @property
    def active(self) -> Conversation | None:
        found = self.get(self._active_id) if self._active_id else None
        if found is not None:
            return found
        return self._conversations[0] if self._conversations else None

    def get(self, conversation_id: str) -> Conversation | None:
        for conversation in self._conversations:
            if conversation.id == conversation_id:
                return conversation
        return None

    def __len__(self) -> int:
        return len(self._conversations)

    # Mutations ----------------------------------------------------------
    def new_conversation(self) -> Conversation:
        conversation = create_default(len(self._conversations) + 1)
        self._conversations.append(conversation)
        self._active_id = conversation.id
        self._push(conversation)
        return conversation

    def set_active(self, conversation_id: str) -> bool:
        if self.get(conversation_id) is None:
            logger.warning("Ignoring selection of unknown conversation %s", conversation_id)
            return False
        self._active_id = conversation_id
        return True

    def mutate_messages(self, conversation_id: str, transform: MessageTransform) -> Conversation | None:
        return self._replace(conversation_id, lambda conversation: conversation.with_messages(transform))

    def append_message(self, conversation_id: str, message: Message) -> Conversation | None:
        return self.mutate_messages(conversation_id, lambda messages: (*messages, message))

    def rename(self, conversation_id: str, title: str | None) -> bool:
        cleaned = (title or "").strip()
        if not cleaned:
            return False
        return self._replace(conversation_id, lambda conversation: conversation.with_title(cleaned)) is not None

    def clear(self, conversation_id: str) -> Conversation | None:
        return self.mutate_messages(conversation_id, lambda _messages: ())

    def delete(self, conversation_id: str) -> bool:
        remaining = [c for c in self._conversations if c.id != conversation_id]
        if len(remaining) == len(self._conversations):
            return False
        self._conversations = remaining
        if self.listener is not None:
            self.listener.remove(conversation_id)
        if not remaining:
            self._install_default()
        elif self._active_id == conversation_id:
            self._active_id = remaining[0].id
        return True

    def replace_all(self, conversations: Iterable[Conversation]) -> None:
        """Install ``conversations`` wholesale, keeping the active id if present."""

        incoming = list(conversations)
        if not incoming:
            self._conversations = []
            self._install_default()
            return
        self._conversations = incoming
        if self.get(self._active_id or "") is None:
            self._active_id = incoming[0].id

    def reset(self) -> Conversation:
        """Drop every conversation and start over with a single default one."""

        self._conversations = []
        return self._install_default(push=False)

    # Internal helpers ---------------------------------------------------
    def _install_default(self, *, push: bool = True) -> Conversation:
        conversation = create_default(1)
        self._conversations = [conversation]
        self._active_id = conversation.id
        if push:
            self._push(conversation)
        return conversation

    def _replace(
        self,
        conversation_id: str,
        update: Callable[[Conversation], Conversation],
    ) -> Conversation | None:
        for index, conversation in enumerate(self._conversations):
            if conversation.id == conversation_id:
                updated = update(conversation)
                self._conversations[index] = updated
                self._push(updated)
                return updated
        return None

    def _push(self, conversation: Conversation) -> None:
        if self.listener is not None:
            self.listener.push(conversation)


__all__ = ["ConversationStore", "MessageTransform", "SyncListener"]
