"""Shared dataclasses for conversations, messages and relay replies."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping, Sequence


logger = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_AI = "ai"
ROLES = (ROLE_USER, ROLE_AI)


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""

    return int(time.time() * 1000)


def new_conversation_id() -> str:
    """Return a random conversation id, falling back to a timestamp.

    The fallback only triggers when the OS has no secure random source and is
    not collision-free.
    """

    try:
        return str(uuid.uuid4())
    except NotImplementedError:
        fallback = str(now_ms())
        logger.warning("Secure random source unavailable; using timestamp id %s", fallback)
        return fallback


def _coerce_ms(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value))
        except ValueError:
            return default
    # Firestore hands back datetimes for timestamp fields written by other clients.
    to_ts = getattr(value, "timestamp", None)
    if callable(to_ts):
        try:
            return int(to_ts() * 1000)
        except (TypeError, ValueError):
            return default
    return default


@dataclass(frozen=True)
class Message:
    """One turn of a conversation."""

    role: str
    text: str
    timestamp: int = field(default_factory=now_ms)
    audio_url: str | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Message":
        role = payload.get("role")
        if role not in ROLES:
            role = ROLE_USER
        text = payload.get("text")
        audio_url = payload.get("audioUrl")
        return cls(
            role=str(role),
            text=text if isinstance(text, str) else str(text or ""),
            timestamp=_coerce_ms(payload.get("timestamp"), 0),
            audio_url=audio_url if isinstance(audio_url, str) and audio_url else None,
        )

    def asdict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "role": self.role,
            "text": self.text,
            "timestamp": self.timestamp,
        }
        if self.audio_url:
            data["audioUrl"] = self.audio_url
        return data


@dataclass(frozen=True)
class Conversation:
    """A titled chat session owning an ordered message sequence."""

    id: str
    title: str
    created_at: int
    messages: tuple[Message, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Conversation":
        conversation_id = str(payload.get("id") or "")
        title = payload.get("title")
        messages_field = payload.get("messages") or []
        messages: list[Message] = []
        if isinstance(messages_field, Sequence) and not isinstance(messages_field, str):
            messages = [Message.from_dict(item) for item in messages_field if isinstance(item, Mapping)]
        return cls(
            id=conversation_id,
            title=title if isinstance(title, str) else "",
            created_at=_coerce_ms(payload.get("createdAt"), 0),
            messages=tuple(messages),
        )

    def asdict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "createdAt": self.created_at,
            "messages": [message.asdict() for message in self.messages],
        }

    def with_messages(self, transform: Callable[[tuple[Message, ...]], Sequence[Message]]) -> "Conversation":
        return replace(self, messages=tuple(transform(self.messages)))

    def with_title(self, title: str) -> "Conversation":
        return replace(self, title=title)


def create_default(index: int = 1) -> Conversation:
    """Return a fresh empty conversation titled ``New Chat {index}``."""

    return Conversation(
        id=new_conversation_id(),
        title=f"New Chat {index}",
        created_at=now_ms(),
    )


@dataclass(frozen=True)
class ExchangeReply:
    """Successful relay response for a single exchange."""

    reply_text: str
    audio_base64: str

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ExchangeReply | None":
        reply_text = payload.get("replyText")
        audio_base64 = payload.get("audioBase64")
        if not isinstance(reply_text, str) or not reply_text:
            return None
        if not isinstance(audio_base64, str) or not audio_base64:
            return None
        return cls(reply_text=reply_text, audio_base64=audio_base64)


@dataclass(frozen=True)
class ChatUser:
    """Identity of a signed-in user as reported by the identity provider."""

    uid: str
    name: str | None = None
    email: str | None = None
    photo_url: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.email or "Signed in"


@dataclass(frozen=True)
class FileAttachment:
    """File picked in the UI, sent alongside an optional question."""

    name: str
    data: bytes
    mime: str = "application/octet-stream"


__all__ = [
    "ChatUser",
    "Conversation",
    "ExchangeReply",
    "FileAttachment",
    "Message",
    "ROLES",
    "ROLE_AI",
    "ROLE_USER",
    "create_default",
    "new_conversation_id",
    "now_ms",
]
