"""Send one user utterance to the relay and record the exchange."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from audio_codec import AudioCodec, AudioDecodeError
from backend_client import BackendError
from conversation_store import ConversationStore
from models import ROLE_AI, ROLE_USER, ExchangeReply, FileAttachment, Message


logger = logging.getLogger(__name__)

EMPTY_SEND_MESSAGE = "Please type a message or upload a file."
NO_CONVERSATION_MESSAGE = "No active conversation. Create a new chat first."
BUSY_MESSAGE = "A reply is still in progress."
DEFAULT_FILE_QUESTION = "Summarize this file for me."


class ExchangeClient(Protocol):
    def send_text(self, text: str) -> ExchangeReply: ...

    def send_file(self, filename: str, data: bytes, *, mime: str = ..., question: str) -> ExchangeReply: ...


@dataclass(frozen=True)
class ExchangeResult:
    ok: bool
    error: str | None = None
    reply: Message | None = None
    validation: bool = False


def display_text(text: str | None, attachment: FileAttachment | None) -> str:
    """Return what the transcript shows for the outgoing user turn."""

    raw = text or ""
    if raw.strip():
        return raw
    if attachment is not None:
        return f"📎 {attachment.name}"
    return ""


class MessageExchangePipeline:
    """Appends the user turn, calls the relay once, then appends the ai turn.

    A failed exchange leaves the user turn in place with no reply, like a sent
    message that never got an answer.
    """

    def __init__(self, store: ConversationStore, client: ExchangeClient, codec: AudioCodec) -> None:
        self._store = store
        self._client = client
        self._codec = codec
        self.busy = False

    def send(self, text: str | None, attachment: FileAttachment | None = None) -> ExchangeResult:
        raw = text or ""
        if not raw.strip() and attachment is None:
            return ExchangeResult(ok=False, error=EMPTY_SEND_MESSAGE, validation=True)
        conversation = self._store.active
        if conversation is None:
            return ExchangeResult(ok=False, error=NO_CONVERSATION_MESSAGE, validation=True)
        if self.busy:
            return ExchangeResult(ok=False, error=BUSY_MESSAGE, validation=True)

        # The reply goes to the conversation that was active at send time.
        target_id = conversation.id
        shown = display_text(raw, attachment)
        if shown:
            self._store.append_message(target_id, Message(role=ROLE_USER, text=shown))

        self.busy = True
        try:
            reply = self._request(raw, attachment)
            handle = self._codec.decode(reply.audio_base64)
        except (BackendError, AudioDecodeError) as exc:
            logger.warning("Exchange failed: %s", exc)
            return ExchangeResult(ok=False, error=str(exc))
        finally:
            self.busy = False

        message = Message(role=ROLE_AI, text=reply.reply_text, audio_url=handle.url)
        self._store.append_message(target_id, message)
        return ExchangeResult(ok=True, reply=message)

    def _request(self, text: str, attachment: FileAttachment | None) -> ExchangeReply:
        if attachment is not None:
            question = text if text.strip() else DEFAULT_FILE_QUESTION
            return self._client.send_file(
                attachment.name,
                attachment.data,
                mime=attachment.mime,
                question=question,
            )
        return self._client.send_text(text)


__all__ = [
    "BUSY_MESSAGE",
    "DEFAULT_FILE_QUESTION",
    "EMPTY_SEND_MESSAGE",
    "ExchangeResult",
    "MessageExchangePipeline",
    "NO_CONVERSATION_MESSAGE",
    "display_text",
]
