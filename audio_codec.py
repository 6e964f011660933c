"""Turn base64 audio from the relay into playable, session-scoped handles."""

from __future__ import annotations

import base64
import binascii
import uuid
from dataclasses import dataclass
from typing import Iterable


DEFAULT_AUDIO_MIME = "audio/mpeg"


class AudioDecodeError(ValueError):
    """Raised when the relay's audio payload is not valid base64."""


@dataclass(frozen=True)
class AudioHandle:
    url: str
    mime: str
    data: bytes


class AudioCodec:
    """Registry of decoded audio clips keyed by ``blob:`` style urls.

    Urls only resolve within the process that minted them, so a message
    reloaded from the remote store keeps its text but loses playable audio.
    """

    def __init__(self) -> None:
        self._clips: dict[str, AudioHandle] = {}

    def decode(self, audio_base64: str, *, mime: str = DEFAULT_AUDIO_MIME) -> AudioHandle:
        if not isinstance(audio_base64, str) or not audio_base64.strip():
            raise AudioDecodeError("Empty audio payload")
        try:
            data = base64.b64decode(audio_base64.strip(), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise AudioDecodeError(f"Invalid audio payload: {exc}") from exc
        handle = AudioHandle(url=f"blob:{uuid.uuid4()}", mime=mime, data=data)
        self._clips[handle.url] = handle
        return handle

    def resolve(self, url: str | None) -> bytes | None:
        if not url:
            return None
        handle = self._clips.get(url)
        return handle.data if handle else None

    def release(self, url: str) -> None:
        self._clips.pop(url, None)

    def retain(self, urls: Iterable[str]) -> int:
        """Release every clip whose url is not in ``urls``; return how many went."""

        keep = set(urls)
        stale = [url for url in self._clips if url not in keep]
        for url in stale:
            del self._clips[url]
        return len(stale)

    def __len__(self) -> int:
        return len(self._clips)


__all__ = ["AudioCodec", "AudioDecodeError", "AudioHandle", "DEFAULT_AUDIO_MIME"]
