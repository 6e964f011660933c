"""Speech-to-text for the microphone input, backed by OpenAI Whisper."""

from __future__ import annotations

import io
import logging
from typing import Any

from openai import OpenAI


logger = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE = (
    "Speech recognition is not available here. Configure OPENAI_API_KEY to enable the microphone."
)
WHISPER_MODEL = "whisper-1"


class TranscriptionError(Exception):
    """Raised when a recording could not be turned into text."""


def extract_transcript_text(transcript: Any) -> str | None:
    if not transcript:
        return None
    direct = getattr(transcript, "text", None)
    if isinstance(direct, str) and direct.strip():
        return direct.strip()
    data = None
    if isinstance(transcript, dict):
        data = transcript
    else:
        method = getattr(transcript, "model_dump", None)
        if callable(method):
            candidate = method()
            if isinstance(candidate, dict):
                data = candidate
    if data:
        text = data.get("text")
        if isinstance(text, str) and text.strip():
            return text.strip()
        segments = data.get("segments")
        if isinstance(segments, list):
            combined = " ".join(
                seg.get("text", "").strip() for seg in segments if isinstance(seg, dict) and seg.get("text")
            ).strip()
            if combined:
                return combined
    return None


def build_openai_client(api_key: str | None) -> OpenAI | None:
    if not api_key:
        return None
    return OpenAI(api_key=api_key)


class SpeechTranscriber:
    def __init__(self, client: Any | None, *, language: str | None = "en-IN") -> None:
        self._client = client
        # Whisper takes ISO-639-1 codes, so "en-IN" becomes "en".
        self._language = (language or "").split("-")[0] or None

    @property
    def available(self) -> bool:
        return self._client is not None

    def transcribe(self, audio_bytes: bytes, *, filename: str = "input.wav") -> str:
        if self._client is None:
            raise TranscriptionError(UNSUPPORTED_MESSAGE)
        if not audio_bytes:
            raise TranscriptionError("No audio was recorded.")
        # The OpenAI API expects a file with a name.
        buf = io.BytesIO(audio_bytes)
        buf.name = filename
        kwargs: dict[str, Any] = {"model": WHISPER_MODEL, "file": buf}
        if self._language:
            kwargs["language"] = self._language
        try:
            transcript = self._client.audio.transcriptions.create(**kwargs)
        except Exception as exc:
            logger.exception("Whisper transcription failed")
            raise TranscriptionError(f"Speech recognition error: {exc}") from exc
        text = extract_transcript_text(transcript)
        if not text:
            raise TranscriptionError("No speech detected.")
        return text


__all__ = [
    "SpeechTranscriber",
    "TranscriptionError",
    "UNSUPPORTED_MESSAGE",
    "build_openai_client",
    "extract_transcript_text",
]
