"""Language model, speech synthesis and transcription calls behind the relay."""

from __future__ import annotations

import base64
import io
import logging
from typing import Any

import google.generativeai as genai
import requests

from app_settings import RelaySettings
from speech_input import build_openai_client, extract_transcript_text


logger = logging.getLogger(__name__)

ELEVENLABS_TTS_URL = "https://api.elevenlabs.io/v1/text-to-speech"


class RelayError(Exception):
    """A provider call failed; the message is returned to the client as ``error``."""


def _response_text(response: Any) -> str | None:
    try:
        text = getattr(response, "text", None)
    except ValueError:
        # Raised by the SDK when the candidate has no text part.
        text = None
    if isinstance(text, str) and text.strip():
        return text
    candidates = getattr(response, "candidates", None) or []
    for candidate in candidates:
        parts = getattr(getattr(candidate, "content", None), "parts", None) or []
        for part in parts:
            part_text = getattr(part, "text", None)
            if isinstance(part_text, str) and part_text.strip():
                return part_text
    return None


class VoiceRelayService:
    """Gemini for replies, ElevenLabs for speech, Whisper for recorded audio."""

    def __init__(
        self,
        settings: RelaySettings,
        *,
        genai_module: Any = genai,
        openai_client: Any | None = None,
        tts_timeout: int = 60,
    ) -> None:
        self._settings = settings
        self._genai = genai_module
        if settings.gemini_api_key and genai_module is not None:
            genai_module.configure(api_key=settings.gemini_api_key)
        self._openai = openai_client if openai_client is not None else build_openai_client(settings.openai_api_key)
        self._tts_timeout = tts_timeout

    def generate_reply(self, text: str) -> str:
        logger.info("User text: %s", text[:200])
        model = self._genai.GenerativeModel(self._settings.gemini_model)
        response = model.generate_content(text)
        reply = _response_text(response)
        if not reply:
            logger.error("No text returned from Gemini: %s", response)
            raise RelayError("No reply from Gemini")
        logger.info("Gemini reply: %s", reply[:200])
        return reply

    def synthesize(self, text: str) -> bytes:
        response = requests.post(
            f"{ELEVENLABS_TTS_URL}/{self._settings.voice_id}",
            headers={
                "xi-api-key": self._settings.elevenlabs_api_key or "",
                "Content-Type": "application/json",
                "Accept": "audio/mpeg",
            },
            json={"text": text, "model_id": self._settings.elevenlabs_model},
            timeout=self._tts_timeout,
        )
        if not response.ok:
            logger.error("ElevenLabs error: %s %s %s", response.status_code, response.reason, response.text)
            raise RelayError(f"ElevenLabs TTS failed: {response.text}")
        logger.info("ElevenLabs Content-Type: %s", response.headers.get("Content-Type"))
        audio = response.content
        if not audio:
            raise RelayError("Empty audio from ElevenLabs")
        return audio

    def process_text(self, text: str) -> dict[str, str]:
        reply_text = self.generate_reply(text)
        audio = self.synthesize(reply_text)
        return {"replyText": reply_text, "audioBase64": base64.b64encode(audio).decode("ascii")}

    def transcribe(self, data: bytes, filename: str = "audio.webm") -> str:
        if self._openai is None:
            raise RelayError("Speech-to-text is not configured")
        buf = io.BytesIO(data)
        buf.name = filename
        transcript = self._openai.audio.transcriptions.create(model="whisper-1", file=buf)
        return extract_transcript_text(transcript) or ""


__all__ = ["ELEVENLABS_TTS_URL", "RelayError", "VoiceRelayService"]
