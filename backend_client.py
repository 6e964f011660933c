"""Thin client for the voice relay FastAPI surface."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

import requests

from models import ExchangeReply

BASE_URL = "http://localhost:3000"
MALFORMED_REPLY = "Server did not return audioBase64 / replyText"

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Relay request failed; ``str(error)`` is safe to show to the user."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _error_detail(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return ""
    if isinstance(payload, Mapping):
        detail = payload.get("error") or payload.get("detail")
        if detail:
            return str(detail)
    return ""


@dataclass
class VoiceChatClient:
    """REST client for the text and file exchange endpoints."""

    base_url: str = BASE_URL
    timeout: int = 60

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")

    # Internal helpers -----------------------------------------------------
    def _post(
        self,
        path: str,
        *,
        json_payload: Any | None = None,
        files: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> ExchangeReply:
        url = f"{self.base_url}{path if path.startswith('/') else '/' + path}"
        try:
            response = requests.post(
                url,
                json=json_payload,
                files=files,
                data=data,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Request to %s failed: %s", url, exc)
            raise BackendError(f"Network error: {exc}") from exc

        if not response.ok:
            detail = _error_detail(response)
            logger.error("Relay error (%s): %s", response.status_code, detail or response.reason)
            raise BackendError(
                f"Server error {response.status_code}: {detail}".rstrip(),
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise BackendError(MALFORMED_REPLY, status_code=response.status_code) from exc
        reply = ExchangeReply.from_dict(body) if isinstance(body, Mapping) else None
        if reply is None:
            logger.error("Relay reply missing fields: %s", body)
            raise BackendError(MALFORMED_REPLY, status_code=response.status_code)
        return reply

    # Public API -----------------------------------------------------------
    def send_text(self, text: str) -> ExchangeReply:
        return self._post("/api/voice-chat", json_payload={"text": text})

    def send_file(
        self,
        filename: str,
        data: bytes,
        *,
        mime: str = "application/octet-stream",
        question: str,
    ) -> ExchangeReply:
        return self._post(
            "/api/file-chat",
            files={"file": (filename, data, mime)},
            data={"question": question},
        )


__all__ = ["BASE_URL", "BackendError", "MALFORMED_REPLY", "VoiceChatClient"]
