"""Application configuration helpers for the Streamlit client and the relay."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import streamlit as st


DEFAULT_API_BASE = "http://localhost:3000"
DEFAULT_THEME_STORE = str(Path.home() / ".voicechat" / "preferences.json")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppSettings:
    """Immutable configuration bundle for the chat client."""

    api_base: str
    request_timeout: int
    firebase_api_key: str | None
    firebase_project_id: str | None
    firestore_credentials: str | None
    enable_remote_sync: bool
    openai_api_key: str | None
    stt_language: str
    theme_store_path: str
    log_level: str


@dataclass(frozen=True)
class RelaySettings:
    """Configuration for the FastAPI relay process."""

    gemini_api_key: str | None
    gemini_model: str
    elevenlabs_api_key: str | None
    voice_id: str | None
    elevenlabs_model: str
    openai_api_key: str | None
    port: int
    log_level: str


def _safe_secret(key: str) -> Any:
    """Return a Streamlit secret when available."""

    try:
        return st.secrets.get(key)
    except Exception:
        return None


def _setting(key: str, default: Any = None) -> Any:
    value = _safe_secret(key)
    if value is None or value == "":
        value = os.getenv(key)
    return default if value is None or value == "" else value


def _coerce_bool(value: Any, default: bool = False) -> bool:
    """Parse truthy/falsey strings and primitives into booleans."""

    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if not text:
        return default
    if text in {"1", "true", "yes", "on", "enabled", "enable"}:
        return True
    if text in {"0", "false", "no", "off", "disabled", "disable"}:
        return False
    return default


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def load_settings() -> AppSettings:
    """Collect client configuration from secrets and the environment."""

    project_id = _setting("FIREBASE_PROJECT_ID")
    return AppSettings(
        api_base=str(_setting("VOICECHAT_API", DEFAULT_API_BASE)).rstrip("/"),
        request_timeout=_coerce_int(_setting("VOICECHAT_TIMEOUT"), 60),
        firebase_api_key=_setting("FIREBASE_API_KEY"),
        firebase_project_id=project_id,
        firestore_credentials=_setting("FIRESTORE_CREDENTIALS"),
        enable_remote_sync=_coerce_bool(_setting("ENABLE_REMOTE_SYNC"), default=bool(project_id)),
        openai_api_key=_setting("OPENAI_API_KEY"),
        stt_language=str(_setting("STT_LANGUAGE", "en-IN")),
        theme_store_path=str(_setting("THEME_STORE_PATH", DEFAULT_THEME_STORE)),
        log_level=str(_setting("LOG_LEVEL", "INFO")).upper(),
    )


def load_relay_settings() -> RelaySettings:
    """Collect relay configuration from the environment only."""

    settings = RelaySettings(
        gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        elevenlabs_api_key=os.getenv("ELEVENLABS_API_KEY"),
        voice_id=os.getenv("VOICE_ID"),
        elevenlabs_model=os.getenv("ELEVENLABS_MODEL", "eleven_flash_v2_5"),
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        port=_coerce_int(os.getenv("RELAY_PORT"), 3000),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
    if not settings.elevenlabs_api_key:
        logger.warning("ELEVENLABS_API_KEY is missing from the environment")
    if not settings.voice_id:
        logger.warning("VOICE_ID is missing from the environment")
    return settings


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = [
    "AppSettings",
    "DEFAULT_API_BASE",
    "RelaySettings",
    "configure_logging",
    "load_relay_settings",
    "load_settings",
]
