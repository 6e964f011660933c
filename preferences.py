"""Locally persisted UI preferences."""

from __future__ import annotations

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

THEME_KEY = "voice-ai-theme"
THEMES = ("light", "dark")
DEFAULT_THEME = "light"


def load_theme(path: str | Path) -> str:
    """Return the stored theme, or ``light`` when nothing valid is stored."""

    try:
        raw = Path(path).read_text(encoding="utf-8")
        data = json.loads(raw)
    except FileNotFoundError:
        return DEFAULT_THEME
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable preferences at %s: %s", path, exc)
        return DEFAULT_THEME
    theme = data.get(THEME_KEY) if isinstance(data, dict) else None
    return theme if theme in THEMES else DEFAULT_THEME


def save_theme(path: str | Path, theme: str) -> None:
    if theme not in THEMES:
        raise ValueError(f"Unknown theme: {theme!r}")
    target = Path(path)
    data: dict = {}
    if target.exists():
        try:
            existing = json.loads(target.read_text(encoding="utf-8"))
            if isinstance(existing, dict):
                data = existing
        except (OSError, json.JSONDecodeError):
            data = {}
    data[THEME_KEY] = theme
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(data, indent=2), encoding="utf-8")


def toggle_theme(theme: str) -> str:
    return "dark" if theme == "light" else "light"


__all__ = ["DEFAULT_THEME", "THEMES", "THEME_KEY", "load_theme", "save_theme", "toggle_theme"]
