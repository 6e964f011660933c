"""Reusable Streamlit UI primitives."""

from __future__ import annotations

import html
from typing import Sequence

import streamlit as st

from models import ROLE_AI, Conversation, Message


THEME_PALETTES: dict[str, dict[str, str]] = {
    "light": {
        "background": "#f5f7fb",
        "surface": "#ffffff",
        "text": "#111827",
        "muted": "#6b7280",
        "accent": "#1976d2",
        "active": "#e3f2fd",
    },
    "dark": {
        "background": "#0b1120",
        "surface": "#1f2937",
        "text": "#e5e7eb",
        "muted": "#9ca3af",
        "accent": "#60a5fa",
        "active": "#111827",
    },
}


def theme_css(theme: str) -> str:
    """Return the CSS block applying ``theme`` to the Streamlit shell."""

    palette = THEME_PALETTES.get(theme, THEME_PALETTES["light"])
    css_chunks = [
        f".stApp {{background-color:{palette['background']};color:{palette['text']};}}",
        f"section[data-testid='stSidebar'] {{background-color:{palette['surface']};}}",
        f"section[data-testid='stSidebar'] * {{color:{palette['text']};}}",
        f"div[data-testid='stChatMessage'] {{background-color:{palette['surface']};border-radius:12px;}}",
        f".chat-title {{font-size:1.6rem;font-weight:500;text-align:center;color:{palette['text']};}}",
        f".chat-subtitle {{text-align:center;color:{palette['muted']};margin-bottom:0.75rem;}}",
        f".chat-active {{background-color:{palette['active']};border-radius:6px;}}",
        f"a, .chat-accent {{color:{palette['accent']};}}",
    ]
    return "\n".join(css_chunks)


def render_theme(theme: str, *, st_module=st) -> None:
    st_module.markdown(f"<style>\n{theme_css(theme)}\n</style>", unsafe_allow_html=True)


def conversation_label(conversation: Conversation, *, active_id: str | None = None, max_chars: int = 28) -> str:
    """Single-line sidebar label, truncated and marked when active."""

    title = conversation.title.strip() or "Untitled chat"
    if len(title) > max_chars:
        title = title[: max_chars - 1].rstrip() + "…"
    return f"● {title}" if conversation.id == active_id else title


def chat_role(message: Message) -> str:
    return "assistant" if message.role == ROLE_AI else "user"


def render_message(
    message: Message,
    audio: bytes | None,
    *,
    autoplay: bool = False,
    mime: str = "audio/mpeg",
    st_module=st,
) -> None:
    """Render one transcript entry with its reply audio when still playable."""

    with st_module.chat_message(chat_role(message)):
        st_module.markdown(html.escape(message.text).replace("\n", "  \n"))
        if message.role != ROLE_AI or not message.audio_url:
            return
        if audio:
            st_module.audio(audio, format=mime, autoplay=autoplay)
        else:
            st_module.caption("Audio not available for this reply.")


def render_empty_state(*, st_module=st) -> None:
    st_module.markdown(
        "<div class='chat-subtitle'>Start talking! Type a message, press the mic, or attach a file.</div>",
        unsafe_allow_html=True,
    )


def render_header(title: str, subtitle: str | None = None, *, st_module=st) -> None:
    st_module.markdown(f"<div class='chat-title'>{html.escape(title)}</div>", unsafe_allow_html=True)
    if subtitle:
        st_module.markdown(f"<div class='chat-subtitle'>{html.escape(subtitle)}</div>", unsafe_allow_html=True)


def message_counts(messages: Sequence[Message]) -> tuple[int, int]:
    """Return ``(user_turns, ai_turns)`` for the sidebar summary."""

    ai_turns = sum(1 for message in messages if message.role == ROLE_AI)
    return len(messages) - ai_turns, ai_turns


__all__ = [
    "THEME_PALETTES",
    "chat_role",
    "conversation_label",
    "message_counts",
    "render_empty_state",
    "render_header",
    "render_message",
    "render_theme",
    "theme_css",
]
