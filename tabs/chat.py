"""Chat transcript renderer."""

from __future__ import annotations

from typing import Callable

import streamlit as st

from models import Conversation
from ui_components import render_empty_state, render_message


def render_tab(
    conversation: Conversation | None,
    resolve_audio: Callable[[str | None], bytes | None],
    *,
    autoplay_url: str | None = None,
    pending_attachment: str | None = None,
    st_module=st,
) -> None:
    """Render the active conversation's messages in order."""

    if pending_attachment:
        st_module.info(f"Attachment ready: {pending_attachment}")

    messages = conversation.messages if conversation else ()
    if not messages:
        render_empty_state(st_module=st_module)
        return
    for message in messages:
        render_message(
            message,
            resolve_audio(message.audio_url),
            autoplay=bool(autoplay_url) and message.audio_url == autoplay_url,
            st_module=st_module,
        )
