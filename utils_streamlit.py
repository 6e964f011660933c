"""Streamlit helpers shared by the chat surfaces."""

from __future__ import annotations

import hashlib
import mimetypes
from typing import Any

import streamlit as st

from models import FileAttachment


def show_error(message: str | None, *, st_module=st) -> None:
    """Render a consistent error block; empty messages are ignored."""

    if not message:
        return
    st_module.error(message)


def attachment_from_upload(uploaded_file: Any) -> FileAttachment | None:
    """Convert a Streamlit ``UploadedFile`` into a :class:`FileAttachment`."""

    if uploaded_file is None:
        return None

    name = getattr(uploaded_file, "name", None) or "attachment"
    mime = getattr(uploaded_file, "type", None) or mimetypes.guess_type(name)[0] or "application/octet-stream"

    try:
        data = uploaded_file.getvalue()
    except AttributeError:
        data = uploaded_file.read()

    if not data:
        return None
    return FileAttachment(name=name, data=data, mime=mime)


def digest(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


__all__ = ["attachment_from_upload", "digest", "show_error"]
