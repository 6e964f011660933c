"""Extract prompt text from documents uploaded to the file-chat endpoint."""

from __future__ import annotations

import io
import logging

from pypdf import PdfReader
from pypdf.errors import PdfReadError


logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
TEXT_MIME = "text/plain"


class UnsupportedDocumentError(ValueError):
    """The upload is neither a PDF nor plain text."""


class DocumentReadError(Exception):
    """The upload has a supported type but its content could not be parsed."""


def _is_pdf(mime: str, filename: str) -> bool:
    return mime == PDF_MIME or (mime in ("", "application/octet-stream") and filename.lower().endswith(".pdf"))


def _is_text(mime: str, filename: str) -> bool:
    return mime == TEXT_MIME or (mime in ("", "application/octet-stream") and filename.lower().endswith(".txt"))


def extract_text(data: bytes, mime: str | None, filename: str = "") -> str:
    mime = (mime or "").split(";")[0].strip().lower()
    if _is_pdf(mime, filename):
        try:
            reader = PdfReader(io.BytesIO(data))
            return "\n\n".join(filter(None, (page.extract_text() for page in reader.pages)))
        except PdfReadError as exc:
            logger.warning("Could not parse PDF %s: %s", filename or "<upload>", exc)
            raise DocumentReadError(f"Could not read PDF: {exc}") from exc
    if _is_text(mime, filename):
        return data.decode("utf-8", errors="replace")
    raise UnsupportedDocumentError("Unsupported file type")


def build_document_prompt(document_text: str, question: str) -> str:
    return f"\nHere is a document:\n{document_text}\n\nUser question:\n{question}\n"


__all__ = ["DocumentReadError", "PDF_MIME", "TEXT_MIME", "UnsupportedDocumentError", "build_document_prompt", "extract_text"]
