"""FastAPI relay: text, recorded audio or a document in; reply text plus speech out.

Run with ``uvicorn relay_app:create_app --factory --port 3000`` or
``python relay_app.py``.
"""

from __future__ import annotations

import logging
import os

import uvicorn
from fastapi import FastAPI, File, Form, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app_settings import configure_logging, load_relay_settings
from services.document_service import UnsupportedDocumentError, build_document_prompt, extract_text
from services.relay_service import VoiceRelayService


logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_QUESTION = "Summarize this document"


class TextExchangeRequest(BaseModel):
    text: str | None = None


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def create_app(service: VoiceRelayService | None = None) -> FastAPI:
    if service is None:
        service = VoiceRelayService(load_relay_settings())

    app = FastAPI(title="Voice Chat Relay")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/api/voice-chat")
    def voice_chat(payload: TextExchangeRequest):
        if not payload.text:
            return _error("No text provided", 400)
        try:
            return service.process_text(payload.text)
        except Exception as exc:
            logger.exception("/api/voice-chat error")
            return _error(str(exc), 500)

    @app.post("/api/voice-chat-audio")
    def voice_chat_audio(audio: UploadFile | None = File(default=None)):
        if audio is None:
            return _error("No audio file received", 400)
        try:
            transcript = service.transcribe(audio.file.read(), audio.filename or "audio.webm")
            logger.info("Transcript from STT: %s", transcript)
            if not transcript:
                return _error("No speech detected", 400)
            result = service.process_text(transcript)
        except Exception as exc:
            logger.exception("/api/voice-chat-audio error")
            return _error(str(exc), 500)
        return {"transcript": transcript, **result}

    @app.post("/api/file-chat")
    def file_chat(
        file: UploadFile | None = File(default=None),
        question: str | None = Form(default=None),
    ):
        if file is None:
            return _error("No file uploaded", 400)
        try:
            document_text = extract_text(file.file.read(), file.content_type, file.filename or "")
            prompt = build_document_prompt(document_text, question or DEFAULT_DOCUMENT_QUESTION)
            return service.process_text(prompt)
        except UnsupportedDocumentError as exc:
            return _error(str(exc), 400)
        except Exception as exc:
            logger.exception("File chat error")
            return _error(str(exc), 500)

    return app


def main() -> None:
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    settings = load_relay_settings()
    logger.info("Voice Chat API running at http://localhost:%s", settings.port)
    uvicorn.run(create_app(VoiceRelayService(settings)), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":  # pragma: no cover
    main()
