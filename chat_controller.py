"""Single owner of the chat client's state, mutated only through named operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from audio_codec import AudioCodec
from backend_client import VoiceChatClient
from conversation_store import ConversationStore
from exchange_pipeline import ExchangeResult, MessageExchangePipeline
from models import ChatUser, Conversation, FileAttachment
from preferences import load_theme, save_theme, toggle_theme
from services.identity_service import AuthSession, FirebaseIdentityService, IdentityError, user_from_oidc
from services.remote_store import RemoteStore
from session_controller import SessionController
from speech_input import SpeechTranscriber, TranscriptionError, UNSUPPORTED_MESSAGE, build_openai_client
from sync_bridge import RemoteSyncBridge


logger = logging.getLogger(__name__)


@dataclass
class AppState:
    store: ConversationStore
    codec: AudioCodec
    pipeline: MessageExchangePipeline
    auth: AuthSession
    session: SessionController
    bridge: RemoteSyncBridge | None = None
    theme: str = "light"
    open_menu_id: str | None = None
    last_error: str | None = None
    speech_notice_shown: bool = False
    pending_attachment: FileAttachment | None = None
    upload_generation: int = 0


class ChatController:
    """Wires store, sync, identity and the exchange pipeline together."""

    def __init__(
        self,
        *,
        client: Any,
        remote: RemoteStore | None = None,
        identity: FirebaseIdentityService | None = None,
        transcriber: SpeechTranscriber | None = None,
        theme_path: str | None = None,
    ) -> None:
        store = ConversationStore()
        codec = AudioCodec()
        bridge = RemoteSyncBridge(remote, store) if remote is not None else None
        auth = AuthSession()
        session = SessionController(store, bridge)
        self._identity = identity
        self._transcriber = transcriber
        self._theme_path = theme_path
        self.state = AppState(
            store=store,
            codec=codec,
            pipeline=MessageExchangePipeline(store, client, codec),
            auth=auth,
            session=session,
            bridge=bridge,
            theme=load_theme(theme_path) if theme_path else "light",
        )
        auth.subscribe(session.on_user_changed)

    @classmethod
    def from_settings(cls, settings, *, remote: RemoteStore | None = None) -> "ChatController":
        identity = FirebaseIdentityService(settings.firebase_api_key) if settings.firebase_api_key else None
        return cls(
            client=VoiceChatClient(settings.api_base, timeout=settings.request_timeout),
            remote=remote,
            identity=identity,
            transcriber=SpeechTranscriber(
                build_openai_client(settings.openai_api_key),
                language=settings.stt_language,
            ),
            theme_path=settings.theme_store_path,
        )

    # Read access --------------------------------------------------------
    @property
    def conversations(self) -> tuple[Conversation, ...]:
        return self.state.store.conversations

    @property
    def active(self) -> Conversation | None:
        return self.state.store.active

    @property
    def user(self) -> ChatUser | None:
        return self.state.auth.user

    @property
    def busy(self) -> bool:
        return self.state.pipeline.busy

    @property
    def loading(self) -> bool:
        return bool(self.state.bridge and self.state.bridge.loading)

    @property
    def supports_email_auth(self) -> bool:
        return self._identity is not None

    @property
    def supports_speech(self) -> bool:
        return bool(self._transcriber and self._transcriber.available)

    # Conversation list --------------------------------------------------
    def new_chat(self) -> Conversation:
        self.state.open_menu_id = None
        return self.state.store.new_conversation()

    def select(self, conversation_id: str) -> bool:
        return self.state.store.set_active(conversation_id)

    def rename(self, conversation_id: str, title: str | None) -> bool:
        self.state.open_menu_id = None
        return self.state.store.rename(conversation_id, title)

    def clear(self, conversation_id: str) -> None:
        self.state.open_menu_id = None
        self.state.store.clear(conversation_id)
        self._release_audio()

    def delete(self, conversation_id: str) -> None:
        self.state.open_menu_id = None
        self.state.store.delete(conversation_id)
        self._release_audio()

    def toggle_menu(self, conversation_id: str) -> None:
        self.state.open_menu_id = None if self.state.open_menu_id == conversation_id else conversation_id

    # Preferences --------------------------------------------------------
    def toggle_theme(self) -> str:
        self.state.theme = toggle_theme(self.state.theme)
        if self._theme_path:
            try:
                save_theme(self._theme_path, self.state.theme)
            except OSError:
                logger.exception("Could not persist theme preference")
        return self.state.theme

    # Exchange -----------------------------------------------------------
    def attach(self, attachment: FileAttachment | None) -> None:
        self.state.pending_attachment = attachment

    def send(self, text: str | None) -> ExchangeResult:
        attachment = self.state.pending_attachment
        result = self.state.pipeline.send(text, attachment)
        if not result.validation:
            # A request that went out consumes the attachment, failed or not.
            self.state.pending_attachment = None
            self.state.upload_generation += 1
        self.state.last_error = result.error
        return result

    def transcribe(self, audio_bytes: bytes) -> str | None:
        """Return the transcript, or ``None`` after recording a user-facing error."""

        if not self.supports_speech:
            self.note_speech_unavailable()
            return None
        try:
            return self._transcriber.transcribe(audio_bytes)
        except TranscriptionError as exc:
            self.state.last_error = str(exc)
            return None

    def note_speech_unavailable(self) -> str | None:
        """Return the unsupported message the first time only."""

        if self.state.speech_notice_shown:
            return None
        self.state.speech_notice_shown = True
        self.state.last_error = UNSUPPORTED_MESSAGE
        return UNSUPPORTED_MESSAGE

    def play_audio(self, audio_url: str | None) -> bytes | None:
        return self.state.codec.resolve(audio_url)

    # Identity -----------------------------------------------------------
    def sign_in(self, email: str, password: str) -> str | None:
        return self._authenticate("sign_in_with_password", email, password)

    def sign_up(self, email: str, password: str) -> str | None:
        return self._authenticate("sign_up", email, password)

    def _authenticate(self, action: str, email: str, password: str) -> str | None:
        if self._identity is None:
            return "Email sign-in is not configured."
        try:
            user = getattr(self._identity, action)(email, password)
        except IdentityError as exc:
            return str(exc)
        self.state.auth.set_user(user)
        return None

    def sign_in_federated(self, claims) -> bool:
        user = user_from_oidc(claims)
        if user is None:
            return False
        if self.user is None or self.user.uid != user.uid:
            self.state.auth.set_user(user)
        return True

    def sign_out(self) -> None:
        self.state.open_menu_id = None
        self.state.pending_attachment = None
        self.state.auth.sign_out()
        self._release_audio()

    def sync(self) -> int:
        """Apply remote notifications received since the previous script run."""

        if self.state.bridge is None:
            return 0
        applied = self.state.bridge.drain()
        if applied:
            self._release_audio()
        return applied

    def _release_audio(self) -> int:
        """Drop decoded clips no message in the store points at any more."""

        referenced = {
            message.audio_url
            for conversation in self.state.store.conversations
            for message in conversation.messages
            if message.audio_url
        }
        return self.state.codec.retain(referenced)


__all__ = ["AppState", "ChatController"]
