"""Streamlit voice chat client."""

from __future__ import annotations

import logging

import streamlit as st

from app_settings import configure_logging, load_settings
from chat_controller import ChatController
from exchange_pipeline import ExchangeResult
from services.remote_store import FirestoreConversationStore, create_firestore_client
from tabs import account, chat as chat_tab
from ui_components import conversation_label, message_counts, render_header, render_theme
from utils_streamlit import attachment_from_upload, digest, show_error


SETTINGS = load_settings()
configure_logging(SETTINGS.log_level)
SYNC_POLL_SECONDS = 2

logger = logging.getLogger(__name__)


@st.cache_resource(show_spinner=False)
def _remote_store() -> FirestoreConversationStore | None:
    if not SETTINGS.enable_remote_sync:
        return None
    try:
        client = create_firestore_client(SETTINGS.firebase_project_id, SETTINGS.firestore_credentials)
    except Exception:
        logger.exception("Firestore unavailable; conversations will not be saved")
        return None
    return FirestoreConversationStore(client)


def _get_controller() -> ChatController:
    controller = st.session_state.get("controller")
    if controller is None:
        controller = ChatController.from_settings(SETTINGS, remote=_remote_store())
        st.session_state.controller = controller
    return controller


def _init_session_state() -> None:
    st.session_state.setdefault("show_auth_page", False)
    st.session_state.setdefault("last_audio_digest", None)
    st.session_state.setdefault("autoplay_url", None)
    st.session_state.setdefault("flash_error", None)


def _sync_federated_user(controller: ChatController) -> None:
    user_info = getattr(st, "user", None)
    if user_info is None or not getattr(user_info, "is_logged_in", False):
        return
    if controller.sign_in_federated(user_info.to_dict()):
        st.session_state.show_auth_page = False


@st.fragment(run_every=SYNC_POLL_SECONDS)
def _remote_updates(controller: ChatController) -> None:
    if controller.sync():
        st.rerun(scope="app")


@st.dialog("Clear chat")
def _confirm_clear(controller: ChatController, conversation_id: str) -> None:
    st.write("Clear all messages in this chat?")
    if st.button("Clear", type="primary", key="confirm_clear"):
        controller.clear(conversation_id)
        st.rerun()


@st.dialog("Delete chat")
def _confirm_delete(controller: ChatController, conversation_id: str, title: str) -> None:
    st.write(f'Delete chat "{title}" permanently?')
    if st.button("Delete", type="primary", key="confirm_delete"):
        controller.delete(conversation_id)
        st.rerun()


def _render_conversation_menu(controller: ChatController, conversation) -> None:
    with st.sidebar.container(border=True):
        new_title = st.text_input("Chat name", value=conversation.title, key=f"rename_{conversation.id}")
        rename_col, clear_col, delete_col = st.columns(3)
        if rename_col.button("✏️", key=f"do_rename_{conversation.id}", help="Rename"):
            if controller.rename(conversation.id, new_title):
                st.rerun()
            st.warning("Chat name cannot be empty.")
        if clear_col.button("🧹", key=f"do_clear_{conversation.id}", help="Clear"):
            _confirm_clear(controller, conversation.id)
        if delete_col.button("🗑", key=f"do_delete_{conversation.id}", help="Delete"):
            _confirm_delete(controller, conversation.id, conversation.title)


def _render_sidebar(controller: ChatController) -> None:
    header_col, new_col, theme_col = st.sidebar.columns([3, 2, 1])
    header_col.markdown("### Chats")
    if new_col.button("＋ New", key="new_chat"):
        controller.new_chat()
        st.rerun()
    theme_icon = "🌙" if controller.state.theme == "light" else "☀️"
    if theme_col.button(theme_icon, key="toggle_theme", help="Toggle theme"):
        controller.toggle_theme()
        st.rerun()

    if controller.loading:
        st.sidebar.caption("Loading chats…")
    bridge = controller.state.bridge
    if bridge is not None and bridge.last_error:
        st.sidebar.warning(f"Chats could not be synced: {bridge.last_error}")

    active_id = controller.active.id if controller.active else None
    for conversation in controller.conversations:
        select_col, menu_col = st.sidebar.columns([5, 1])
        if select_col.button(
            conversation_label(conversation, active_id=active_id),
            key=f"select_{conversation.id}",
            use_container_width=True,
        ):
            controller.select(conversation.id)
            st.rerun()
        if menu_col.button("⋮", key=f"menu_{conversation.id}"):
            controller.toggle_menu(conversation.id)
            st.rerun()
        if controller.state.open_menu_id == conversation.id:
            _render_conversation_menu(controller, conversation)

    if controller.active is not None:
        user_turns, ai_turns = message_counts(controller.active.messages)
        st.sidebar.caption(f"{user_turns} sent · {ai_turns} replies")
    st.sidebar.divider()
    account.render_account_footer(controller)


def _handle_result(result: ExchangeResult) -> None:
    if result.ok:
        st.session_state.autoplay_url = result.reply.audio_url if result.reply else None
        return
    st.session_state.flash_error = result.error


def _send(controller: ChatController, text: str | None) -> None:
    with st.spinner("Thinking…"):
        result = controller.send(text)
    _handle_result(result)
    if not result.validation:
        st.rerun()


def _render_inputs(controller: ChatController) -> None:
    with st.expander("📎 Attach a file", expanded=controller.state.pending_attachment is not None):
        uploaded = st.file_uploader(
            "Attach a PDF or text file",
            type=["pdf", "txt"],
            key=f"uploader_{controller.state.upload_generation}",
            label_visibility="collapsed",
        )
        controller.attach(attachment_from_upload(uploaded))

    if controller.supports_speech:
        recording = st.audio_input("🎤 Speak", key="voice_input", disabled=controller.busy)
        if recording is not None:
            audio_bytes = recording.getvalue()
            audio_digest = digest(audio_bytes)
            if audio_digest != st.session_state.last_audio_digest:
                st.session_state.last_audio_digest = audio_digest
                transcript = controller.transcribe(audio_bytes)
                if transcript:
                    st.caption(f"Transcript: {transcript}")
                    _send(controller, transcript)
                else:
                    st.session_state.flash_error = controller.state.last_error
    else:
        notice = controller.note_speech_unavailable()
        if notice:
            st.warning(notice)

    prompt = st.chat_input("Type your message…", disabled=controller.busy)
    if prompt is not None:
        _send(controller, prompt)


def _render_app() -> None:
    st.set_page_config(page_title="Voice AI Chat", page_icon="🎙️", layout="wide")
    _init_session_state()
    controller = _get_controller()
    _sync_federated_user(controller)
    controller.sync()
    render_theme(controller.state.theme)

    _render_sidebar(controller)
    if controller.user is not None:
        _remote_updates(controller)

    if st.session_state.show_auth_page and controller.user is None:
        render_header("Welcome", "Log in to keep your chats across devices.")
        account.render_auth_page(controller)
        if st.button("← Back to chat", key="close_auth"):
            st.session_state.show_auth_page = False
            st.rerun()
        return

    active = controller.active
    render_header(active.title if active else "Voice AI Chat", "Type, speak, or attach a file.")
    _render_inputs(controller)

    show_error(st.session_state.flash_error)
    st.session_state.flash_error = None

    pending = controller.state.pending_attachment
    chat_tab.render_tab(
        controller.active,
        controller.play_audio,
        autoplay_url=st.session_state.autoplay_url,
        pending_attachment=pending.name if pending else None,
    )
    st.session_state.autoplay_url = None


def main() -> None:
    _render_app()


if __name__ == "__main__":  # pragma: no cover
    main()
