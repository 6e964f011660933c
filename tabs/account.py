"""Sign-in / sign-up page and the signed-in account footer."""

from __future__ import annotations

import streamlit as st

from chat_controller import ChatController
from utils_streamlit import show_error


def _federated_available() -> bool:
    if not hasattr(st, "login"):
        return False
    try:
        return "auth" in st.secrets
    except Exception:
        return False


def render_auth_page(controller: ChatController) -> None:
    """Render the login/signup forms; successful auth closes the page."""

    mode = st.radio("Account", ["Log in", "Sign up"], horizontal=True, key="auth_mode", label_visibility="collapsed")

    if _federated_available():
        if st.button("Continue with Google", key="auth_google", use_container_width=True):
            st.login("google")

    if not controller.supports_email_auth:
        if not _federated_available():
            st.info("Sign-in is not configured for this deployment.")
        return

    with st.form("auth_form", clear_on_submit=False):
        email = st.text_input("Email", key="auth_email")
        password = st.text_input("Password", type="password", key="auth_password")
        submitted = st.form_submit_button("Create account" if mode == "Sign up" else "Log in")

    if not submitted:
        return
    with st.spinner("Please wait…"):
        if mode == "Sign up":
            error = controller.sign_up(email, password)
        else:
            error = controller.sign_in(email, password)
    if error:
        show_error(error)
        return
    st.session_state.show_auth_page = False
    st.rerun()


def render_account_footer(controller: ChatController) -> None:
    user = controller.user
    if user is None:
        if st.sidebar.button("🔒 Log in / Sign up", key="open_auth", use_container_width=True):
            st.session_state.show_auth_page = True
            st.rerun()
        st.sidebar.caption("Chats are not saved until you log in.")
        return

    if user.photo_url:
        st.sidebar.image(user.photo_url, width=36)
    st.sidebar.caption(f"Signed in as {user.display_name}")
    if st.sidebar.button("Log out", key="logout_button", use_container_width=True):
        controller.sign_out()
        if getattr(st, "user", None) is not None and getattr(st.user, "is_logged_in", False):
            st.logout()
        st.rerun()
