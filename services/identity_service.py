"""Identity provider adapters and the observable current-user session."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

import requests

from models import ChatUser


logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
MISSING_CREDENTIALS_MESSAGE = "Please enter email and password."

_ERROR_MESSAGES = {
    "EMAIL_EXISTS": "An account already exists for this email.",
    "EMAIL_NOT_FOUND": "No account found for this email.",
    "INVALID_PASSWORD": "Incorrect password.",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password.",
    "INVALID_EMAIL": "Please enter a valid email address.",
    "USER_DISABLED": "This account has been disabled.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Try again later.",
    "OPERATION_NOT_ALLOWED": "Email/password sign-in is disabled for this project.",
}

UserCallback = Callable[[ChatUser | None], None]


class IdentityError(Exception):
    """Sign-in or sign-up was rejected; the message is user-facing."""


class AuthSession:
    """Holds the current user and notifies subscribers on every change."""

    def __init__(self, user: ChatUser | None = None) -> None:
        self._user = user
        self._listeners: list[UserCallback] = []

    @property
    def user(self) -> ChatUser | None:
        return self._user

    def subscribe(self, callback: UserCallback) -> Callable[[], None]:
        """Register ``callback`` and invoke it immediately with the current user."""

        self._listeners.append(callback)
        callback(self._user)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def set_user(self, user: ChatUser | None) -> None:
        self._user = user
        for callback in list(self._listeners):
            callback(user)

    def sign_out(self) -> None:
        self.set_user(None)


def _describe_error(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"Authentication failed ({response.status_code})."
    error = payload.get("error") if isinstance(payload, Mapping) else None
    code = ""
    if isinstance(error, Mapping):
        code = str(error.get("message") or "")
    elif isinstance(error, str):
        code = error
    key, _, detail = code.partition(" : ")
    if key in _ERROR_MESSAGES:
        return _ERROR_MESSAGES[key]
    if key.startswith("WEAK_PASSWORD"):
        return detail or "Password should be at least 6 characters."
    return code or f"Authentication failed ({response.status_code})."


def _user_from_account(payload: Mapping[str, Any]) -> ChatUser:
    uid = payload.get("localId")
    if not uid:
        raise IdentityError("Identity provider did not return a user id.")
    return ChatUser(
        uid=str(uid),
        name=payload.get("displayName") or None,
        email=payload.get("email") or None,
        photo_url=payload.get("profilePicture") or payload.get("photoUrl") or None,
    )


class FirebaseIdentityService:
    """Email/password accounts via the Firebase Identity Toolkit REST API."""

    def __init__(self, api_key: str, *, timeout: int = 10) -> None:
        self._api_key = api_key
        self._timeout = timeout

    def _call(self, action: str, email: str, password: str) -> ChatUser:
        email = (email or "").strip()
        if not email or not password:
            raise IdentityError(MISSING_CREDENTIALS_MESSAGE)
        url = f"{IDENTITY_TOOLKIT_URL}/accounts:{action}"
        try:
            response = requests.post(
                url,
                params={"key": self._api_key},
                json={"email": email, "password": password, "returnSecureToken": True},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.error("Identity request %s failed: %s", action, exc)
            raise IdentityError(f"Network error: {exc}") from exc
        if not response.ok:
            message = _describe_error(response)
            logger.warning("Identity %s rejected: %s", action, message)
            raise IdentityError(message)
        payload = response.json()
        return _user_from_account(payload if isinstance(payload, Mapping) else {})

    def sign_in_with_password(self, email: str, password: str) -> ChatUser:
        return self._call("signInWithPassword", email, password)

    def sign_up(self, email: str, password: str) -> ChatUser:
        return self._call("signUp", email, password)


def user_from_oidc(claims: Mapping[str, Any] | None) -> ChatUser | None:
    """Build a user from OIDC claims exposed by ``st.user`` after ``st.login``."""

    if not claims:
        return None
    if claims.get("is_logged_in") is False:
        return None
    uid = claims.get("sub") or claims.get("email")
    if not uid:
        return None
    return ChatUser(
        uid=str(uid),
        name=claims.get("name") or None,
        email=claims.get("email") or None,
        photo_url=claims.get("picture") or None,
    )


__all__ = [
    "AuthSession",
    "FirebaseIdentityService",
    "IDENTITY_TOOLKIT_URL",
    "IdentityError",
    "MISSING_CREDENTIALS_MESSAGE",
    "user_from_oidc",
]
