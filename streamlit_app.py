"""Streamlit Cloud entry point.

Deployments launch ``streamlit_app.py`` as the main module; the client lives in
:mod:`chat_app`, so we simply forward ``main`` here. Start the relay separately
with ``python relay_app.py``.
"""

from chat_app import main as chat_app_main


def main() -> None:
    """Invoke the voice chat client."""

    chat_app_main()


if __name__ == "__main__":  # pragma: no cover
    main()
