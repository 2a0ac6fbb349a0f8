"""
connector/notify.py
User-facing notifications.

Services receive a Notifier at construction and never call Streamlit directly,
which keeps them usable from tests with a recording notifier.
"""

from typing import Protocol

import streamlit as st


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def error(self, message: str, title: str | None = None) -> None: ...


class StreamlitNotifier:
    """Render notifications as dismissable Streamlit toasts."""

    def success(self, message: str) -> None:
        st.toast(message, icon="✅")

    def info(self, message: str) -> None:
        st.toast(message, icon="ℹ️")

    def error(self, message: str, title: str | None = None) -> None:
        text = f"**{title}:** {message}" if title else message
        st.toast(text, icon="⚠️")
