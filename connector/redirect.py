"""
connector/redirect.py
One-shot hand-off of the signed-in session to n8n.

The n8n auth bridge accepts the Supabase access token as a `jwt` query
parameter.  RedirectOrchestrator starts the navigation once per signed-in
stretch no matter how many session events (repeat SIGNED_IN, TOKEN_REFRESHED)
arrive, and redraws it on every later render of the page.
"""

import html
import json
import logging
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import streamlit as st

from connector.db import get_secret
from connector.session import AuthEvent

logger = logging.getLogger(__name__)

DEFAULT_REDIRECT_URL = "https://n8n-auth.onrender.com"
_ORCHESTRATOR_KEY = "redirect_orchestrator"


def get_redirect_base_url() -> str:
    return get_secret("N8N_REDIRECT_URL") or DEFAULT_REDIRECT_URL


def build_redirect_url(base_url: str, jwt: str) -> str:
    """Return base_url with jwt appended as a URL-encoded query parameter."""
    scheme, netloc, path, query, fragment = urlsplit(base_url)
    params = [(k, v) for k, v in parse_qsl(query, keep_blank_values=True) if k != "jwt"]
    params.append(("jwt", jwt))
    return urlunsplit((scheme, netloc, path, urlencode(params), fragment))


class RedirectOrchestrator:
    """Navigate to the external tool on the first session-bearing event."""

    def __init__(self, navigate, base_url: str | None = None):
        self._navigate = navigate
        self._base_url = base_url or get_redirect_base_url()
        self._subscription = None
        self.redirecting = False
        self.finished = False

    def on_auth_event(self, event, session) -> bool:
        """
        Handle one auth event.  Returns True only when navigation was started.

        If navigate() raises, the guard is reset so a later event can retry,
        and the user stays on the waiting screen.  SIGNED_OUT ends this
        orchestrator's lifetime: it detaches and is marked finished.
        """
        if event is AuthEvent.SIGNED_OUT:
            self.detach()
            self.finished = True
            return False

        token = getattr(session, "access_token", None) if session is not None else None
        if not token or self.redirecting:
            return False

        self.redirecting = True
        logger.info("Redirecting to n8n with JWT token")
        return self._go(token)

    def _go(self, token: str) -> bool:
        try:
            self._navigate(build_redirect_url(self._base_url, token))
        except Exception as exc:
            logger.error("Error redirecting to n8n: %s", exc, exc_info=True)
            self.redirecting = False
            return False
        return True

    def attach(self, store) -> bool:
        """Subscribe to store events and replay the current session once."""
        if self._subscription is None:
            self._subscription = store.subscribe(self.on_auth_event)
        return self.on_auth_event(None, store.session)

    def redraw(self, session) -> bool:
        """
        Draw an already started redirect again on a later render.

        Streamlit rebuilds the page on every run, so the browser-side
        navigation has to be emitted again each time.  Uses the current token
        and does not count as a new navigation.
        """
        token = getattr(session, "access_token", None) if session is not None else None
        if not self.redirecting or not token:
            return False
        return self._go(token)

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None


def show_redirect(store, state, navigate=None) -> RedirectOrchestrator:
    """
    Run the hand-off for one render of the redirect page.

    The orchestrator lives in state (st.session_state) for one signed-in
    stretch; SIGNED_OUT marks it finished so the next sign-in starts afresh.
    """
    orchestrator = state.get(_ORCHESTRATOR_KEY)
    if orchestrator is None or orchestrator.finished:
        orchestrator = RedirectOrchestrator(navigate or render_external_redirect)
        state[_ORCHESTRATOR_KEY] = orchestrator

    if not orchestrator.attach(store):
        orchestrator.redraw(store.session)
    return orchestrator


def render_external_redirect(url: str) -> None:
    """
    Send the browser's top window to url.

    The script runs inside an iframe; the link is shown in case the browser
    blocks top-level navigation from it.
    """
    st.iframe(
        f"<script>window.top.location.href = {json.dumps(url)};</script>",
        height=1,
    )
    st.markdown(
        f'If nothing happens, <a href="{html.escape(url, quote=True)}" target="_top">continue to n8n</a>.',
        unsafe_allow_html=True,
    )
