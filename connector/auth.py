"""
connector/auth.py
Supabase Auth gateway and session helpers for Connect.
Wraps Supabase Auth so the rest of the app never calls it directly.
"""

import logging

import httpx
import streamlit as st
from supabase import AuthError, AuthRetryableError

from connector.db import get_supabase_client
from connector.notify import Notifier, StreamlitNotifier
from connector.results import ErrorKind, Result
from connector.roles import make_role_assigner
from connector.routes import Navigator, follow_navigation, go_to
from connector.session import AuthContext, AuthContextError, AuthEvent, SessionStore

logger = logging.getLogger(__name__)

_CONTEXT_KEY = "auth_context"
_NETWORK_MESSAGE = "Network error. Please check your connection and try again."


def _describe(exc: Exception, fallback: str) -> tuple[ErrorKind, str]:
    """Classify an Auth or transport exception into (kind, user message)."""
    if isinstance(exc, (AuthRetryableError, httpx.HTTPError)):
        return ErrorKind.TRANSPORT, _NETWORK_MESSAGE
    return ErrorKind.REJECTED, getattr(exc, "message", None) or str(exc) or fallback


# ─── Gateway ──────────────────────────────────────────────────────────────────

class AuthGateway:
    """
    Sign-in, sign-up and sign-out against Supabase Auth.

    Every provider auth event is forwarded into the SessionStore; the gateway
    never sets user or session on the store itself except to clear it on a
    successful sign-out.  Operations return a Result and show exactly one
    error notification on failure.
    """

    def __init__(self, client, store: SessionStore, notifier: Notifier, assign_role):
        self.client = client
        self._store = store
        self._notifier = notifier
        self._assign_role = assign_role
        self._subscription = client.auth.on_auth_state_change(self._forward)

    def _forward(self, event, session) -> None:
        self._store.dispatch(event, session)

    def close(self) -> None:
        """Deregister the provider listener.  Safe to call more than once."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _fail(self, exc: Exception, fallback: str) -> Result:
        kind, message = _describe(exc, fallback)
        logger.error("%s: %s", fallback, exc)
        self._notifier.error(message)
        return Result.failure(kind, message)

    # ─── Operations ───────────────────────────────────────────────────────────

    def check_session(self) -> Result:
        """Resolve the initial session and publish it as INITIAL_SESSION."""
        self._store.begin_loading()
        try:
            session = self.client.auth.get_session()
        except (AuthError, httpx.HTTPError) as exc:
            self._store.clear()
            return self._fail(exc, "Error getting session")
        self._store.dispatch(AuthEvent.INITIAL_SESSION, session)
        return Result.success(session)

    def sign_in(self, email: str, password: str) -> Result:
        self._store.begin_loading()
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except (AuthError, httpx.HTTPError) as exc:
            return self._fail(exc, "Error signing in")
        finally:
            self._store.end_loading()
        return Result.success(response.session)

    def sign_up(self, email: str, password: str) -> Result:
        """
        Create the identity and assign its role exactly once.

        Navigation after sign-up is left to the SIGNED_IN event, which the
        provider only emits when it returns a session (email confirmation off).
        A failed role assignment is reported but does not undo the sign-up.
        """
        self._store.begin_loading()
        try:
            response = self.client.auth.sign_up({"email": email, "password": password})
        except (AuthError, httpx.HTTPError) as exc:
            return self._fail(exc, "Error signing up")
        finally:
            self._store.end_loading()

        user = response.user
        if user is None:
            logger.error("Sign-up for %s returned no user", email)
            self._notifier.error("Error signing up")
            return Result.failure(ErrorKind.MALFORMED_RESPONSE, "Error signing up")

        role = self._assign_role(user.id)
        if role.ok:
            logger.info("Assigned role %s to %s", role.value, user.id)
        else:
            logger.error("Error assigning user role to %s: %s", user.id, role.error)
            self._notifier.error(str(role.error), title="Role assignment failed")

        self._notifier.success("Account created successfully")
        if response.session is None:
            self._notifier.info("Please check your email to confirm your address before signing in.")
        return Result.success(user)

    def sign_out(self) -> Result:
        self._store.begin_loading()
        try:
            self.client.auth.sign_out()
        except (AuthError, httpx.HTTPError) as exc:
            return self._fail(exc, "Error signing out")
        else:
            self._store.clear()
            return Result.success()
        finally:
            self._store.end_loading()


def route_auth_events(navigator: Navigator, notifier: Notifier):
    """Return a store listener that navigates on sign-in and sign-out."""
    def _listener(event, session) -> None:
        if event is AuthEvent.SIGNED_IN and session is not None:
            notifier.success("Successfully logged in")
            navigator.request("/redirect")
        elif event is AuthEvent.SIGNED_OUT:
            navigator.request("/login")
    return _listener


# ─── Context accessors ────────────────────────────────────────────────────────

def provide_auth_context() -> AuthContext:
    """
    Return this browser session's AuthContext, creating it on first use.

    Creation builds the Supabase client, wires gateway → store → router and
    resolves the initial session.  Call at the top of every page.
    """
    ctx = st.session_state.get(_CONTEXT_KEY)
    if ctx is not None:
        return ctx

    client = get_supabase_client()
    store = SessionStore()
    navigator = Navigator()
    notifier = StreamlitNotifier()
    store.subscribe(route_auth_events(navigator, notifier))

    ctx = AuthContext(store, navigator, notifier)
    ctx.bind(AuthGateway(client, store, notifier, make_role_assigner(client)))
    st.session_state[_CONTEXT_KEY] = ctx
    ctx.gateway.check_session()
    return ctx


def get_auth_context() -> AuthContext:
    """Return the AuthContext; raises AuthContextError if it was never provided."""
    ctx = st.session_state.get(_CONTEXT_KEY)
    if ctx is None:
        raise AuthContextError("get_auth_context() must be used after provide_auth_context()")
    return ctx


# ─── Session accessors ────────────────────────────────────────────────────────

def get_current_user():
    """
    Return the current authenticated user, or None if no session is active.

    The user object carries at minimum 'id' (UUID string) and 'email'.
    """
    return get_auth_context().user


def get_current_user_id() -> str | None:
    """Return the current user's UUID string, or None if not authenticated."""
    user = get_current_user()
    return getattr(user, "id", None) if user is not None else None


def is_authenticated() -> bool:
    """Return True if a user session is currently active."""
    return get_current_user() is not None


# ─── Auth guards ──────────────────────────────────────────────────────────────

def require_auth() -> None:
    """
    Guard for pages that require authentication.

    Call at the top of any page that must not be visible to unauthenticated
    visitors.  Switches to the login page immediately if no session is active.
    """
    if not is_authenticated():
        go_to("/login")


# ─── Session teardown ─────────────────────────────────────────────────────────

def logout() -> None:
    """
    Sign the current user out and follow the SIGNED_OUT navigation.

    A successful sign-out discards the context: its provider subscription is
    released and the next page builds a fresh one.  On failure the error toast
    is already shown and the user stays put.
    """
    ctx = get_auth_context()
    if ctx.gateway.sign_out().ok:
        ctx.close()
        st.session_state.pop(_CONTEXT_KEY, None)
    follow_navigation(ctx.navigator)
