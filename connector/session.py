"""
connector/session.py
Session store and auth context for Connect.

The SessionStore is the single owner of the current identity and session.
Only SessionStore.dispatch() changes them, and the AuthGateway is the only
caller of dispatch() outside tests: provider events flow in one direction,
gateway → store → listeners.
"""

import logging
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    UNKNOWN = "unknown"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"

    @classmethod
    def from_provider(cls, name) -> "AuthEvent | None":
        """Map a provider event name to an AuthEvent, or None if unrecognised."""
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name))
        except ValueError:
            return None


Listener = Callable[["AuthEvent | None", Any], None]


class AuthContextError(RuntimeError):
    """Raised when auth state is used before its context has been set up."""


class Subscription:
    """Handle returned by SessionStore.subscribe()."""

    def __init__(self, listeners: list, listener: Listener):
        self._listeners = listeners
        self._listener = listener

    @property
    def active(self) -> bool:
        return self._listener in self._listeners

    def unsubscribe(self) -> None:
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)


class SessionStore:
    """Current identity, session and AuthState for one browser session."""

    def __init__(self):
        self.state = AuthState.UNKNOWN
        self.session = None
        self.user = None
        self._listeners: list[Listener] = []

    # ─── Reads ────────────────────────────────────────────────────────────────

    @property
    def is_loading(self) -> bool:
        return self.state in (AuthState.UNKNOWN, AuthState.LOADING)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def access_token(self) -> str | None:
        return getattr(self.session, "access_token", None)

    # ─── Mutations ────────────────────────────────────────────────────────────

    def dispatch(self, event, session) -> None:
        """
        Apply one provider event and notify listeners.

        Every event is applied, including repeats and unrecognised names;
        listeners must not assume deduplication.
        """
        auth_event = AuthEvent.from_provider(event)
        self.session = session
        self.user = getattr(session, "user", None) if session is not None else None
        self.state = self._settled_state()
        logger.debug("Auth event %s -> %s", event, self.state.value)

        for listener in list(self._listeners):
            listener(auth_event, session)

    def begin_loading(self) -> None:
        self.state = AuthState.LOADING

    def end_loading(self) -> None:
        if self.state is AuthState.LOADING:
            self.state = self._settled_state()

    def clear(self) -> None:
        self.session = None
        self.user = None
        self.state = AuthState.UNAUTHENTICATED

    def subscribe(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self._listeners, listener)

    def _settled_state(self) -> AuthState:
        return AuthState.AUTHENTICATED if self.user is not None else AuthState.UNAUTHENTICATED


class AuthContext:
    """
    Explicit container for the auth pieces a page needs.

    Built once per browser session and handed to every consumer.  The gateway
    is bound after construction; reading it before bind() is a programming
    error and raises AuthContextError.
    """

    def __init__(self, store: SessionStore, navigator, notifier):
        self.store = store
        self.navigator = navigator
        self.notifier = notifier
        self._gateway = None

    def bind(self, gateway) -> "AuthContext":
        self._gateway = gateway
        return self

    @property
    def gateway(self):
        if self._gateway is None:
            raise AuthContextError("AuthContext must be bound to an AuthGateway before use")
        return self._gateway

    @property
    def user(self):
        return self.store.user

    @property
    def session(self):
        return self.store.session

    @property
    def is_loading(self) -> bool:
        return self.store.is_loading

    def close(self) -> None:
        """Release the provider subscription held by the bound gateway."""
        if self._gateway is not None:
            self._gateway.close()
