from types import SimpleNamespace

import pytest

from connector.routes import Navigator
from connector.session import (
    AuthContext,
    AuthContextError,
    AuthEvent,
    AuthState,
    SessionStore,
)


def _session(token="jwt", user_id="u1"):
    return SimpleNamespace(access_token=token, user=SimpleNamespace(id=user_id, email="a@b.c"))


class TestSessionStore:

    def test_starts_unknown_and_loading(self):
        store = SessionStore()
        assert store.state is AuthState.UNKNOWN
        assert store.is_loading
        assert store.user is None

    def test_dispatch_with_session_authenticates(self):
        store = SessionStore()
        session = _session()
        store.dispatch("SIGNED_IN", session)
        assert store.state is AuthState.AUTHENTICATED
        assert store.user.id == "u1"
        assert store.access_token == "jwt"

    def test_dispatch_without_session_unauthenticates(self):
        store = SessionStore()
        store.dispatch("SIGNED_IN", _session())
        store.dispatch("SIGNED_OUT", None)
        assert store.state is AuthState.UNAUTHENTICATED
        assert store.user is None
        assert store.access_token is None

    def test_listeners_receive_every_event_including_repeats(self):
        store = SessionStore()
        seen = []
        store.subscribe(lambda event, session: seen.append(event))
        session = _session()
        store.dispatch("SIGNED_IN", session)
        store.dispatch("SIGNED_IN", session)
        store.dispatch("TOKEN_REFRESHED", session)
        assert seen == [AuthEvent.SIGNED_IN, AuthEvent.SIGNED_IN, AuthEvent.TOKEN_REFRESHED]

    def test_unknown_provider_event_is_still_applied(self):
        store = SessionStore()
        seen = []
        store.subscribe(lambda event, session: seen.append(event))
        store.dispatch("MFA_CHALLENGE_VERIFIED", _session())
        assert seen == [None]
        assert store.state is AuthState.AUTHENTICATED

    def test_unsubscribe_stops_delivery(self):
        store = SessionStore()
        seen = []
        sub = store.subscribe(lambda event, session: seen.append(event))
        sub.unsubscribe()
        sub.unsubscribe()
        store.dispatch("SIGNED_IN", _session())
        assert seen == []
        assert not sub.active

    def test_loading_settles_to_held_session(self):
        store = SessionStore()
        store.dispatch("INITIAL_SESSION", None)
        store.begin_loading()
        assert store.state is AuthState.LOADING
        store.end_loading()
        assert store.state is AuthState.UNAUTHENTICATED

    def test_end_loading_keeps_state_set_by_event(self):
        store = SessionStore()
        store.begin_loading()
        store.dispatch("SIGNED_IN", _session())
        store.end_loading()
        assert store.state is AuthState.AUTHENTICATED

    def test_clear(self):
        store = SessionStore()
        store.dispatch("SIGNED_IN", _session())
        store.clear()
        assert store.user is None and store.session is None
        assert store.state is AuthState.UNAUTHENTICATED


class TestAuthContext:

    def test_gateway_before_bind_raises(self):
        context = AuthContext(SessionStore(), Navigator(), notifier=None)
        with pytest.raises(AuthContextError):
            context.gateway

    def test_bind_and_delegates(self):
        store = SessionStore()
        context = AuthContext(store, Navigator(), notifier=None)
        gateway = SimpleNamespace(close=lambda: None)
        assert context.bind(gateway) is context
        assert context.gateway is gateway
        store.dispatch("SIGNED_IN", _session())
        assert context.user.id == "u1"
        assert context.session.access_token == "jwt"
        assert not context.is_loading

    def test_close_without_gateway_is_noop(self):
        AuthContext(SessionStore(), Navigator(), notifier=None).close()


def test_auth_event_from_provider():
    assert AuthEvent.from_provider("SIGNED_OUT") is AuthEvent.SIGNED_OUT
    assert AuthEvent.from_provider(AuthEvent.SIGNED_IN) is AuthEvent.SIGNED_IN
    assert AuthEvent.from_provider("NOPE") is None
