"""Shared fakes for the Supabase client, the call client and notifications."""

import itertools
from functools import partial
from types import SimpleNamespace

import httpx
import pytest
from supabase import AuthError, AuthRetryableError, FunctionsError, PostgrestAPIError

from connector.auth import AuthGateway, route_auth_events
from connector.roles import assign_user_role
from connector.routes import Navigator
from connector.session import AuthContext, SessionStore


# ─── Library error stand-ins ──────────────────────────────────────────────────
# Subclass the real error types so the code's except clauses are exercised,
# without depending on each library version's constructor signature.

def _init_error(self, message):
    Exception.__init__(self, message)
    self.message = message
    self.code = None
    self.status = None
    self.name = type(self).__name__
    self.hint = None
    self.details = None
    self._raw_error = {"message": message}


def _str_error(self):
    return self.message


class InvalidCredentials(AuthError):
    __init__ = _init_error
    __str__ = _str_error


class AuthUnavailable(AuthRetryableError):
    __init__ = _init_error
    __str__ = _str_error


class EdgeFunctionFailed(FunctionsError):
    __init__ = _init_error
    __str__ = _str_error


class PostgrestRejected(PostgrestAPIError):
    __init__ = _init_error
    __str__ = _str_error


# ─── Notifications ────────────────────────────────────────────────────────────

class RecordingNotifier:
    def __init__(self):
        self.successes = []
        self.infos = []
        self.errors = []

    def success(self, message):
        self.successes.append(message)

    def info(self, message):
        self.infos.append(message)

    def error(self, message, title=None):
        self.errors.append((title, message))


# ─── Supabase Auth ────────────────────────────────────────────────────────────

class FakeSubscription:
    def __init__(self, callbacks, callback):
        self._callbacks = callbacks
        self._callback = callback

    def unsubscribe(self):
        if self._callback in self._callbacks:
            self._callbacks.remove(self._callback)


class FakeAuth:
    """In-memory stand-in for client.auth that emits events like the real one."""

    def __init__(self, auto_confirm=True):
        self.auto_confirm = auto_confirm
        self.callbacks = []
        self.users = {}
        self.session = None
        self.fail_with = None
        self._ids = itertools.count(1)
        self._tokens = itertools.count(1)

    def on_auth_state_change(self, callback):
        self.callbacks.append(callback)
        return FakeSubscription(self.callbacks, callback)

    def emit(self, event, session):
        for callback in list(self.callbacks):
            callback(event, session)

    def _new_session(self, user):
        return SimpleNamespace(access_token=f"jwt-{next(self._tokens)}", user=user)

    def get_session(self):
        if self.fail_with:
            raise self.fail_with
        return self.session

    def sign_in_with_password(self, credentials):
        if self.fail_with:
            raise self.fail_with
        entry = self.users.get(credentials["email"])
        if entry is None or entry["password"] != credentials["password"]:
            raise InvalidCredentials("Invalid login credentials")
        self.session = self._new_session(entry["user"])
        self.emit("SIGNED_IN", self.session)
        return SimpleNamespace(user=entry["user"], session=self.session)

    def sign_up(self, credentials):
        if self.fail_with:
            raise self.fail_with
        email = credentials["email"]
        if email in self.users:
            raise InvalidCredentials("User already registered")
        user = SimpleNamespace(id=f"user-{next(self._ids)}", email=email)
        self.users[email] = {"user": user, "password": credentials["password"]}
        session = None
        if self.auto_confirm:
            session = self.session = self._new_session(user)
            self.emit("SIGNED_IN", session)
        return SimpleNamespace(user=user, session=session)

    def sign_out(self):
        if self.fail_with:
            raise self.fail_with
        self.session = None
        self.emit("SIGNED_OUT", None)

    def refresh(self):
        self.session = self._new_session(self.session.user)
        self.emit("TOKEN_REFRESHED", self.session)

    def register(self, email, password):
        user = SimpleNamespace(id=f"user-{next(self._ids)}", email=email)
        self.users[email] = {"user": user, "password": password}
        return user


# ─── PostgREST ────────────────────────────────────────────────────────────────

class FakeQuery:
    def __init__(self, table):
        self._table = table
        self._op = None
        self._payload = None

    def select(self, *columns, count=None, head=None):
        self._op = "count" if count == "exact" and head else "select"
        return self

    def insert(self, rows):
        self._op = "insert"
        self._payload = rows
        return self

    def execute(self):
        table = self._table
        if table.fail_with:
            raise table.fail_with
        if self._op == "count":
            table.count_queries += 1
            count = table.scripted_counts.pop(0) if table.scripted_counts else len(table.rows)
            return SimpleNamespace(data=[], count=count)
        if self._op == "insert":
            for row in self._payload:
                if any(r["user_id"] == row["user_id"] for r in table.rows):
                    raise PostgrestRejected("duplicate key value violates unique constraint")
                table.rows.append(dict(row))
            return SimpleNamespace(data=list(self._payload), count=None)
        return SimpleNamespace(data=list(table.rows), count=None)


class FakeRoleTable:
    def __init__(self):
        self.rows = []
        self.count_queries = 0
        # Counts served before falling back to len(rows); models reads that
        # happened before other sessions' inserts landed.
        self.scripted_counts = []
        self.fail_with = None


# ─── Edge Functions ───────────────────────────────────────────────────────────

class FakeFunctions:
    def __init__(self):
        self.calls = []
        self.responses = {}

    def invoke(self, function_name, invoke_options=None):
        body = (invoke_options or {}).get("body") or {}
        self.calls.append((function_name, body))
        response = self.responses.get(body.get("action"))
        if isinstance(response, Exception):
            raise response
        return response


class FakeSupabaseClient:
    def __init__(self, auto_confirm=True):
        self.auth = FakeAuth(auto_confirm=auto_confirm)
        self.roles = FakeRoleTable()
        self.functions = FakeFunctions()

    def table(self, name):
        assert name == "user_roles"
        return FakeQuery(self.roles)


# ─── Call client ──────────────────────────────────────────────────────────────

class FakeCallClient:
    def __init__(self):
        self.handlers = {}
        self.started_with = None
        self.stop_calls = 0

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def start_call(self, access_token, capture_device_id=None):
        self.started_with = (access_token, capture_device_id)

    def stop_call(self):
        self.stop_calls += 1

    def emit(self, event, payload=None):
        for handler in self.handlers.get(event, []):
            handler(payload)


# ─── Fixtures ─────────────────────────────────────────────────────────────────

@pytest.fixture
def client():
    return FakeSupabaseClient()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def ctx(client, notifier):
    store = SessionStore()
    navigator = Navigator()
    store.subscribe(route_auth_events(navigator, notifier))
    context = AuthContext(store, navigator, notifier)
    context.bind(AuthGateway(client, store, notifier, partial(assign_user_role, client)))
    return context


@pytest.fixture
def transport_error():
    return httpx.ConnectError("connection refused")
