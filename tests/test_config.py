import logging

import pytest

import connector.db as db
from connector.logging_config import LOGGER_NAME, configure_logging


@pytest.fixture
def no_streamlit_secrets(monkeypatch):
    class _Secrets:
        def __getitem__(self, key):
            raise KeyError(key)

    monkeypatch.setattr(db.st, "secrets", _Secrets())


def test_get_secret_falls_back_to_environment(no_streamlit_secrets, monkeypatch):
    monkeypatch.setenv("N8N_REDIRECT_URL", "https://n8n.example.com")
    assert db.get_secret("N8N_REDIRECT_URL") == "https://n8n.example.com"


def test_get_secret_default(no_streamlit_secrets, monkeypatch):
    monkeypatch.delenv("RETELL_FUNCTION_NAME", raising=False)
    assert db.get_secret("RETELL_FUNCTION_NAME", "retell-calls") == "retell-calls"


def test_database_credentials_follow_db_host(no_streamlit_secrets, monkeypatch):
    monkeypatch.delenv("DB_HOST", raising=False)
    assert not db.has_database_credentials()
    monkeypatch.setenv("DB_HOST", "db.example.supabase.co")
    assert db.has_database_credentials()


def test_supabase_client_requires_configuration(no_streamlit_secrets, monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    with pytest.raises(RuntimeError):
        db.get_supabase_client()


class _Cursor:
    def __init__(self, fail):
        self.fail = fail

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=()):
        if self.fail:
            raise RuntimeError("boom")


class _Connection:
    def __init__(self, fail=False):
        self.fail = fail
        self.committed = self.rolled_back = self.closed = False

    def cursor(self):
        return _Cursor(self.fail)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


def test_run_in_transaction_commits(monkeypatch):
    conn = _Connection()
    monkeypatch.setattr(db, "get_pg_connection", lambda: conn)
    assert db.run_in_transaction(lambda cur: "done") == "done"
    assert conn.committed and conn.closed and not conn.rolled_back


def test_run_in_transaction_rolls_back_and_reraises(monkeypatch):
    conn = _Connection(fail=True)
    monkeypatch.setattr(db, "get_pg_connection", lambda: conn)
    with pytest.raises(RuntimeError):
        db.run_in_transaction(lambda cur: cur.execute("SELECT 1"))
    assert conn.rolled_back and conn.closed and not conn.committed


def test_configure_logging_is_idempotent():
    logger = configure_logging("debug")
    configure_logging("warning")

    ours = [h for h in logger.handlers if getattr(h, "_connector_handler", False)]
    assert len(ours) == 1
    assert logger.level == logging.WARNING
    assert logger is logging.getLogger(LOGGER_NAME)
    assert not logger.propagate


def test_unknown_level_falls_back_to_info():
    assert configure_logging("chatty").level == logging.INFO
