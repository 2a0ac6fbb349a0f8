"""
connector/db.py
Secrets, Supabase clients and Postgres helpers for Connect.
All external connections are created through this module.

The anon-key client is the only Supabase client the app uses.  Direct Postgres
access exists solely for the atomic role assignment in connector/roles.py.
"""

import os

import pandas as pd
import psycopg2
import streamlit as st
from psycopg2.extras import RealDictCursor
from supabase import create_client, Client
from dotenv import load_dotenv

load_dotenv()


# ─── Secrets ─────────────────────────────────────────────────────────────────

def get_secret(key: str, default: str | None = None) -> str | None:
    """
    Resolve a secret by name.

    Tries st.secrets first (Streamlit Cloud), then falls back to os.environ
    (local development via .env loaded above).  Returns default if the key is
    absent in both sources.
    """
    try:
        return st.secrets[key]
    except Exception:
        return os.environ.get(key, default)


def has_database_credentials() -> bool:
    """Return True when direct Postgres credentials are configured."""
    return bool(get_secret("DB_HOST"))


# ─── Supabase client (Auth, PostgREST and Edge Functions) ────────────────────

def get_supabase_client() -> Client:
    """
    Return a Supabase client authenticated with the anon key.

    Intentionally not cached: the client holds the signed-in session and must
    not be shared between browser sessions.
    """
    url = get_secret("SUPABASE_URL")
    key = get_secret("SUPABASE_ANON_KEY")
    if not url or not key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_ANON_KEY must be configured.")
    return create_client(url, key)


# ─── Direct psycopg2 connection ──────────────────────────────────────────────

def get_pg_connection():
    """
    Return a raw psycopg2 connection to the Supabase PostgreSQL database.

    sslmode is set to 'require' and connect_timeout to 15 seconds.
    The caller is responsible for closing the connection when finished.
    """
    return psycopg2.connect(
        host=get_secret("DB_HOST"),
        port=get_secret("DB_PORT", "5432"),
        dbname=get_secret("DB_NAME", "postgres"),
        user=get_secret("DB_USER"),
        password=get_secret("DB_PASSWORD"),
        sslmode="require",
        connect_timeout=15,
    )


# ─── Cached query helper ─────────────────────────────────────────────────────

@st.cache_data(ttl=60, show_spinner=False)
def query_df(sql: str, params: tuple = ()) -> pd.DataFrame:
    """
    Execute a parameterised SELECT query and return results as a DataFrame.

    Opens and closes its own psycopg2 connection.  Returns an empty DataFrame
    (never None) when the query produces no rows.  Use for READ operations only.
    """
    conn = get_pg_connection()
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
            if not rows:
                return pd.DataFrame()
            return pd.DataFrame(rows)
    finally:
        conn.close()


# ─── Transaction helper ──────────────────────────────────────────────────────

def run_in_transaction(work):
    """
    Run work(cursor) inside a single transaction and return its result.

    Commits on success, rolls back and re-raises on any error, and always
    closes the connection.  Exceptions are never swallowed here.
    """
    conn = get_pg_connection()
    try:
        with conn.cursor() as cur:
            result = work(cur)
        conn.commit()
        return result
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
