"""
connector/roles.py
Role assignment for newly registered identities.

Every identity gets exactly one row in user_roles.  The first identity ever
registered is the 'owner'; everyone after is a 'user'.

Two strategies are provided:
  assign_user_role()         count-then-insert over PostgREST (two round trips).
                             Concurrent sign-ups can both read a count of zero
                             and both become owner.
  assign_user_role_atomic()  one Postgres transaction holding an advisory lock;
                             exactly one owner under any interleaving.
make_role_assigner() picks between them from configuration.
"""

import logging
from functools import partial

import httpx
import psycopg2
import streamlit as st
from supabase import PostgrestAPIError

from connector.db import get_secret, has_database_credentials, query_df, run_in_transaction
from connector.results import ErrorKind, Result

logger = logging.getLogger(__name__)

ROLE_TABLE = "user_roles"
OWNER = "owner"
USER = "user"

# Arbitrary constant key for pg_advisory_xact_lock; serialises first-owner checks.
_ROLE_LOCK_KEY = 727_001


# ─── Count-then-insert (PostgREST) ───────────────────────────────────────────

def count_role_records(client) -> Result:
    """Return an exact, non-paginated count of user_roles rows."""
    try:
        response = (
            client.table(ROLE_TABLE)
            .select("*", count="exact", head=True)
            .execute()
        )
    except PostgrestAPIError as exc:
        logger.error("Error counting %s: %s", ROLE_TABLE, exc)
        return Result.failure(ErrorKind.REJECTED, getattr(exc, "message", None) or str(exc))
    except httpx.HTTPError as exc:
        logger.error("Error counting %s: %s", ROLE_TABLE, exc)
        return Result.failure(ErrorKind.TRANSPORT, "Could not reach the role table.")

    if response.count is None:
        return Result.failure(ErrorKind.MALFORMED_RESPONSE, "Role count missing from response.")
    return Result.success(response.count)


def insert_role_record(client, user_id: str, role: str) -> Result:
    """Insert one (user_id, role) row and return the role on success."""
    try:
        client.table(ROLE_TABLE).insert([{"user_id": user_id, "role": role}]).execute()
    except PostgrestAPIError as exc:
        logger.error("Error assigning role %s to %s: %s", role, user_id, exc)
        return Result.failure(ErrorKind.REJECTED, getattr(exc, "message", None) or str(exc))
    except httpx.HTTPError as exc:
        logger.error("Error assigning role %s to %s: %s", role, user_id, exc)
        return Result.failure(ErrorKind.TRANSPORT, "Could not reach the role table.")
    return Result.success(role)


def assign_user_role(client, user_id: str) -> Result:
    """
    Assign 'owner' if no role rows exist yet, else 'user'.

    The count and the insert are separate requests with no lock between them.
    A failed count is treated as "not the first user".
    """
    counted = count_role_records(client)
    is_first = counted.ok and counted.value == 0
    role = OWNER if is_first else USER
    return insert_role_record(client, user_id, role)


# ─── Atomic insert-if-first (psycopg2) ───────────────────────────────────────

_ASSIGN_SQL = f"""
    INSERT INTO {ROLE_TABLE} (user_id, role)
    SELECT %s,
           CASE WHEN EXISTS (SELECT 1 FROM {ROLE_TABLE}) THEN %s ELSE %s END
    ON CONFLICT (user_id) DO NOTHING
    RETURNING role
"""

_EXISTING_ROLE_SQL = f"SELECT role FROM {ROLE_TABLE} WHERE user_id = %s"


def assign_user_role_atomic(user_id: str) -> Result:
    """
    Assign the role in a single transaction.

    The advisory lock makes concurrent first sign-ups queue behind each other,
    and ON CONFLICT keeps one row per identity.  Returns the stored role, which
    is the existing one if the identity already had a row.
    """
    def _work(cur):
        cur.execute("SELECT pg_advisory_xact_lock(%s)", (_ROLE_LOCK_KEY,))
        cur.execute(_ASSIGN_SQL, (user_id, USER, OWNER))
        row = cur.fetchone()
        if row is None:
            cur.execute(_EXISTING_ROLE_SQL, (user_id,))
            row = cur.fetchone()
        return row[0] if row else None

    try:
        role = run_in_transaction(_work)
    except psycopg2.OperationalError as exc:
        logger.error("Atomic role assignment failed for %s: %s", user_id, exc, exc_info=True)
        return Result.failure(ErrorKind.TRANSPORT, "Could not reach the database.")
    except psycopg2.Error as exc:
        logger.error("Atomic role assignment failed for %s: %s", user_id, exc, exc_info=True)
        return Result.failure(ErrorKind.REJECTED, "Could not assign a role.")

    if role is None:
        return Result.failure(ErrorKind.MALFORMED_RESPONSE, "No role stored for user.")
    return Result.success(role)


def make_role_assigner(client):
    """
    Return a callable user_id -> Result using the configured strategy.

    The atomic strategy is used when Postgres credentials are available and
    ROLE_ASSIGNMENT is not 'count'.
    """
    mode = (get_secret("ROLE_ASSIGNMENT") or "").strip().lower()
    if mode != "count" and has_database_credentials():
        return assign_user_role_atomic
    return partial(assign_user_role, client)


# ─── Role queries ─────────────────────────────────────────────────────────────

@st.cache_data(ttl=30, show_spinner=False)
def get_user_role(user_id: str) -> str | None:
    """
    Return the user's role ('owner' | 'user'), or None if none is stored.

    Accepts user_id explicitly so st.cache_data can key on it.
    """
    if user_id is None:
        return None
    df = query_df(_EXISTING_ROLE_SQL, (user_id,))
    if df.empty:
        return None
    return df.iloc[0]["role"]
