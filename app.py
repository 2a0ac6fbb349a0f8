"""
app.py
Connect: Supabase to n8n Connector
Entry point. Handles logging, the auth context and routing.
"""

import streamlit as st

from connector.auth import provide_auth_context
from connector.logging_config import configure_logging
from connector.routes import go_to

st.set_page_config(
    page_title   = "Connect",
    page_icon    = "🔗",
    layout       = "centered",
)

configure_logging()

# ── Auth context ──────────────────────────────────────────────────────────────
ctx = provide_auth_context()

# ── Routing ───────────────────────────────────────────────────────────────────
# ?path=/calls/abc style deep links map onto the page table; otherwise
# signed-in visitors go straight to the n8n hand-off.
deep_link = st.query_params.get("path")
if deep_link:
    go_to(deep_link)
elif ctx.user is not None:
    go_to("/redirect")
else:
    go_to("/login")
