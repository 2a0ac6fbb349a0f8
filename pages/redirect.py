"""
pages/redirect.py
Waiting screen that hands the signed-in session over to n8n.
"""

import streamlit as st

from connector.auth import provide_auth_context
from connector.logging_config import configure_logging
from connector.redirect import show_redirect
from connector.routes import go_to
from connector.views import apply_theme, render_sidebar

st.set_page_config(page_title="Connect · Connecting to n8n", page_icon="🔗", layout="centered")

configure_logging()
ctx = provide_auth_context()

if not ctx.is_loading and ctx.user is None:
    go_to("/login")

apply_theme()
render_sidebar(ctx, key="redirect")

st.markdown(
    """
<div style="text-align:center; padding:2rem 1rem 1rem;">
  <h1 style="font-size:1.8rem; font-weight:600; margin-bottom:0.4rem;">Connecting to n8n</h1>
  <p style="color:rgba(250,250,250,0.7);">
    Please wait while we securely connect you to your n8n instance
  </p>
</div>
""",
    unsafe_allow_html=True,
)
st.progress(100)

show_redirect(ctx.store, st.session_state)
