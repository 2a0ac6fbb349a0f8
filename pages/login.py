"""
pages/login.py
Sign-in page.
"""

import streamlit as st

from connector.auth import provide_auth_context
from connector.logging_config import configure_logging
from connector.routes import go_to
from connector.views import render_auth_footer, render_auth_form, render_auth_layout

st.set_page_config(page_title="Connect · Sign In", page_icon="🔗", layout="centered")

configure_logging()
ctx = provide_auth_context()

if ctx.user is not None and not ctx.is_loading:
    go_to("/redirect")

render_auth_layout()
render_auth_form(ctx, "login")
render_auth_footer()
