"""
pages/not_found.py
404 page for paths outside the route table.
"""

import logging

import streamlit as st

from connector.logging_config import configure_logging
from connector.routes import route_param
from connector.views import apply_theme

st.set_page_config(page_title="Connect · Not Found", page_icon="🔗", layout="centered")

configure_logging()
logger = logging.getLogger("connector.pages.not_found")

missing = route_param("path") or "unknown"
logger.error("404 Error: User attempted to access non-existent route: %s", missing)

apply_theme()
st.markdown(
    """
<div style="text-align:center; padding:2rem 1rem 1rem;">
  <h1 style="font-size:3.5rem; font-weight:700; margin-bottom:0.6rem;">404</h1>
  <p style="font-size:1.2rem; color:rgba(250,250,250,0.7);">
    Oops! The page you're looking for doesn't exist
  </p>
</div>
""",
    unsafe_allow_html=True,
)
st.page_link("pages/login.py", label="Return to Login")
