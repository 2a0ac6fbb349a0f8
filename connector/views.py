"""
connector/views.py
Shared page furniture: theme, auth layout, auth form and sidebar.
Presentation only. Every action goes through the AuthContext passed in.
"""

import logging

import psycopg2
import streamlit as st

from connector.auth import logout
from connector.db import has_database_credentials
from connector.roles import get_user_role
from connector.routes import follow_navigation
from connector.session import AuthContext

logger = logging.getLogger(__name__)

_THEME_CSS = """
<style>
    .stApp {
        background-color: #0E1117;
        color: #FAFAFA;
    }
    .stButton > button, .stFormSubmitButton > button {
        background-color: #4DB6AC;
        color: #0E1117;
        border: 1px solid #4DB6AC;
        font-weight: 600;
    }
    .stButton > button:hover, .stFormSubmitButton > button:hover {
        color: #0E1117;
        border-color: #4DB6AC;
    }
</style>
"""


def apply_theme() -> None:
    st.markdown(_THEME_CSS, unsafe_allow_html=True)


def render_auth_layout() -> None:
    """Header shown above the login and sign-up forms."""
    apply_theme()
    st.caption("CONNECT")
    st.title("Supabase to n8n Connector")
    st.markdown(
        "Seamlessly authenticate with Supabase and connect to your n8n instance "
        "with a single sign-in."
    )


def render_auth_footer() -> None:
    st.divider()
    st.caption("Secure authentication powered by Supabase")


def render_auth_form(ctx: AuthContext, kind: str) -> None:
    """
    Email/password form for kind 'login' or 'signup'.

    Inputs and the submit button are disabled while an auth request is in
    flight.  After submission, any navigation requested by the auth event
    listeners (SIGNED_IN → /redirect) is followed.
    """
    is_login = kind == "login"
    busy = ctx.is_loading

    with st.form(f"{kind}_form"):
        st.subheader("Welcome back" if is_login else "Create an account")
        st.caption(
            "Enter your credentials to access your account"
            if is_login
            else "Fill out the form below to create your account"
        )
        email = st.text_input("Email", placeholder="name@example.com", key=f"{kind}_email", disabled=busy)
        password = st.text_input("Password", type="password", key=f"{kind}_password", disabled=busy)
        submitted = st.form_submit_button(
            "Sign In" if is_login else "Sign Up",
            use_container_width=True,
            disabled=busy,
        )

    if submitted:
        if not email or not password:
            st.warning("Email and password are required.")
        else:
            with st.spinner("Signing in…" if is_login else "Creating account…"):
                if is_login:
                    ctx.gateway.sign_in(email, password)
                else:
                    ctx.gateway.sign_up(email, password)
            follow_navigation(ctx.navigator)

    if is_login:
        st.page_link("pages/signup.py", label="Don't have an account? Sign up")
    else:
        st.page_link("pages/login.py", label="Already have an account? Sign in")


def render_sidebar(ctx: AuthContext, key: str) -> None:
    """Navigation links plus the signed-in user's email, role and sign-out."""
    with st.sidebar:
        st.page_link("pages/create_web_call.py", label="New Web Call")
        st.page_link("pages/redirect.py", label="Open n8n")
        st.divider()
        user = ctx.user
        if user:
            role = _sidebar_role(getattr(user, "id", None))
            if role:
                st.markdown(f"**{role.title()}**")
            st.caption(getattr(user, "email", ""))
        if st.button("Sign Out", key=f"sidebar_signout_{key}"):
            logout()


def _sidebar_role(user_id: str | None) -> str | None:
    """Role shown in the sidebar; None when it cannot be read directly."""
    if not user_id or not has_database_credentials():
        return None
    try:
        return get_user_role(user_id)
    except psycopg2.Error as exc:
        logger.error("Error loading role for %s: %s", user_id, exc)
        return None
