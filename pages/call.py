"""
pages/call.py
Run a provisioned web call in the browser.  Reached at /calls/<call_id>.
"""

import streamlit as st

from connector.auth import provide_auth_context, require_auth
from connector.calls import CallState
from connector.logging_config import configure_logging
from connector.routes import route_param
from connector.views import apply_theme, render_sidebar
from connector.widget import BrowserCallClient

st.set_page_config(page_title="Connect · Web Call", page_icon="🔗", layout="centered")

configure_logging()
ctx = provide_auth_context()
require_auth()

apply_theme()
render_sidebar(ctx, key="call")

call_id = route_param("call_id")
flow = st.session_state.get("calls", {}).get(call_id) if call_id else None

if flow is None:
    st.error("This call does not exist in the current session.")
    st.page_link("pages/create_web_call.py", label="Create a new web call")
    st.stop()

st.title("📞 Web Call")
st.caption(f"Call ID: {call_id}")

# ─── Live call ────────────────────────────────────────────────────────────────

client = flow.client or BrowserCallClient(key=f"retell_call_{call_id}")
state_before = flow.state
client.render()
if flow.state is not state_before:
    st.rerun()

_STATUS = {
    CallState.PROVISIONED: "Ready to start",
    CallState.CALL_ACTIVE: "Call in progress",
    CallState.CALL_ENDED: "Call ended",
}
st.markdown(f"**Status:** {_STATUS.get(flow.state, flow.state.value)}")

col_start, col_stop = st.columns(2)
with col_start:
    if st.button(
        "Start Call",
        use_container_width=True,
        disabled=flow.state is not CallState.PROVISIONED or flow.client is not None,
    ):
        flow.start_call(client)
        st.rerun()
with col_stop:
    if st.button("End Call", use_container_width=True, disabled=not flow.can_stop):
        flow.stop_call()
        st.rerun()

if flow.state is CallState.CALL_ENDED:
    st.page_link("pages/create_web_call.py", label="Start another web call")

# ─── Code snippet ─────────────────────────────────────────────────────────────

if flow.code_snippet:
    st.subheader("</> Code Snippet")
    st.code(flow.code_snippet, language="javascript")
    st.caption("Use this code snippet to integrate the web call into your application.")
