"""
pages/create_web_call.py
Pick a Retell agent and provision a new web call.
Reached at /create-web-call or /create-web-call/<agent_id> (agent preselected).
"""

import streamlit as st

from connector.auth import provide_auth_context, require_auth
from connector.calls import CallFlow, CallState
from connector.logging_config import configure_logging
from connector.retell import RetellProxy
from connector.routes import go_to, route_param
from connector.views import apply_theme, render_sidebar

st.set_page_config(page_title="Connect · New Web Call", page_icon="🔗", layout="centered")

configure_logging()
ctx = provide_auth_context()
require_auth()

apply_theme()
render_sidebar(ctx, key="create_call")

# ─── Flow setup ───────────────────────────────────────────────────────────────

_FLOW_KEY = "pending_call_flow"

flow = st.session_state.get(_FLOW_KEY)
if flow is None:
    flow = CallFlow(RetellProxy(ctx.gateway.client), ctx.notifier, agent_id=route_param("agent_id"))
    st.session_state[_FLOW_KEY] = flow
    with st.spinner("Loading agents..."):
        flow.load_agents()

# ─── Form ─────────────────────────────────────────────────────────────────────

st.title("📹 Create New Web Call")

if not flow.agents:
    st.error("No agents could be loaded.")
    if st.button("Retry", key="retry_agents"):
        with st.spinner("Loading agents..."):
            flow.load_agents()
        st.rerun()
    st.stop()

agent_ids = [agent.agent_id for agent in flow.agents]
labels = {agent.agent_id: agent.label for agent in flow.agents}
current = flow.selected_agent_id if flow.selected_agent_id in agent_ids else None

choice = st.selectbox(
    "Select Agent",
    options=agent_ids,
    index=agent_ids.index(current) if current else None,
    format_func=lambda agent_id: labels.get(agent_id, agent_id),
    placeholder="Select an agent",
    help="Choose the agent that will handle this web call",
)

if choice and (choice != flow.selected_agent_id or flow.state is CallState.IDLE):
    flow.select_agent(choice)

busy = flow.state in (CallState.FETCHING_AGENTS, CallState.CREATING)
if st.button(
    "Create Web Call",
    use_container_width=True,
    disabled=busy or flow.state is not CallState.AGENT_SELECTED,
):
    with st.spinner("Creating..."):
        result = flow.create_call()
    if result.ok:
        st.session_state.setdefault("calls", {})[flow.call.call_id] = flow
        del st.session_state[_FLOW_KEY]
        go_to(f"/calls/{flow.call.call_id}")

if flow.last_error is not None:
    st.caption(f"Last error: {flow.last_error}")
