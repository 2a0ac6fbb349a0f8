"""
connector/calls.py
Web call provisioning flow.

One CallFlow drives one call through

    IDLE → FETCHING_AGENTS → AGENT_SELECTED → CREATING → PROVISIONED
         → CALL_ACTIVE → CALL_ENDED

Agents are listed and calls created through the RetellProxy; the real-time
audio is run by a CallClient (the browser widget in the app, a fake in tests).
"""

import logging
from enum import Enum
from typing import Callable, Protocol

from connector.notify import Notifier
from connector.results import ErrorKind, Result
from connector.retell import Agent, CallSession, RetellProxy

logger = logging.getLogger(__name__)

CALL_STARTED = "call_started"
CALL_ENDED = "call_ended"
CALL_ERROR = "error"

API_KEY_PLACEHOLDER = "YOUR_RETELL_API_KEY"


class CallState(str, Enum):
    IDLE = "idle"
    FETCHING_AGENTS = "fetching_agents"
    AGENT_SELECTED = "agent_selected"
    CREATING = "creating"
    PROVISIONED = "provisioned"
    CALL_ACTIVE = "call_active"
    CALL_ENDED = "call_ended"


class InvalidTransition(RuntimeError):
    def __init__(self, action: str, state: CallState):
        super().__init__(f"Cannot {action} while {state.value}")
        self.action = action
        self.state = state


class CallClient(Protocol):
    """Real-time call client: started with an access token, emits events."""

    def on(self, event: str, handler: Callable[[dict | None], None]) -> None: ...

    def start_call(self, access_token: str, capture_device_id: str | None = None) -> None: ...

    def stop_call(self) -> None: ...


def build_code_snippet(agent_id: str, api_key: str = API_KEY_PLACEHOLDER) -> str:
    """Return the embeddable JavaScript shown after a call is provisioned."""
    return f"""
// Initialize the Retell SDK
const client = new Retell({{
  apiKey: '{api_key}'
}});

// Create a web call
const webCallResponse = await client.call.createWebCall({{
  agent_id: '{agent_id}'
}});

console.log(webCallResponse);"""


class CallFlow:
    """State machine for listing agents, provisioning a call and running it."""

    def __init__(self, proxy: RetellProxy, notifier: Notifier, agent_id: str | None = None):
        self._proxy = proxy
        self._notifier = notifier
        self.state = CallState.IDLE
        self.agents: list[Agent] = []
        self.selected_agent_id = agent_id
        self.call: CallSession | None = None
        self.client: CallClient | None = None
        self.last_error = None

    def _require(self, action: str, *states: CallState) -> None:
        if self.state not in states:
            raise InvalidTransition(action, self.state)

    def _fail(self, result: Result, title: str) -> Result:
        self.last_error = result.error
        logger.error("%s: %s", title, result.error)
        self._notifier.error(str(result.error), title=title)
        return result

    # ─── Agents ───────────────────────────────────────────────────────────────

    def load_agents(self) -> Result:
        self._require("load agents", CallState.IDLE, CallState.AGENT_SELECTED)
        self.state = CallState.FETCHING_AGENTS
        result = self._proxy.list_agents()
        self.state = CallState.IDLE

        if not result.ok:
            return self._fail(result, "Error fetching agents")
        if not result.value:
            return self._fail(
                Result.failure(ErrorKind.REJECTED, "No agents are available."),
                "Error fetching agents",
            )

        self.agents = list(result.value)
        self.last_error = None
        if self.selected_agent_id and self._find_agent(self.selected_agent_id):
            self.state = CallState.AGENT_SELECTED
        return result

    def _find_agent(self, agent_id: str) -> Agent | None:
        return next((a for a in self.agents if a.agent_id == agent_id), None)

    def select_agent(self, agent_id: str) -> None:
        self._require("select an agent", CallState.IDLE, CallState.AGENT_SELECTED)
        if self._find_agent(agent_id) is None:
            raise ValueError(f"Unknown agent: {agent_id}")
        self.selected_agent_id = agent_id
        self.state = CallState.AGENT_SELECTED

    # ─── Provisioning ─────────────────────────────────────────────────────────

    def create_call(self) -> Result:
        """
        Ask the proxy for a new web call for the selected agent.

        Any failure, including a response without call_id or access_token,
        returns the flow to IDLE with the agent list intact.
        """
        self._require("create a call", CallState.AGENT_SELECTED)
        self.state = CallState.CREATING
        result = self._proxy.create_web_call(self.selected_agent_id)

        if not result.ok:
            self.state = CallState.IDLE
            return self._fail(result, "Error creating web call")

        self.call = result.value
        self.last_error = None
        self.state = CallState.PROVISIONED
        self._notifier.success(f"Web call created successfully. Call ID: {self.call.call_id}")
        return result

    @property
    def code_snippet(self) -> str | None:
        if self.call is None:
            return None
        return build_code_snippet(self.call.agent_id or self.selected_agent_id or "")

    # ─── Live call ────────────────────────────────────────────────────────────

    def start_call(self, client: CallClient, capture_device_id: str | None = None) -> None:
        self._require("start the call", CallState.PROVISIONED)
        if self.client is not None:
            return
        self.client = client
        client.on(CALL_STARTED, lambda payload=None: self.handle_event(CALL_STARTED, payload))
        client.on(CALL_ENDED, lambda payload=None: self.handle_event(CALL_ENDED, payload))
        client.on(CALL_ERROR, lambda payload=None: self.handle_event(CALL_ERROR, payload))
        logger.info("Starting web call %s", self.call.call_id)
        client.start_call(self.call.access_token, capture_device_id)

    def handle_event(self, name: str, payload: dict | None = None) -> None:
        """
        Apply one client event.

        An error always logs, notifies and stops the client, even after the
        remote side has already ended the call.  Other events are ignored once
        the call has ended.
        """
        if name == CALL_ERROR:
            message = (payload or {}).get("message") or "An error occurred during the call."
            logger.error("Call %s error: %s", self.call.call_id if self.call else None, message)
            self._notifier.error(message, title="Call error")
            self.state = CallState.CALL_ENDED
            if self.client is not None:
                self.client.stop_call()
            return

        if self.state is CallState.CALL_ENDED:
            return

        if name == CALL_STARTED:
            if self.state is CallState.PROVISIONED:
                self.state = CallState.CALL_ACTIVE
                logger.info("Call %s started", self.call.call_id)
        elif name == CALL_ENDED:
            if self.state in (CallState.PROVISIONED, CallState.CALL_ACTIVE):
                self.state = CallState.CALL_ENDED
                logger.info("Call %s ended", self.call.call_id)

    @property
    def can_stop(self) -> bool:
        if self.state is CallState.CALL_ACTIVE:
            return True
        return self.state is CallState.PROVISIONED and self.client is not None

    def stop_call(self) -> bool:
        """User-initiated stop.  Returns False when there is nothing to stop."""
        if not self.can_stop:
            return False
        self.state = CallState.CALL_ENDED
        self.client.stop_call()
        logger.info("Call %s stopped by user", self.call.call_id)
        return True
