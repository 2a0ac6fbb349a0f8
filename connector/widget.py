"""
connector/widget.py
Browser-side Retell call client.

The call audio runs in the visitor's browser through retell-client-js-sdk,
loaded by a static Streamlit component (connector/frontend/index.html).  The
component reads {access_token, active, capture_device_id} on each render and
returns the full list of SDK events it has seen, each with a sequence number.
BrowserCallClient turns that list back into handler calls, once per event.
"""

import logging
from pathlib import Path

import streamlit.components.v1 as components

logger = logging.getLogger(__name__)

_FRONTEND_DIR = Path(__file__).parent / "frontend"
_component_func = None


def _retell_component():
    global _component_func
    if _component_func is None:
        _component_func = components.declare_component("retell_call", path=str(_FRONTEND_DIR))
    return _component_func


class BrowserCallClient:
    """CallClient backed by the retell_call component."""

    def __init__(self, key: str, component=None):
        self.key = key
        self._component = component
        self._handlers: dict[str, list] = {}
        self._access_token = None
        self._capture_device_id = None
        self._last_seq = 0
        self.active = False

    def on(self, event: str, handler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def start_call(self, access_token: str, capture_device_id: str | None = None) -> None:
        self._access_token = access_token
        self._capture_device_id = capture_device_id
        self.active = True

    def stop_call(self) -> None:
        self.active = False

    def render(self):
        """Draw the component and dispatch any events it reported since last time."""
        component = self._component or _retell_component()
        value = component(
            access_token=self._access_token,
            active=self.active,
            capture_device_id=self._capture_device_id,
            key=self.key,
            default=None,
        )
        self.dispatch(value)
        return value

    def dispatch(self, value) -> int:
        """Call handlers for unseen events in a component value.  Returns how many."""
        if not isinstance(value, dict):
            return 0
        fresh = [
            e for e in value.get("events") or []
            if isinstance(e, dict) and int(e.get("seq") or 0) > self._last_seq
        ]
        for event in sorted(fresh, key=lambda e: int(e["seq"])):
            self._last_seq = int(event["seq"])
            name = event.get("event")
            logger.debug("Widget event %s (seq %s)", name, self._last_seq)
            for handler in self._handlers.get(name, []):
                handler(event)
        return len(fresh)
