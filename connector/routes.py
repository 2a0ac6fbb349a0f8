"""
connector/routes.py
Route table for Connect.

Maps the public URL paths onto Streamlit page scripts and carries pending
navigation requests from event listeners to the page that is rendering.
Listeners run inside provider callbacks, where st.switch_page must not be
called, so they record the target and the page follows it afterwards.
"""

import re
from dataclasses import dataclass, field

import streamlit as st

LOGIN_PAGE = "pages/login.py"
SIGNUP_PAGE = "pages/signup.py"
REDIRECT_PAGE = "pages/redirect.py"
CREATE_CALL_PAGE = "pages/create_web_call.py"
CALL_PAGE = "pages/call.py"
NOT_FOUND_PAGE = "pages/not_found.py"

_ROUTE_PARAMS_KEY = "route_params"

# (pattern, page); first match wins.
_ROUTES = [
    (re.compile(r"^/?$"), LOGIN_PAGE),
    (re.compile(r"^/login/?$"), LOGIN_PAGE),
    (re.compile(r"^/signup/?$"), SIGNUP_PAGE),
    (re.compile(r"^/redirect/?$"), REDIRECT_PAGE),
    (re.compile(r"^/create-web-call(?:/(?P<agent_id>[^/]+))?/?$"), CREATE_CALL_PAGE),
    (re.compile(r"^/calls/(?P<call_id>[^/]+)/?$"), CALL_PAGE),
]


@dataclass(frozen=True)
class Route:
    path: str
    page: str
    params: dict = field(default_factory=dict)

    @property
    def found(self) -> bool:
        return self.page != NOT_FOUND_PAGE


def resolve_route(path: str | None) -> Route:
    """Return the Route for a URL path; unmatched paths resolve to the 404 page."""
    path = (path or "/").split("?", 1)[0]
    for pattern, page in _ROUTES:
        match = pattern.match(path)
        if match:
            params = {k: v for k, v in match.groupdict().items() if v is not None}
            return Route(path, page, params)
    return Route(path, NOT_FOUND_PAGE, {"path": path})


class Navigator:
    """Holds at most one pending in-app navigation."""

    def __init__(self):
        self.pending: str | None = None

    def request(self, path: str) -> None:
        self.pending = path

    def consume(self) -> str | None:
        path, self.pending = self.pending, None
        return path


# ─── Streamlit glue ───────────────────────────────────────────────────────────

def go_to(path: str) -> None:
    """Switch to the page for path, keeping its params for the target page."""
    route = resolve_route(path)
    st.session_state[_ROUTE_PARAMS_KEY] = dict(route.params)
    st.switch_page(route.page)


def follow_navigation(navigator: Navigator) -> None:
    """Switch page if a listener requested navigation during this run."""
    path = navigator.consume()
    if path is not None:
        go_to(path)


def route_param(name: str) -> str | None:
    """Read a route parameter from the query string or the last go_to()."""
    value = st.query_params.get(name)
    if value:
        return value
    return st.session_state.get(_ROUTE_PARAMS_KEY, {}).get(name)
