"""
connector/retell.py
Client for the `retell-calls` Supabase Edge Function.

The function proxies the Retell API so the Retell key never reaches the
browser.  It takes a JSON body {"action": ..., **params}:

  listAgents     → [{"agent_id": ..., "agent_name": ...}, ...]
  createWebCall  → {"call_id": ..., "access_token": ...}
  getApiKey      → {"RETELL_API_KEY": ...}

Every method returns a Result; nothing is retried.
"""

import json
import logging

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from supabase import FunctionsError

from connector.db import get_secret
from connector.results import ErrorKind, Result

logger = logging.getLogger(__name__)

DEFAULT_FUNCTION_NAME = "retell-calls"


class Agent(BaseModel):
    """A Retell conversational agent offered for web calls."""

    model_config = ConfigDict(extra="ignore")

    agent_id: str = Field(..., min_length=1)
    agent_name: str | None = None

    @property
    def label(self) -> str:
        return self.agent_name or self.agent_id


class CallSession(BaseModel):
    """A provisioned web call and the access token for the browser client."""

    model_config = ConfigDict(extra="ignore")

    call_id: str = Field(..., min_length=1)
    access_token: str = Field(..., min_length=1)
    agent_id: str | None = None


class _ApiKeyResponse(BaseModel):
    RETELL_API_KEY: str = Field(..., min_length=1)


_AGENT_LIST = TypeAdapter(list[Agent])


def _missing_fields(exc: ValidationError) -> str:
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    return ", ".join(fields) or "response body"


class RetellProxy:
    """Thin wrapper around supabase.functions.invoke for the Retell proxy."""

    def __init__(self, client, function_name: str | None = None):
        self._client = client
        self.function_name = (
            function_name or get_secret("RETELL_FUNCTION_NAME") or DEFAULT_FUNCTION_NAME
        )

    def _invoke(self, action: str, **params) -> Result:
        body = {"action": action, **params}
        try:
            data = self._client.functions.invoke(
                self.function_name,
                invoke_options={"body": body, "responseType": "json"},
            )
        except FunctionsError as exc:
            message = getattr(exc, "message", None) or str(exc)
            logger.error("%s %s failed: %s", self.function_name, action, message)
            return Result.failure(ErrorKind.REJECTED, message)
        except httpx.HTTPError as exc:
            logger.error("%s %s transport error: %s", self.function_name, action, exc)
            return Result.failure(ErrorKind.TRANSPORT, "Could not reach the call service.")
        except ValueError as exc:
            logger.error("%s %s returned invalid JSON: %s", self.function_name, action, exc)
            return Result.failure(ErrorKind.MALFORMED_RESPONSE, "The call service returned an invalid response.")

        if isinstance(data, (bytes, str)):
            try:
                data = json.loads(data or "null")
            except ValueError:
                logger.error("%s %s returned non-JSON body", self.function_name, action)
                return Result.failure(ErrorKind.MALFORMED_RESPONSE, "The call service returned an invalid response.")

        if isinstance(data, dict) and data.get("error"):
            logger.error("%s %s returned error: %s", self.function_name, action, data["error"])
            return Result.failure(ErrorKind.REJECTED, str(data["error"]))
        return Result.success(data)

    # ─── Actions ──────────────────────────────────────────────────────────────

    def list_agents(self) -> Result:
        result = self._invoke("listAgents")
        if not result.ok:
            return result
        try:
            agents = _AGENT_LIST.validate_python(result.value or [])
        except ValidationError as exc:
            logger.error("listAgents response malformed: %s", exc)
            return Result.failure(
                ErrorKind.MALFORMED_RESPONSE,
                f"Malformed agent list: missing {_missing_fields(exc)}",
            )
        return Result.success(agents)

    def create_web_call(self, agent_id: str) -> Result:
        result = self._invoke("createWebCall", agent_id=agent_id)
        if not result.ok:
            return result
        payload = result.value if isinstance(result.value, dict) else {}
        try:
            call = CallSession.model_validate({"agent_id": agent_id, **payload})
        except ValidationError as exc:
            logger.error("createWebCall response malformed: %s", exc)
            return Result.failure(
                ErrorKind.MALFORMED_RESPONSE,
                f"Malformed call response: missing {_missing_fields(exc)}",
            )
        logger.info("Created web call %s for agent %s", call.call_id, agent_id)
        return Result.success(call)

    def get_api_key(self) -> Result:
        result = self._invoke("getApiKey")
        if not result.ok:
            return result
        try:
            parsed = _ApiKeyResponse.model_validate(result.value if isinstance(result.value, dict) else {})
        except ValidationError:
            return Result.failure(ErrorKind.MALFORMED_RESPONSE, "Malformed key response: missing RETELL_API_KEY")
        return Result.success(parsed.RETELL_API_KEY)
