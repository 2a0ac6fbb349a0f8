"""
connector/results.py
Uniform success/failure wrapper for calls to hosted services.

Service seams (Auth, PostgREST, Edge Functions, Postgres) return a Result
instead of raising, so each caller decides how a failure is shown.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Where a failure came from."""
    REJECTED = "rejected"                      # provider said no (bad credentials, duplicate email)
    TRANSPORT = "transport"                    # network / HTTP failure
    MALFORMED_RESPONSE = "malformed_response"  # response missing expected fields


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class Result:
    """Either a value (ok) or a ServiceError (failed)."""

    value: Any = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Result":
        return cls(error=ServiceError(kind, message))
