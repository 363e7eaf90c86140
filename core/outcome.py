"""Result of a single upstream call."""

from dataclasses import dataclass
from enum import Enum

import httpx


class FailureKind(str, Enum):
    CONNECTION_REFUSED = "connection_refused"
    TIMEOUT = "timeout"
    UPSTREAM_ERROR_RESPONSE = "upstream_error_response"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Success:
    """Upstream answered, whatever the status code."""

    status_code: int
    body: bytes
    headers: httpx.Headers


@dataclass(frozen=True)
class Failure:
    """Classified transport failure.

    ``status_code`` and ``body`` are only set for UPSTREAM_ERROR_RESPONSE.
    ``detail`` is for logs and never reaches the caller.
    """

    kind: FailureKind
    detail: str
    status_code: int | None = None
    body: bytes | None = None
    content_type: str | None = None


UpstreamOutcome = Success | Failure
