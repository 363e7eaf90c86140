"""Shared request data types."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class InboundRequest:
    """Framework-neutral view of a request received by the gateway."""

    method: str
    path: str
    query_string: str = ""
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
    client_host: str | None = None
    scheme: str = "http"


@dataclass(frozen=True)
class OutboundRequest:
    """Prepared data for an upstream request."""

    method: str
    target_url: str
    query: dict[str, str]
    body: bytes | None
    headers: dict[str, str]
