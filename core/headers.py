"""Header allow-lists for upstream requests and relayed responses."""

import httpx

from core.request_types import InboundRequest

DEFAULT_CONTENT_TYPE = "application/json"

# Upstream response headers relayed to the caller. Everything else is dropped.
RELAYED_RESPONSE_HEADERS = ("content-type", "content-length")


class HeaderBuilder:
    """Build outbound request headers and relayed response headers."""

    def build_upstream_headers(self, inbound: InboundRequest, has_body: bool) -> dict[str, str]:
        """Start from nothing and set only the forwarded headers."""
        upstream: dict[str, str] = {}
        if has_body:
            upstream["Content-Type"] = (
                header_value(inbound.headers, "content-type") or DEFAULT_CONTENT_TYPE
            )
        upstream["X-Forwarded-For"] = inbound.client_host or "unknown"
        upstream["X-Forwarded-Proto"] = inbound.scheme
        return upstream

    def build_response_headers(self, upstream: httpx.Headers) -> dict[str, str]:
        """Copy the relayed headers present on the upstream response.

        When the upstream body was content-decoded in transit its declared
        length no longer matches the relayed bytes, so content-length is left
        for the framework to compute.
        """
        relayed: dict[str, str] = {}
        decoded = upstream.get("content-encoding", "identity").lower() != "identity"
        for name in RELAYED_RESPONSE_HEADERS:
            if name == "content-length" and decoded:
                continue
            value = upstream.get(name)
            if value is not None:
                relayed[name] = value
        return relayed


def header_value(headers: dict[str, str], name: str) -> str | None:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None
