"""Inbound to outbound request translation."""

import json
from urllib.parse import parse_qsl

from core.headers import HeaderBuilder, header_value
from core.request_types import InboundRequest, OutboundRequest


class RequestTranslator:
    """Translate an inbound gateway request into an upstream request."""

    def __init__(self, backend_url: str, header_builder: HeaderBuilder | None = None) -> None:
        self._backend_url = backend_url.rstrip("/")
        self._headers = header_builder or HeaderBuilder()

    def translate(self, inbound: InboundRequest) -> OutboundRequest:
        """Build the OutboundRequest for one inbound request."""
        content_type = header_value(inbound.headers, "content-type")
        body = inbound.body if has_payload(inbound.body, content_type) else None
        return OutboundRequest(
            method=inbound.method.upper(),
            target_url=self._backend_url + inbound.path,
            query=parse_query(inbound.query_string),
            body=body,
            headers=self._headers.build_upstream_headers(inbound, has_body=body is not None),
        )


def parse_query(query_string: str) -> dict[str, str]:
    """Parse a query string into a flat mapping.

    Repeated keys keep their last value: ``a=1&a=2`` gives ``{"a": "2"}``.
    """
    return dict(parse_qsl(query_string, keep_blank_values=True))


def is_json_content_type(content_type: str | None) -> bool:
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def has_payload(body: bytes, content_type: str | None) -> bool:
    """True when the body parses as a non-empty JSON document.

    Only JSON bodies are forwarded. A missing content type is read as JSON;
    any other media type is not parsed and counts as no body. A JSON body
    that does not parse still counts, so the handler can reject it.
    """
    if not body.strip():
        return False
    if content_type and not is_json_content_type(content_type):
        return False
    try:
        parsed = json.loads(body)
    except ValueError:
        return is_json_content_type(content_type)
    # An empty JSON object or array counts as no body
    return not (isinstance(parsed, (dict, list)) and not parsed)
