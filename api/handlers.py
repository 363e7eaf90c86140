"""FastAPI route handlers."""

import json
from json import JSONDecodeError

from fastapi import Request, Response

from core.config import Config
from core.exceptions import InvalidJSON, RequestTooLarge
from core.headers import header_value
from core.protocols import RequestLogger
from core.request_types import InboundRequest
from core.translator import has_payload, is_json_content_type
from ui.log_utils import write_incoming_log


async def _read_body(request: Request, limit: int) -> bytes:
    """Read the request body, stopping as soon as it exceeds the limit."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise RequestTooLarge(f"Request body exceeds {limit} bytes")

    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            raise RequestTooLarge(f"Request body exceeds {limit} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


def _check_json(body: bytes, content_type: str | None) -> None:
    if not is_json_content_type(content_type) or not has_payload(body, content_type):
        return
    try:
        json.loads(body)
    except (JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidJSON(str(e)) from e


async def _build_inbound(request: Request, config: Config) -> InboundRequest:
    """Capture the parts of the request the translator needs."""
    body = await _read_body(request, config.limits.max_body_size)
    headers = dict(request.headers)
    _check_json(body, header_value(headers, "content-type"))

    query_string = request.scope.get("query_string", b"").decode("latin-1")
    raw_path = request.scope.get("raw_path")
    path = raw_path.split(b"?", 1)[0].decode("latin-1") if raw_path else request.url.path
    if query_string:
        path = f"{path}?{query_string}"

    return InboundRequest(
        method=request.method,
        path=path,
        query_string=query_string,
        body=body,
        headers=headers,
        client_host=request.client.host if request.client else None,
        scheme=request.url.scheme,
    )


async def handle_forward(
    request: Request,
    config: Config,
    logger: RequestLogger,
) -> Response:
    """Handle every method under the proxy prefix."""
    try:
        inbound = await _build_inbound(request, config)
    except RequestTooLarge as e:
        logger.log_error("gateway", 413, str(e))
        return Response(
            content='{"error": "Request body too large"}',
            status_code=413,
            media_type="application/json",
        )
    except InvalidJSON as e:
        logger.log_error("gateway", 400, f"Invalid JSON: {e}")
        return Response(
            content=json.dumps({"error": f"Invalid JSON: {e}"}),
            status_code=400,
            media_type="application/json",
        )

    write_incoming_log(inbound.method, inbound.path, inbound.headers, inbound.body)
    forwarding = request.app.state.forwarding_handler
    return await forwarding.forward(inbound)


async def handle_health() -> dict[str, bool]:
    """Liveness only; never touches the backend."""
    return {"ok": True}
