"""HTTP client for the single upstream backend."""

import asyncio
import errno
from urllib.parse import urlsplit

import httpx

from core.config import MAX_BODY_SIZE, UPSTREAM_TIMEOUT
from core.exceptions import ResponseTooLarge
from core.outcome import Failure, FailureKind, Success, UpstreamOutcome
from core.request_types import OutboundRequest

_REFUSED_ERRNOS = {errno.ECONNREFUSED}
_TIMEOUT_ERRNOS = {errno.ETIMEDOUT}


class UpstreamClient:
    """Send outbound requests and classify whatever happens.

    Any status the upstream answers with is a Success. Only transport
    problems become a Failure, and nothing raised by httpx escapes ``send``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        timeout: float = UPSTREAM_TIMEOUT,
        max_body_size: int = MAX_BODY_SIZE,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._max_body_size = max_body_size

    async def send(self, outbound: OutboundRequest) -> UpstreamOutcome:
        """Perform the upstream call within the timeout budget."""
        if outbound.body is not None and len(outbound.body) > self._max_body_size:
            return Failure(
                FailureKind.UNKNOWN,
                f"Request body exceeds {self._max_body_size} bytes",
            )

        try:
            async with asyncio.timeout(self._timeout):
                return await self._exchange(outbound)
        except (TimeoutError, httpx.TimeoutException) as e:
            return Failure(FailureKind.TIMEOUT, _describe(e, "Upstream timeout"))
        except httpx.ConnectError as e:
            return Failure(classify_connect_error(e), _describe(e, "Upstream connection error"))
        except httpx.HTTPStatusError as e:
            return Failure(
                FailureKind.UPSTREAM_ERROR_RESPONSE,
                str(e),
                status_code=e.response.status_code,
                body=_read_body(e.response),
                content_type=e.response.headers.get("content-type"),
            )
        except (
            httpx.HTTPError,
            httpx.InvalidURL,
            httpx.StreamError,
            ResponseTooLarge,
            UnicodeEncodeError,
        ) as e:
            return Failure(FailureKind.UNKNOWN, _describe(e, type(e).__name__))

    async def _exchange(self, outbound: OutboundRequest) -> Success:
        # The target URL's own query string wins; the mapping only fills in
        # when the URL carries none.
        params = None
        if outbound.query and not urlsplit(outbound.target_url).query:
            params = outbound.query

        request = self._client.build_request(
            outbound.method,
            outbound.target_url,
            params=params,
            content=outbound.body,
            headers=_encode_headers(outbound.headers),
        )
        response = await self._client.send(request, stream=True)
        try:
            body = await self._read_limited(response)
        finally:
            await response.aclose()
        return Success(response.status_code, body, response.headers)

    async def _read_limited(self, response: httpx.Response) -> bytes:
        """Read the response body, refusing anything over the size limit."""
        declared = response.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self._max_body_size:
            raise ResponseTooLarge(self._max_body_size)

        chunks: list[bytes] = []
        size = 0
        async for chunk in response.aiter_bytes():
            size += len(chunk)
            if size > self._max_body_size:
                raise ResponseTooLarge(self._max_body_size)
            chunks.append(chunk)
        return b"".join(chunks)


def classify_connect_error(exc: BaseException) -> FailureKind:
    """Tell a refused connection apart from a connect timeout or anything else."""
    if _caused_by(exc, ConnectionRefusedError, _REFUSED_ERRNOS):
        return FailureKind.CONNECTION_REFUSED
    if _caused_by(exc, TimeoutError, _TIMEOUT_ERRNOS):
        return FailureKind.TIMEOUT
    return FailureKind.UNKNOWN


def _caused_by(exc: BaseException, exc_type: type[BaseException], errnos: set[int]) -> bool:
    """Walk the cause chain, including exception groups, looking for a match."""
    seen: set[int] = set()
    pending = [exc]
    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, exc_type) or getattr(current, "errno", None) in errnos:
            return True
        if isinstance(current, BaseExceptionGroup):
            pending.extend(current.exceptions)
        for linked in (current.__cause__, current.__context__):
            if linked is not None:
                pending.append(linked)
    return False


def _encode_headers(headers: dict[str, str]) -> dict[str, bytes]:
    """Send header values as latin-1 bytes, the way the server decoded them.

    httpx would encode str values as ASCII, which rejects obs-text (0x80-0xFF)
    that HTTP allows in field values.
    """
    return {name: value.encode("latin-1") for name, value in headers.items()}


def _read_body(response: httpx.Response) -> bytes:
    """Body of a response rejected by a hook.

    httpx closes the stream when a response hook raises, so the body is only
    available if the hook read it first; otherwise it is empty.
    """
    try:
        return response.content
    except httpx.ResponseNotRead:
        return b""


def _describe(exc: BaseException, fallback: str) -> str:
    return str(exc) or fallback
