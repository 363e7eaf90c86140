"""Shared fixtures for gateway and backend tests."""

import errno
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Config
from core.request_types import OutboundRequest


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch):
    """Keep log files out of the working directory."""
    log_root = tmp_path / "logs"
    monkeypatch.setattr("ui.log_utils.LOG_ROOT", log_root)
    monkeypatch.setattr("ui.log_utils.CLI_LOG_FILE", log_root / "gateway.log")
    return log_root


class RecordingLogger:
    """RequestLogger that keeps every call for assertions."""

    def __init__(self) -> None:
        self.forwards: list[dict[str, Any]] = []
        self.errors: list[tuple[str, int, str]] = []

    def log_forward(
        self,
        method: str,
        path: str,
        status: int,
        elapsed_ms: float,
        *,
        outbound: OutboundRequest | None = None,
    ) -> None:
        self.forwards.append(
            {"method": method, "path": path, "status": status, "outbound": outbound}
        )

    def log_error(self, route: str, status: int, message: str) -> None:
        self.errors.append((route, status, message))


class MockUpstream:
    """In-process upstream built on httpx.MockTransport.

    Records every request and answers with a fixed response, or raises the
    configured exception to simulate a transport failure.
    """

    def __init__(
        self,
        *,
        status_code: int = 200,
        json: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.requests: list[httpx.Request] = []
        self._status_code = status_code
        self._json = json
        self._content = content
        self._headers = headers
        self._error = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._error is not None:
            raise self._error
        if self._content is not None:
            return httpx.Response(self._status_code, content=self._content, headers=self._headers)
        return httpx.Response(self._status_code, json=self._json, headers=self._headers)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def refused_error() -> httpx.ConnectError:
    """ConnectError shaped like the one httpx raises for ECONNREFUSED."""
    cause = ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused")
    error = httpx.ConnectError("All connection attempts failed")
    error.__cause__ = cause
    return error


@pytest.fixture
def config() -> Config:
    return Config.model_validate({"backend": {"base_url": "http://backend:3000"}})


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def gateway(config, recording_logger):
    """Factory: start the gateway against a given transport."""
    clients: list[TestClient] = []

    def _start(transport: httpx.AsyncBaseTransport, cfg: Config | None = None) -> TestClient:
        app = create_app(cfg or config, recording_logger, transport=transport)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _start
    for client in clients:
        client.__exit__(None, None, None)
