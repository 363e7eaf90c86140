"""Shared protocol definitions."""

from typing import Protocol

from core.request_types import OutboundRequest


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard, HeadlessLogger)."""

    def log_forward(
        self,
        method: str,
        path: str,
        status: int,
        elapsed_ms: float,
        *,
        outbound: OutboundRequest | None = None,
    ) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...
