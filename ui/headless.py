"""Request logger without a live display."""

from core.request_types import OutboundRequest
from ui.log_utils import write_cli_log, write_forward_log


class HeadlessLogger:
    """Write the same log files as the dashboard, nothing on screen."""

    def __init__(self, write_forward_files: bool = True) -> None:
        self._write_forward_files = write_forward_files

    def log_forward(
        self,
        method: str,
        path: str,
        status: int,
        elapsed_ms: float,
        *,
        outbound: OutboundRequest | None = None,
    ) -> None:
        if outbound is not None and self._write_forward_files:
            write_forward_log(outbound, status, elapsed_ms)
        write_cli_log("FORWARD", f"{method} {path}", status=status, ms=f"{elapsed_ms:.1f}")

    def log_error(self, route: str, status: int, message: str) -> None:
        write_cli_log("ERROR", message[:200], route=route, status=status)
