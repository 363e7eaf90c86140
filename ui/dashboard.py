"""Real-time CLI dashboard for gateway monitoring."""

from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from core.request_types import OutboundRequest
from ui.log_utils import write_cli_log, write_forward_log

console = Console()

STATUS_STYLES = {"2xx": "green", "3xx": "cyan", "4xx": "yellow", "5xx": "red"}


class ForwardInfo:
    """Info about a single forwarded request."""

    def __init__(self, method: str, path: str, status: int, elapsed_ms: float, timestamp: datetime):
        self.method = method
        self.path = path[:60] + "..." if len(path) > 60 else path
        self.status = status
        self.elapsed_ms = elapsed_ms
        self.timestamp = timestamp


def status_class(status: int) -> str:
    return f"{status // 100}xx"


class Dashboard:
    """Real-time dashboard showing recent forwards and upstream errors."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._recent: list[ForwardInfo] = []
        self._max_recent = 10
        self._status_count = {name: 0 for name in STATUS_STYLES}
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_forward(
        self,
        method: str,
        path: str,
        status: int,
        elapsed_ms: float,
        *,
        outbound: OutboundRequest | None = None,
    ) -> None:
        """Record a forwarded request and its final status."""
        with self._lock:
            bucket = status_class(status)
            if bucket in self._status_count:
                self._status_count[bucket] += 1
            info = ForwardInfo(method, path, status, elapsed_ms, datetime.now())
            self._recent.insert(0, info)
            self._recent = self._recent[: self._max_recent]
            self._refresh()

            if outbound is not None:
                write_forward_log(outbound, status, elapsed_ms)
            write_cli_log("FORWARD", f"{method} {path}", status=status, ms=f"{elapsed_ms:.1f}")

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{route} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], route=route, status=status)

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_recent_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("Products Gateway", style="bold cyan")
        for name, style in STATUS_STYLES.items():
            stats.append("  |  ")
            stats.append(f"{name}: {self._status_count[name]}", style=style)
        stats.append("  |  ")
        stats.append(f"Port: {self.config.gateway.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_recent_panel(self) -> Panel:
        """Build the recent forwards panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=7)
            table.add_column("Path", ratio=3)
            table.add_column("Status", width=6)
            table.add_column("ms", width=8, justify="right")

            for info in self._recent:
                style = STATUS_STYLES.get(status_class(info.status), "")
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    info.method,
                    info.path,
                    Text(str(info.status), style=style),
                    f"{info.elapsed_ms:.1f}",
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(
            content,
            title=f"[blue]Forwarding to {self.config.backend.base_url}[/blue]",
            border_style="blue",
        )

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Send requests to http://localhost:{self.config.gateway.port}"
                f"{self.config.gateway.prefix}/...",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
