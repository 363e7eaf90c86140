"""CLI entry point for products-gateway."""

import os
import sys
from datetime import datetime

import httpx
from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, Config, load_config
from core.exceptions import ConfigurationError
from ui.dashboard import Dashboard
from ui.headless import HeadlessLogger
from ui.log_utils import clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    try:
        config = load_config()
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        sys.exit(1)

    args = sys.argv[1:]

    if "--help" in args or "-h" in args:
        _print_help()
        return

    if "--config" in args:
        console.print(f"[bold]Config:[/bold] {os.environ.get('GATEWAY_CONFIG') or CONFIG_FILE}")
        console.print_json(config.model_dump_json())
        return

    if "--check" in args:
        sys.exit(0 if check_backend(config) else 1)

    if "--backend" in args:
        _serve_backend(config)
        return

    headless = "--no-dashboard" in args or not config.dashboard
    _serve_gateway(config, headless=headless)


def check_backend(config: Config) -> bool:
    """Probe the backend health endpoint."""
    url = f"{config.backend.base_url.rstrip('/')}/health"
    try:
        response = httpx.get(url, timeout=config.limits.timeout)
    except httpx.TimeoutException:
        console.print(f"[red]Backend timeout[/red] ({url})")
        return False
    except httpx.HTTPError as e:
        console.print(f"[red]Backend unreachable[/red] ({url}): {e}")
        return False

    if response.status_code == 200:
        console.print(f"[green]Backend healthy[/green] ({url})")
        return True
    console.print(f"[yellow]Backend answered {response.status_code}[/yellow] ({url})")
    return False


def _serve_gateway(config: Config, *, headless: bool) -> None:
    import uvicorn

    clear_logs()
    logger = HeadlessLogger() if headless else Dashboard(config)
    app = create_app(config, logger)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.gateway.host,
        port=config.gateway.port,
        log_level="info" if headless else "warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    if isinstance(logger, Dashboard):
        logger.start()
    start_time = datetime.now()
    write_cli_log(
        "STARTUP",
        "Gateway started",
        port=config.gateway.port,
        backend=config.backend.base_url,
    )
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Gateway stopped", duration=str(duration))
        if isinstance(logger, Dashboard):
            logger.stop()


def _serve_backend(config: Config) -> None:
    import uvicorn

    from products.app import create_backend_app

    write_cli_log("STARTUP", "Products backend started", port=config.gateway.port)
    uvicorn.run(
        create_backend_app(),
        host=config.gateway.host,
        port=config.gateway.port,
        log_level="info",
    )


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Products Gateway[/bold cyan]

Forwards /api/* to the products backend and normalizes upstream failures.

[bold]Usage:[/bold]
    products-gateway                  Start with live dashboard
    products-gateway --no-dashboard   Start without the dashboard
    products-gateway --backend        Serve the in-memory products backend
    products-gateway --check          Check backend health
    products-gateway --config         Show config location and values
    products-gateway --help           Show this help

[bold]Environment:[/bold]
    BACKEND_URL       Backend base URL (default http://backend:3000)
    HOST, PORT        Listen address (default 0.0.0.0:8080)
    GATEWAY_CONFIG    Path to a JSON config file
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
