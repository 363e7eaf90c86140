"""Shared logging utilities."""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

from core.request_types import OutboundRequest

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "gateway.log"

_SENSITIVE_MARKERS = ("key", "authorization", "cookie", "token")

# Larger bodies are logged as a size only
MAX_LOGGED_BODY = 64 * 1024


def write_incoming_log(
    method: str,
    path: str,
    headers: dict[str, str],
    body: bytes,
    *,
    log_root: Path | None = None,
) -> Path | None:
    """Write a single incoming request log entry."""
    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "path": path,
        "headers": _redact_headers(headers),
        "body": _body_for_log(body),
    }
    return _write_json((log_root or LOG_ROOT) / "incoming", payload)


def write_forward_log(
    outbound: OutboundRequest,
    status: int,
    elapsed_ms: float,
    *,
    log_root: Path | None = None,
) -> Path | None:
    """Write a single forwarded request log entry."""
    payload = {
        "timestamp": _utc_now(),
        "method": outbound.method,
        "target_url": outbound.target_url,
        "query": outbound.query,
        "headers": _redact_headers(outbound.headers),
        "body": _body_for_log(outbound.body),
        "status": status,
        "elapsed_ms": round(elapsed_ms, 2),
    }
    return _write_json((log_root or LOG_ROOT) / "forwarded", payload)


def write_cli_log(
    level: str,
    message: str,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file.

    Logging is best effort: an unwritable log location never fails a request.
    """
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    try:
        CLI_LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        with CLI_LOG_FILE.open("a") as f:
            f.write(line)
    except OSError:
        pass


def clear_logs(log_root: Path | None = None) -> int:
    """Delete per-request log files left by a previous run."""
    root = log_root or LOG_ROOT
    deleted = 0
    for folder in (root / "incoming", root / "forwarded"):
        if not folder.exists():
            continue
        for old_file in folder.glob("*.json"):
            try:
                old_file.unlink()
                deleted += 1
            except OSError:
                pass
    return deleted


def _write_json(folder: Path, payload: dict[str, Any]) -> Path | None:
    """Write payload to a unique JSON file in the given folder.

    Returns None when the folder cannot be written.
    """
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    try:
        folder.mkdir(parents=True, exist_ok=True)
        file_path.write_text(json.dumps(payload, indent=2, default=str))
    except OSError:
        return None
    return file_path


def _body_for_log(body: bytes | None) -> Any:
    """Decode JSON bodies for readability, fall back to text."""
    if not body:
        return None
    if len(body) > MAX_LOGGED_BODY:
        return f"<{len(body)} bytes>"
    text = body.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


def _redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers."""
    redacted = {}
    for key, value in headers.items():
        if any(marker in key.lower() for marker in _SENSITIVE_MARKERS):
            redacted[key] = _mask(value)
        else:
            redacted[key] = value
    return redacted


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
