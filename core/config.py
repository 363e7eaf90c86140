"""Configuration models and loading."""

import json
import os
from collections.abc import Mapping
from pathlib import Path
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.exceptions import ConfigurationError

CONFIG_DIR = Path.home() / ".config" / "products-gateway"
CONFIG_FILE = CONFIG_DIR / "config.json"

MAX_BODY_SIZE = 50 * 1024 * 1024  # 50MB
UPSTREAM_TIMEOUT = 30.0


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class GatewaySettings(_Frozen):
    host: str = "0.0.0.0"
    port: int = 8080
    prefix: str = "/api"


class BackendSettings(_Frozen):
    base_url: str = "http://backend:3000"


class LimitsSettings(_Frozen):
    timeout: float = UPSTREAM_TIMEOUT
    max_body_size: int = MAX_BODY_SIZE
    keep_alive_timeout: int = 5
    max_connections: int = 100
    max_keepalive_connections: int = 20


class Config(_Frozen):
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    backend: BackendSettings = Field(default_factory=BackendSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    dashboard: bool = True


def load_config(
    path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Config:
    """Load configuration from an optional JSON file plus environment overrides."""
    env = os.environ if env is None else env
    if path is None:
        path = Path(env["GATEWAY_CONFIG"]) if env.get("GATEWAY_CONFIG") else CONFIG_FILE

    data: dict = {}
    if path.exists():
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid config file {path}: expected an object")

    overrides = {
        ("backend", "base_url"): env.get("BACKEND_URL"),
        ("gateway", "host"): env.get("HOST"),
        ("gateway", "port"): env.get("PORT"),
    }
    for (section, key), value in overrides.items():
        if value:
            data.setdefault(section, {})[key] = value

    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    _check_backend_url(config.backend.base_url)
    return config


def _check_backend_url(url: str) -> None:
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigurationError(f"Backend URL must be an absolute http(s) URL, got {url!r}")
