"""Config file loading and auto-discovery for ics-baremetal.

Searches for ``ics.yaml`` in the current directory and parent
directories and parses it. Values missing from the file fall back to
the ``ICS_API_TOKEN`` / ``ICS_BASE_URL`` environment variables, then to
built-in defaults.

Example ``ics.yaml``::

    api_token: "..."
    base_url: https://api.ingenuitycloudservices.com
    request_timeout: 300
    poll_interval: 30
    provisioning_timeout: 1800
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from ics_baremetal.client.transport import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS
from ics_baremetal.provisioning.poller import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_PROVISIONING_TIMEOUT,
)

CONFIG_FILENAME = "ics.yaml"
TOKEN_ENV_VAR = "ICS_API_TOKEN"
BASE_URL_ENV_VAR = "ICS_BASE_URL"


class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


@dataclass(frozen=True)
class ProviderConfig:
    """Parsed provider configuration."""

    config_path: Path | None = None
    api_token: str | None = None
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_TIMEOUT_SECONDS
    poll_interval: float = DEFAULT_POLL_INTERVAL
    provisioning_timeout: float = DEFAULT_PROVISIONING_TIMEOUT

    def require_token(self) -> str:
        """Return the API token or raise ConfigError."""
        if not self.api_token:
            raise ConfigError(
                "Missing API token: set 'api_token' in "
                f"{self.config_path or CONFIG_FILENAME} or the {TOKEN_ENV_VAR} "
                "environment variable."
            )
        return self.api_token


def find_config(start: Path | None = None) -> Path | None:
    """Walk from *start* (default ``cwd()``) up to the filesystem root.

    Returns the first ``ics.yaml`` found, or ``None``.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(
    path: str | Path | None = None,
    *,
    auto_discover: bool = True,
    environ: dict[str, str] | None = None,
) -> ProviderConfig:
    """Load the provider configuration.

    Resolution order for the file:

    1. Explicit *path* (error if it doesn't exist).
    2. Auto-discover by walking parent directories.
    3. No file: defaults only.

    Environment variables fill in ``api_token`` and ``base_url`` when the
    file does not set them.
    """
    env = os.environ if environ is None else environ
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).resolve()
        if not config_path.is_file():
            msg = f"Config file not found: {config_path}"
            raise FileNotFoundError(msg)
    elif auto_discover:
        config_path = find_config()

    data = {} if config_path is None else _read_yaml(config_path)
    cfg = _parse_config(config_path, data)

    if not cfg.api_token and env.get(TOKEN_ENV_VAR):
        cfg = replace(cfg, api_token=env[TOKEN_ENV_VAR])
    if not data.get("base_url") and env.get(BASE_URL_ENV_VAR):
        cfg = replace(cfg, base_url=env[BASE_URL_ENV_VAR])
    return cfg


def _read_yaml(config_path: Path) -> dict[str, Any]:
    """Read a YAML config file into a mapping."""
    text = config_path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping in {config_path}, got {type(data).__name__}"
        raise ConfigError(msg)
    return data


def _parse_config(config_path: Path | None, data: dict[str, Any]) -> ProviderConfig:
    return ProviderConfig(
        config_path=config_path,
        api_token=data.get("api_token"),
        base_url=data.get("base_url") or DEFAULT_BASE_URL,
        request_timeout=_seconds(data, "request_timeout", DEFAULT_TIMEOUT_SECONDS),
        poll_interval=_seconds(data, "poll_interval", DEFAULT_POLL_INTERVAL),
        provisioning_timeout=_seconds(
            data, "provisioning_timeout", DEFAULT_PROVISIONING_TIMEOUT,
        ),
    )


def _seconds(data: dict[str, Any], key: str, default: float) -> float:
    val = data.get(key)
    if val is None:
        return default
    try:
        seconds = float(val)
    except (TypeError, ValueError):
        raise ConfigError(f"'{key}' must be a number of seconds, got {val!r}") from None
    if seconds < 0:
        raise ConfigError(f"'{key}' must be >= 0, got {val!r}")
    return seconds
