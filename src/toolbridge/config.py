"""Client configuration — timeouts, retry policy, and handshake identity."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from urllib.parse import quote

import yaml
from pydantic import BaseModel, Field, ValidationError

from toolbridge import __version__
from toolbridge.catalog.models import GLOBAL_SCOPE


class ConfigError(Exception):
    """Raised when a settings file fails parsing or validation."""


class ClientSettings(BaseModel):
    """Tunables shared by the HTTP transport, WebSocket sessions and the invoker.

    ``http_max_retries`` retries follow the first attempt, waiting
    ``http_backoff_initial * 2 ** n`` seconds before retry ``n + 1``.
    """

    client_name: str = "toolbridge"
    client_version: str = __version__
    protocol_version: str = "2024-11-05"

    http_timeout: float = Field(default=30.0, gt=0)
    http_max_retries: int = Field(default=3, ge=0)
    http_backoff_initial: float = Field(default=0.2, ge=0)
    http_backoff_max: float = Field(default=5.0, gt=0)

    websocket_reply_timeout: float = Field(default=30.0, gt=0)
    websocket_open_timeout: float = Field(default=10.0, gt=0)
    websocket_close_timeout: float = Field(default=5.0, gt=0)
    websocket_path: str = "/ws"
    websocket_max_size: int = 16 * 1024 * 1024
    send_initialized_notification: bool = True

    invoke_path: str = "/tools/{tool}:invoke"
    default_scope: str = GLOBAL_SCOPE

    def invoke_url(self, base_url: str, tool_name: str) -> str:
        """Return the HTTP endpoint used to invoke *tool_name*.

        The name is percent-encoded as a single path segment.
        """
        return base_url.rstrip("/") + self.invoke_path.format(tool=quote(tool_name, safe=""))


class SettingsLoader:
    """Load :class:`ClientSettings` from a YAML file.

    Environment variables in the form ``${VAR}`` or ``$VAR`` are expanded
    before parsing.  Keys may sit at the top level or under a ``client:``
    section.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> ClientSettings:
        """Read, interpolate and validate the settings file.

        Raises:
            ConfigError: On read errors, YAML errors or validation failures.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read {self._path}: {exc}") from exc

        try:
            data: Any = yaml.safe_load(os.path.expandvars(raw))
        except yaml.YAMLError as exc:
            raise ConfigError(f"YAML parse error: {exc}") from exc

        if data is None:
            return ClientSettings()
        if not isinstance(data, dict):
            raise ConfigError("Settings YAML must be a mapping")
        if isinstance(data.get("client"), dict):
            data = data["client"]

        try:
            return ClientSettings.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc
