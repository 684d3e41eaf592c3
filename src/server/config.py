"""Configuration model for the focus timer websocket server."""

from __future__ import annotations

from dataclasses import dataclass


class ServerConfigurationError(Exception):
    """Raised when UI server configuration is invalid."""


WEBSOCKET_PATH = "/ws"
HEALTHZ_PATH = "/healthz"


@dataclass(frozen=True)
class UIServerConfig:
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765

    def __post_init__(self) -> None:
        if not isinstance(self.host, str) or not self.host.strip():
            raise ServerConfigurationError("ui_server.host cannot be empty")
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ServerConfigurationError(f"ui_server.port must be an integer, got: {self.port!r}")
        if not 1 <= self.port <= 65535:
            raise ServerConfigurationError(f"ui_server.port must be in [1, 65535], got: {self.port}")

    @property
    def websocket_path(self) -> str:
        return WEBSOCKET_PATH

    @property
    def websocket_url(self) -> str:
        return f"ws://{self.host}:{self.port}{WEBSOCKET_PATH}"

    @classmethod
    def from_settings(cls, settings) -> "UIServerConfig":
        """Build from the `[ui_server]` section of the app config."""
        return cls(
            enabled=bool(settings.enabled),
            host=settings.host.strip(),
            port=settings.port,
        )
