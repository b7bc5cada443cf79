"""Configuration for the tower defence lobby server.

Static tuning values live as module constants; runtime settings that differ
between deployments are read from the environment into ``ServerSettings``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

GAME_NAME = "Tower Defense"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_LOG_LEVEL = "INFO"

# Lobby defaults applied when a client omits a field.
DEFAULT_PLAYER_NAME = "Player"
DEFAULT_DIFFICULTY = "normal"
DEFAULT_MAX_PLAYERS = 4
MAX_PLAYERS_LIMIT = 16

# Frames buffered per connection before further frames to it are dropped.
OUTBOX_LIMIT = 256

# User facing reasons sent with ``serverClosed`` and ``error`` events.
HOST_LEFT_REASON = "Host left the server"
HOST_DISCONNECTED_REASON = "Host disconnected"
NOT_FOUND_MESSAGE = "Server not found"
FULL_MESSAGE = "Server is full"
BAD_PASSWORD_MESSAGE = "Incorrect password"
ALREADY_STARTED_MESSAGE = "Game already started"
ALREADY_IN_SESSION_MESSAGE = "Already in a server"


@dataclass(frozen=True)
class ServerSettings:
    """Process level settings.

    Attributes
    ----------
    host:
        Interface the HTTP server binds to.
    port:
        TCP port, taken from ``PORT`` with ``DEFAULT_PORT`` as fallback.
    log_level:
        Name of the root logging level.
    cors_origins:
        Origins allowed to open the websocket from a browser.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = DEFAULT_LOG_LEVEL
    cors_origins: Tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        env = os.environ if environ is None else environ
        port_value = env.get("PORT") or str(DEFAULT_PORT)
        try:
            port = int(port_value)
        except ValueError as exc:
            raise ValueError(f"PORT must be an integer, got {port_value!r}") from exc
        origins = env.get("CORS_ORIGINS")
        settings = cls(
            host=env.get("HOST") or DEFAULT_HOST,
            port=port,
            log_level=(env.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) if origins else ("*",),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if not 0 < self.port < 65536:
            raise ValueError("Port must be between 1 and 65535")
        if self.log_level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unknown log level {self.log_level!r}")
        if not self.cors_origins:
            raise ValueError("At least one CORS origin is required")
