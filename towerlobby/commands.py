"""Commands consumed by the lifecycle manager.

Every inbound websocket event is turned into one of the frozen command
dataclasses below before it reaches the lifecycle manager, so transitions
can be exercised directly in tests without a live transport.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Union

from . import config


class CommandError(ValueError):
    """Raised when an inbound event cannot be turned into a command."""


@dataclass(frozen=True, slots=True)
class HostServer:
    connection_id: str
    name: str
    difficulty: str = config.DEFAULT_DIFFICULTY
    max_players: int = config.DEFAULT_MAX_PLAYERS
    player_name: str = config.DEFAULT_PLAYER_NAME
    is_public: bool = True
    locked: bool = False
    password: Optional[str] = None


@dataclass(frozen=True, slots=True)
class JoinServer:
    connection_id: str
    server_id: int
    password: Optional[str] = None
    player_name: str = config.DEFAULT_PLAYER_NAME


@dataclass(frozen=True, slots=True)
class LeaveLobby:
    connection_id: str


@dataclass(frozen=True, slots=True)
class StartGame:
    connection_id: str


@dataclass(frozen=True, slots=True)
class Relay:
    """Opaque gameplay payload forwarded to the sender's session."""

    connection_id: str
    event: str
    payload: Any = None
    exclude_sender: bool = True


@dataclass(frozen=True, slots=True)
class Disconnect:
    connection_id: str


Command = Union[HostServer, JoinServer, LeaveLobby, StartGame, Relay, Disconnect]

# Relayed events and whether the sender is left out of the recipients.
RELAY_EVENTS: Dict[str, bool] = {
    "gameState": True,
    "towerPlaced": True,
    "waveStart": False,
}

# Relays that carry no data; anything the client attached is discarded.
PAYLOADLESS_RELAYS = frozenset({"waveStart"})


def _text(data: Mapping[str, Any], key: str, default: str) -> str:
    value = data.get(key)
    if value is None or value == "":
        return default
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise CommandError(f"{key} must be a string")
    return str(value).strip() or default


def _flag(data: Mapping[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise CommandError(f"{key} must be a boolean")
    return value


def _integer(value: Any, key: str) -> int:
    # JSON numbers such as 4.0 count as integers; 4.5, "4" and true do not.
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise CommandError(f"{key} must be an integer")


def _password(data: Mapping[str, Any]) -> Optional[str]:
    value = data.get("password")
    if value is None:
        return None
    if not isinstance(value, str):
        raise CommandError("password must be a string")
    return value


def _require_mapping(data: Any) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise CommandError("payload must be an object")
    return data


def _host(connection_id: str, data: Any) -> HostServer:
    data = _require_mapping(data)
    name = _text(data, "name", "")
    if not name:
        raise CommandError("name is required")
    max_players = _integer(data.get("maxPlayers", config.DEFAULT_MAX_PLAYERS), "maxPlayers")
    if not 1 <= max_players <= config.MAX_PLAYERS_LIMIT:
        raise CommandError(f"maxPlayers must be between 1 and {config.MAX_PLAYERS_LIMIT}")
    locked = _flag(data, "locked", False)
    password = _password(data) if locked else None
    if locked and not password:
        raise CommandError("a locked server needs a password")
    return HostServer(
        connection_id=connection_id,
        name=name,
        difficulty=_text(data, "difficulty", config.DEFAULT_DIFFICULTY),
        max_players=max_players,
        player_name=_text(data, "playerName", config.DEFAULT_PLAYER_NAME),
        is_public=_flag(data, "isPublic", True),
        locked=locked,
        password=password,
    )


def _join(connection_id: str, data: Any) -> JoinServer:
    data = _require_mapping(data)
    if data.get("serverId") is None:
        raise CommandError("serverId is required")
    return JoinServer(
        connection_id=connection_id,
        server_id=_integer(data["serverId"], "serverId"),
        password=_password(data),
        player_name=_text(data, "playerName", config.DEFAULT_PLAYER_NAME),
    )


_PARSERS: Dict[str, Callable[[str, Any], Command]] = {
    "hostServer": _host,
    "joinServer": _join,
    "leaveLobby": lambda connection_id, _data: LeaveLobby(connection_id),
    "startGame": lambda connection_id, _data: StartGame(connection_id),
}


def parse_command(connection_id: str, event: Any, data: Any = None) -> Command:
    """Build the command for an inbound ``event`` carrying ``data``."""

    if not isinstance(event, str):
        raise CommandError("event name must be a string")
    if event in RELAY_EVENTS:
        payload = None if event in PAYLOADLESS_RELAYS else data
        return Relay(connection_id, event, payload, exclude_sender=RELAY_EVENTS[event])
    parser = _PARSERS.get(event)
    if parser is None:
        raise CommandError(f"Unknown event: {event!r}")
    return parser(connection_id, data)


__all__ = [
    "Command",
    "CommandError",
    "Disconnect",
    "HostServer",
    "JoinServer",
    "LeaveLobby",
    "RELAY_EVENTS",
    "Relay",
    "StartGame",
    "parse_command",
]
