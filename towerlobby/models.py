"""Data models for lobby sessions and their players.

Field names follow Python conventions; ``serialise`` produces the camelCase
shape the browser client consumes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class SessionStatus(str, Enum):
    """Lifecycle of a session. ``LOBBY`` is initial and ``CLOSED`` terminal."""

    LOBBY = "lobby"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


@dataclass(slots=True)
class Player:
    """A connection seated in a session."""

    connection_id: str
    name: str
    is_host: bool = False

    def serialise(self) -> Dict[str, object]:
        return {"id": self.connection_id, "name": self.name, "isHost": self.is_host}


@dataclass(slots=True)
class Session:
    """One joinable match and its membership.

    ``players`` keeps join order; the host is always the first entry.
    """

    id: int
    name: str
    difficulty: str
    max_players: int
    host_id: str
    players: List[Player] = field(default_factory=list)
    is_public: bool = True
    locked: bool = False
    password: Optional[str] = None
    status: SessionStatus = SessionStatus.LOBBY

    @property
    def started(self) -> bool:
        return self.status is not SessionStatus.LOBBY

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.max_players

    def has_player(self, connection_id: str) -> bool:
        return any(player.connection_id == connection_id for player in self.players)

    def remove_player(self, connection_id: str) -> Optional[Player]:
        """Drop a player and return it, or ``None`` if it was not seated."""

        for index, player in enumerate(self.players):
            if player.connection_id == connection_id:
                return self.players.pop(index)
        return None

    def check_password(self, supplied: Optional[str]) -> bool:
        if not self.locked:
            return True
        return supplied is not None and supplied == self.password

    def serialise(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "difficulty": self.difficulty,
            "maxPlayers": self.max_players,
            "hostId": self.host_id,
            "players": [player.serialise() for player in self.players],
            "isPublic": self.is_public,
            "locked": self.locked,
            "gameStarted": self.started,
        }
