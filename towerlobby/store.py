"""In-memory store of active lobby sessions."""
from __future__ import annotations

import time
from typing import Callable, Dict, List, Optional

from .commands import HostServer
from .models import Player, Session


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class SessionIdAllocator:
    """Hands out time derived session ids that never repeat in a process.

    Ids follow the wall clock in milliseconds but are forced to increase
    strictly, so two sessions created within the same millisecond, or after
    the clock steps backwards, still get distinct ids.
    """

    def __init__(self, clock: Callable[[], int] = _wall_clock_ms) -> None:
        self._clock = clock
        self._last = 0

    def next_id(self) -> int:
        self._last = max(self._clock(), self._last + 1)
        return self._last


class SessionStore:
    """Registry of every open session, in creation order.

    The store only holds state; admission rules are enforced by the
    lifecycle manager before it calls in here.
    """

    def __init__(self, allocator: Optional[SessionIdAllocator] = None) -> None:
        self._allocator = allocator or SessionIdAllocator()
        self._sessions: Dict[int, Session] = {}

    def create(self, request: HostServer) -> Session:
        """Open a new session with the requesting connection as its host."""

        host = Player(connection_id=request.connection_id, name=request.player_name, is_host=True)
        session = Session(
            id=self._allocator.next_id(),
            name=request.name,
            difficulty=request.difficulty,
            max_players=request.max_players,
            host_id=request.connection_id,
            players=[host],
            is_public=request.is_public,
            locked=request.locked,
            password=request.password if request.locked else None,
        )
        self._sessions[session.id] = session
        return session

    def find(self, session_id: Optional[int]) -> Optional[Session]:
        if session_id is None:
            return None
        return self._sessions.get(session_id)

    def remove(self, session_id: int) -> None:
        self._sessions.pop(session_id, None)

    def list_all(self) -> List[Session]:
        """All sessions, private ones included; callers filter if they need to."""

        return list(self._sessions.values())

    def snapshot(self) -> List[Dict[str, object]]:
        return [session.serialise() for session in self._sessions.values()]

    def __len__(self) -> int:
        return len(self._sessions)
