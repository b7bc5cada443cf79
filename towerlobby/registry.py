"""Connection to session back-references."""
from __future__ import annotations

from typing import Dict, ItemsView, Optional


class ConnectionRegistry:
    """Maps an active connection id to the session it currently sits in.

    The registry does no validation of its own; the lifecycle manager keeps
    it in step with the session store.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, int] = {}

    def bind(self, connection_id: str, session_id: int) -> None:
        self._sessions[connection_id] = session_id

    def unbind(self, connection_id: str) -> None:
        self._sessions.pop(connection_id, None)

    def session_of(self, connection_id: str) -> Optional[int]:
        return self._sessions.get(connection_id)

    def items(self) -> ItemsView[str, int]:
        return self._sessions.items()

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._sessions

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._sessions)
