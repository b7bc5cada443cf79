"""Recipient resolution and dispatch of outbound events."""
from __future__ import annotations

import logging
from typing import Any, List, Optional, Protocol

from .store import SessionStore

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Delivery capability the router hands resolved messages to.

    Implementations must not block: delivery is fire-and-forget and at most
    once.
    """

    def emit(self, connection_id: str, event: str, payload: Any = None) -> None:
        ...

    def emit_to_all(self, event: str, payload: Any = None) -> None:
        ...


class BroadcastRouter:
    """Decides who receives an event and passes it to the transport."""

    def __init__(self, store: SessionStore, transport: Transport) -> None:
        self._store = store
        self._transport = transport

    def recipients(self, session_id: int, exclude: Optional[str] = None) -> List[str]:
        """Current members of a session, read from the store at call time."""

        session = self._store.find(session_id)
        if session is None:
            return []
        return [
            player.connection_id
            for player in session.players
            if player.connection_id != exclude
        ]

    def to_session(
        self,
        session_id: int,
        event: str,
        payload: Any = None,
        exclude: Optional[str] = None,
    ) -> int:
        """Send to every member, optionally leaving one connection out.

        Returns the number of connections the event was handed to.
        """

        targets = self.recipients(session_id, exclude)
        for connection_id in targets:
            self._transport.emit(connection_id, event, payload)
        if not targets:
            logger.debug("No recipients for %s in session %s", event, session_id)
        return len(targets)

    def to_connection(self, connection_id: str, event: str, payload: Any = None) -> None:
        self._transport.emit(connection_id, event, payload)

    def to_all(self, event: str, payload: Any = None) -> None:
        self._transport.emit_to_all(event, payload)

    def server_list(self, connection_id: Optional[str] = None) -> None:
        """Publish the session snapshot to one connection, or to everyone."""

        snapshot = self._store.snapshot()
        if connection_id is None:
            self.to_all("serverList", snapshot)
        else:
            self.to_connection(connection_id, "serverList", snapshot)
