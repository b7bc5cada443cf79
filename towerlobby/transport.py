"""Websocket delivery for outbound lobby events."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from fastapi import WebSocket
from fastapi.websockets import WebSocketDisconnect

from . import config

logger = logging.getLogger(__name__)


def frame(event: str, payload: Any = None) -> Dict[str, Any]:
    """Wire shape shared by inbound and outbound messages."""

    return {"event": event, "data": payload}


class ConnectionHub:
    """Tracks live websockets and queues outbound frames for each of them.

    ``emit`` only enqueues, so lifecycle transitions never wait on the
    network. One writer task per connection drains its queue in order.
    Each queue holds at most ``max_queued`` frames; frames for a client
    that has fallen that far behind are dropped.
    """

    def __init__(self, max_queued: int = config.OUTBOX_LIMIT) -> None:
        self._max_queued = max_queued
        self._outboxes: Dict[str, asyncio.Queue[Dict[str, Any]]] = {}

    def connect(self, connection_id: str) -> asyncio.Queue[Dict[str, Any]]:
        outbox: asyncio.Queue[Dict[str, Any]] = asyncio.Queue(maxsize=self._max_queued)
        self._outboxes[connection_id] = outbox
        return outbox

    def disconnect(self, connection_id: str) -> None:
        self._outboxes.pop(connection_id, None)

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._outboxes

    def emit(self, connection_id: str, event: str, payload: Any = None) -> None:
        outbox = self._outboxes.get(connection_id)
        if outbox is None:
            logger.debug("Dropping %s for unknown connection %s", event, connection_id)
            return
        self._enqueue(connection_id, outbox, frame(event, payload))

    def emit_to_all(self, event: str, payload: Any = None) -> None:
        message = frame(event, payload)
        for connection_id, outbox in list(self._outboxes.items()):
            self._enqueue(connection_id, outbox, message)

    def _enqueue(self, connection_id: str, outbox: asyncio.Queue, message: Dict[str, Any]) -> None:
        try:
            outbox.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("Outbox full for %s, dropping %s", connection_id, message["event"])

    async def pump(self, connection_id: str, websocket: WebSocket) -> None:
        """Write queued frames to ``websocket`` until cancelled or closed."""

        outbox = self._outboxes.get(connection_id)
        if outbox is None:
            return
        try:
            while True:
                message = await outbox.get()
                await websocket.send_json(message)
        except asyncio.CancelledError:
            raise
        except (RuntimeError, WebSocketDisconnect) as exc:
            logger.debug("Writer for %s stopped: %s", connection_id, exc)
            if self._outboxes.get(connection_id) is outbox:
                del self._outboxes[connection_id]

    def __len__(self) -> int:
        return len(self._outboxes)


__all__ = ["ConnectionHub", "frame"]
