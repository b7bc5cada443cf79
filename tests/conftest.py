from __future__ import annotations

import itertools
from typing import Any, List, Optional, Set, Tuple

import pytest

from towerlobby.lifecycle import LifecycleManager
from towerlobby.registry import ConnectionRegistry
from towerlobby.router import BroadcastRouter
from towerlobby.store import SessionIdAllocator, SessionStore


class RecordingTransport:
    """Transport double that remembers every delivery per connection."""

    def __init__(self) -> None:
        self.connected: Set[str] = set()
        self.sent: List[Tuple[str, str, Any]] = []

    def connect(self, *connection_ids: str) -> None:
        self.connected.update(connection_ids)

    def emit(self, connection_id: str, event: str, payload: Any = None) -> None:
        self.sent.append((connection_id, event, payload))

    def emit_to_all(self, event: str, payload: Any = None) -> None:
        for connection_id in sorted(self.connected):
            self.sent.append((connection_id, event, payload))

    def events_for(self, connection_id: str, event: Optional[str] = None) -> List[Tuple[str, Any]]:
        return [
            (name, payload)
            for target, name, payload in self.sent
            if target == connection_id and (event is None or name == event)
        ]

    def recipients_of(self, event: str) -> List[str]:
        return [target for target, name, _ in self.sent if name == event]

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture()
def transport() -> RecordingTransport:
    transport = RecordingTransport()
    transport.connect("A", "B", "C", "D")
    return transport


@pytest.fixture()
def store() -> SessionStore:
    ticks = itertools.count(1_000)
    return SessionStore(SessionIdAllocator(clock=lambda: next(ticks)))


@pytest.fixture()
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture()
def router(store: SessionStore, transport: RecordingTransport) -> BroadcastRouter:
    return BroadcastRouter(store, transport)


@pytest.fixture()
def manager(store: SessionStore, registry: ConnectionRegistry, router: BroadcastRouter) -> LifecycleManager:
    return LifecycleManager(store, registry, router)
