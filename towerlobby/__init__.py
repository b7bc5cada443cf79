"""Session registry and relay server for the tower defence lobby.

Clients host joinable sessions, discover and join them over a websocket,
and once the host starts the game the server relays gameplay events
between session members. The core state machine in ``lifecycle`` can be
driven without any network dependencies.
"""

from .config import ServerSettings
from .lifecycle import LifecycleManager, LobbyError
from .registry import ConnectionRegistry
from .router import BroadcastRouter
from .store import SessionStore

__all__ = [
    "BroadcastRouter",
    "ConnectionRegistry",
    "LifecycleManager",
    "LobbyError",
    "ServerSettings",
    "SessionStore",
]
