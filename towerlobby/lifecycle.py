"""Session lifecycle: hosting, joining, leaving, starting and relaying.

The manager is the only writer of the session store and connection
registry. Every transition validates first and mutates afterwards, so a
rejected request leaves both untouched. Transitions never await; callers
that process events concurrently must still serialise calls to
``LifecycleManager.handle``.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Type

from . import config
from .commands import (
    Command,
    Disconnect,
    HostServer,
    JoinServer,
    LeaveLobby,
    Relay,
    StartGame,
)
from .models import Player, Session, SessionStatus
from .registry import ConnectionRegistry
from .router import BroadcastRouter
from .store import SessionStore

logger = logging.getLogger(__name__)


class LobbyError(RuntimeError):
    """Base class for rejected lobby requests.

    The message is shown to the requesting player as is.
    """

    message = "Request rejected"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)


class SessionNotFound(LobbyError):
    message = config.NOT_FOUND_MESSAGE


class SessionFull(LobbyError):
    message = config.FULL_MESSAGE


class BadPassword(LobbyError):
    message = config.BAD_PASSWORD_MESSAGE


class AlreadyStarted(LobbyError):
    message = config.ALREADY_STARTED_MESSAGE


class AlreadyInSession(LobbyError):
    message = config.ALREADY_IN_SESSION_MESSAGE


class LifecycleManager:
    """Applies lobby commands to the store and announces the results."""

    def __init__(
        self,
        store: SessionStore,
        registry: ConnectionRegistry,
        router: BroadcastRouter,
    ) -> None:
        self.store = store
        self.registry = registry
        self.router = router
        self._handlers: Dict[Type, Callable] = {
            HostServer: self.host,
            JoinServer: self.join,
            LeaveLobby: lambda command: self.leave(command.connection_id),
            StartGame: lambda command: self.start_game(command.connection_id),
            Relay: self.relay,
            Disconnect: lambda command: self.disconnect(command.connection_id),
        }

    def handle(self, command: Command) -> None:
        """Run one command to completion.

        Lobby errors are reported to the acting connection only and never
        propagate to the caller.
        """

        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unsupported command {command!r}")
        try:
            handler(command)
        except LobbyError as exc:
            logger.info("Rejected %s from %s: %s", type(command).__name__, command.connection_id, exc)
            self.router.to_connection(command.connection_id, "error", str(exc))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def host(self, command: HostServer) -> Session:
        if command.connection_id in self.registry:
            raise AlreadyInSession()
        session = self.store.create(command)
        self.registry.bind(command.connection_id, session.id)
        logger.info("Server hosted: %s (%s) by %s", session.name, session.id, command.connection_id)
        self.router.to_connection(command.connection_id, "joinedLobby", session.serialise())
        self.router.server_list()
        return session

    def join(self, command: JoinServer) -> Session:
        if command.connection_id in self.registry:
            raise AlreadyInSession()
        session = self.store.find(command.server_id)
        if session is None:
            raise SessionNotFound()
        if session.is_full:
            raise SessionFull()
        if not session.check_password(command.password):
            raise BadPassword()
        if session.started:
            raise AlreadyStarted()

        session.players.append(Player(connection_id=command.connection_id, name=command.player_name))
        self.registry.bind(command.connection_id, session.id)
        logger.info("%s joined server: %s (%s)", command.connection_id, session.name, session.id)
        self.router.to_connection(command.connection_id, "joinedLobby", session.serialise())
        self.router.to_session(session.id, "lobbyUpdate", session.serialise())
        self.router.server_list()
        return session

    def leave(self, connection_id: str, reason: str = config.HOST_LEFT_REASON) -> bool:
        """Take a connection out of its session.

        Returns ``True`` when state changed. A host leaving closes the whole
        session.
        """

        session_id = self.registry.session_of(connection_id)
        if session_id is None:
            return False
        session = self.store.find(session_id)
        if session is None:
            self.registry.unbind(connection_id)
            return False

        if session.host_id == connection_id:
            self._close(session, reason)
        else:
            session.remove_player(connection_id)
            logger.info("%s left server: %s (%s)", connection_id, session.name, session.id)
            self.router.to_session(session.id, "lobbyUpdate", session.serialise())
        self.registry.unbind(connection_id)
        self.router.server_list()
        return True

    def disconnect(self, connection_id: str) -> bool:
        changed = self.leave(connection_id, reason=config.HOST_DISCONNECTED_REASON)
        self.registry.unbind(connection_id)
        return changed

    def start_game(self, connection_id: str) -> bool:
        session = self.store.find(self.registry.session_of(connection_id))
        if session is None or session.host_id != connection_id:
            return False
        if session.status is not SessionStatus.LOBBY:
            return False

        session.status = SessionStatus.IN_PROGRESS
        logger.info("Game started in server: %s (%s)", session.name, session.id)
        self.router.to_session(
            session.id,
            "gameStarted",
            {
                "difficulty": session.difficulty,
                "players": [player.serialise() for player in session.players],
            },
        )
        self.router.server_list()
        return True

    def relay(self, command: Relay) -> int:
        """Forward an opaque gameplay event; returns the recipient count."""

        session_id = self.registry.session_of(command.connection_id)
        if session_id is None:
            return 0
        exclude = command.connection_id if command.exclude_sender else None
        delivered = self.router.to_session(session_id, command.event, command.payload, exclude=exclude)
        logger.debug("Relayed %s from %s to %d connection(s)", command.event, command.connection_id, delivered)
        return delivered

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _close(self, session: Session, reason: str) -> None:
        self.router.to_session(session.id, "serverClosed", reason)
        session.status = SessionStatus.CLOSED
        self.store.remove(session.id)
        for player in session.players:
            self.registry.unbind(player.connection_id)
        logger.info("Server closed: %s (%s): %s", session.name, session.id, reason)


__all__ = [
    "AlreadyInSession",
    "AlreadyStarted",
    "BadPassword",
    "LifecycleManager",
    "LobbyError",
    "SessionFull",
    "SessionNotFound",
]
