"""FastAPI application exposing the lobby over a websocket."""
from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import uuid
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .commands import CommandError, Disconnect, parse_command
from .lifecycle import LifecycleManager
from .registry import ConnectionRegistry
from .router import BroadcastRouter
from .store import SessionStore
from .transport import ConnectionHub

logger = logging.getLogger(__name__)


def create_app(settings: Optional[config.ServerSettings] = None) -> FastAPI:
    """Create the application with a fresh, empty lobby."""

    settings = settings or config.ServerSettings()
    app = FastAPI(title=f"{config.GAME_NAME} Lobby", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    hub = ConnectionHub()
    store = SessionStore()
    app.state.settings = settings
    app.state.hub = hub
    app.state.store = store
    app.state.manager = LifecycleManager(store, ConnectionRegistry(), BroadcastRouter(store, hub))
    app.state.lock = asyncio.Lock()

    app.add_api_route("/health", healthcheck, methods=["GET"])
    app.add_api_websocket_route("/ws", websocket_endpoint)
    return app


async def get_manager(websocket: WebSocket) -> LifecycleManager:
    return websocket.app.state.manager


async def healthcheck(request: Request) -> JSONResponse:
    """Readiness probe reporting open sessions and live connections."""

    state = request.app.state
    return JSONResponse({"status": "ok", "sessions": len(state.store), "connections": len(state.hub)})


async def websocket_endpoint(
    websocket: WebSocket, manager: LifecycleManager = Depends(get_manager)
) -> None:
    state = websocket.app.state
    hub: ConnectionHub = state.hub
    connection_id = uuid.uuid4().hex

    await websocket.accept()
    hub.connect(connection_id)
    writer = asyncio.create_task(hub.pump(connection_id, websocket))
    logger.info("Player connected: %s", connection_id)
    manager.router.server_list(connection_id)

    try:
        while True:
            received = await websocket.receive()
            if received["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(received.get("code", 1000))
            text = received.get("text")
            try:
                if text is None:
                    raise ValueError("binary frame")
                message = json.loads(text)
            except ValueError as exc:
                logger.warning("Malformed frame from %s: %s", connection_id, exc)
                hub.emit(connection_id, "error", "Malformed message")
                continue
            await _dispatch(state, manager, connection_id, message)
    except WebSocketDisconnect:
        pass
    finally:
        logger.info("Player disconnected: %s", connection_id)
        async with state.lock:
            manager.handle(Disconnect(connection_id))
        hub.disconnect(connection_id)
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer


async def _dispatch(state: Any, manager: LifecycleManager, connection_id: str, message: Any) -> None:
    try:
        if not isinstance(message, dict):
            raise CommandError("message must be an object")
        command = parse_command(connection_id, message.get("event"), message.get("data"))
    except CommandError as exc:
        logger.warning("Rejected frame from %s: %s", connection_id, exc)
        state.hub.emit(connection_id, "error", str(exc))
        return
    async with state.lock:
        manager.handle(command)


app = create_app(config.ServerSettings.from_env())


__all__ = ["app", "create_app"]
