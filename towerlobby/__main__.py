"""Run the lobby server: ``python -m towerlobby``."""

from __future__ import annotations

import logging

import uvicorn

from .config import GAME_NAME, ServerSettings
from .server import create_app


def main() -> None:
    settings = ServerSettings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info(
        "%s lobby listening on http://%s:%d", GAME_NAME, settings.host, settings.port
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
