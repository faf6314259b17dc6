"""Command-line entrypoint for running the FastAPI application."""

from __future__ import annotations

import logging

import uvicorn

from git_ssh_manager.log_utils import init_logging
from git_ssh_manager.config import settings

logger = logging.getLogger(__name__)


def main() -> None:
    """Run uvicorn with the application factory configured."""
    init_logging(settings.log_level.upper())
    logger.info("Starting git-ssh-manager on %s:%s", settings.host, settings.port)
    logger.info("Live-update WebSocket served at ws://%s:%s/", settings.host, settings.port)
    uvicorn.run(
        "git_ssh_manager.app:get_app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        factory=True,
    )


if __name__ == "__main__":
    main()
