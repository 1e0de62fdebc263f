"""
Process entry point.

Usage:
    python -m tasks_api

Loads settings from the environment, configures logging and serves the API
with uvicorn. Missing configuration exits with status 1; schema bootstrap
and port binding failures stop uvicorn during startup.
"""
from __future__ import annotations

import logging
import sys

import uvicorn

from .logging_setup import setup_logging
from .main import create_app
from .settings import ConfigurationError, get_settings

logger = logging.getLogger("tasks_api")


def main() -> None:
    setup_logging()
    try:
        settings = get_settings()
    except ConfigurationError as e:
        logger.critical("Failed to load configuration: %s", e)
        sys.exit(1)

    setup_logging(settings.log_level)
    logger.info("Server listening on %s:%d", settings.host, settings.port)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
