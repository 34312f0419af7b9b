from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Logging setup for the service.

    Notes:
    - stdlib logging; uvicorn already installs handlers, so we only set levels.
    - `APP_LOG_LEVEL=DEBUG` (or INFO/WARNING/ERROR) controls verbosity.
    - Loggers never receive bearer tokens, only ids.
    """

    normalized = level.upper()
    logging.getLogger("obstacle_registry").setLevel(normalized)
    # Child loggers under obstacle_registry.* inherit this level.
    logging.getLogger("obstacle_registry").propagate = True
