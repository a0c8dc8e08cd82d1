"""Shared logging utilities for consistent observability.

Every logger lives under the ``buyer_radar`` namespace so that the operator
CLI can raise or lower verbosity for the whole package in one call.

Usage example:
    from buyer_radar.observability.logging import get_logger

    logger = get_logger("buyer_radar.catalog")
    logger.info("Loaded %s listings", listing_count)
"""

from __future__ import annotations

import logging
import time

ROOT_LOGGER_NAME = "buyer_radar"

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class UnknownLogLevelError(ValueError):
    """Raised when a log level name is not supported."""

    def __init__(self, level: str) -> None:
        super().__init__(f"Unknown log level '{level}'. Use one of: {', '.join(_LEVELS)}.")


def get_logger(name: str) -> logging.Logger:
    """Return a standard logger configured for UTC timestamps.

    Args:
        name: Logger name (use a stable module-qualified name).

    Returns:
        A logger with a single stream handler and a consistent UTC format.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger


def set_package_log_level(level: str) -> int:
    """Apply a log level to every logger already created under ``buyer_radar``.

    Returns:
        The numeric level that was applied.
    """
    numeric = _LEVELS.get(level.strip().lower())
    if numeric is None:
        raise UnknownLogLevelError(level)
    manager = logging.Logger.manager
    for name in list(manager.loggerDict):
        if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
            logging.getLogger(name).setLevel(numeric)
    return numeric
