"""Logging configuration and error reporting helpers."""

from __future__ import annotations

import logging

from ownergraph.errors import OwnergraphError

DEFAULT_LOGGER_NAME = "ownergraph"
DEFAULT_LOG_LEVEL = logging.WARNING
DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(
    level: int = DEFAULT_LOG_LEVEL,
    *,
    logger_name: str = DEFAULT_LOGGER_NAME,
    fmt: str = DEFAULT_LOG_FORMAT,
    force: bool = False,
) -> logging.Logger:
    logging.basicConfig(level=level, format=fmt, force=force)
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    return logger


def get_user_message(exc: BaseException) -> str:
    if isinstance(exc, OwnergraphError):
        return exc.user_message
    return f"Unexpected error: {exc}"


__all__ = [
    "DEFAULT_LOGGER_NAME",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_LOG_FORMAT",
    "configure_logging",
    "get_user_message",
]
