"""Logging setup for the helpdesk API."""

from __future__ import annotations

import logging
from logging.config import dictConfig

from helpdesk.core.config import Settings

# Third party loggers that flood INFO with per-statement or per-request noise.
_QUIET_LOGGERS = ("sqlalchemy.engine", "asyncpg", "passlib", "aiosqlite")


def configure_logging(settings: Settings) -> logging.Logger:
    """Route all records through one stream handler and return the ``helpdesk`` logger."""

    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    loggers: dict[str, dict[str, object]] = {"helpdesk": {"level": level}}
    loggers.update({name: {"level": max(level, logging.WARNING)} for name in _QUIET_LOGGERS})

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"plain": {"format": settings.log_format}},
            "handlers": {"stream": {"class": "logging.StreamHandler", "formatter": "plain"}},
            "loggers": loggers,
            "root": {"handlers": ["stream"], "level": level},
        }
    )
    return logging.getLogger("helpdesk")
