"""Structured logging for the service.

``configure_logging`` is called once when the application is built. It
replaces loguru's sinks with a single one chosen from settings: colourised
text for development or one JSON object per line (``serialize=True``) for
production. Records from standard library loggers (uvicorn, SQLAlchemy) are
forwarded into the same sink. Request handlers receive a logger bound to the
request's method, path and id.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, TYPE_CHECKING

from loguru import logger

from library_api.core.config import SERVICE_NAME, Settings

if TYPE_CHECKING:
    from loguru import Logger

_LEVELS = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "warning": "WARNING",
    "error": "ERROR",
    "fatal": "CRITICAL",
    "critical": "CRITICAL",
}

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level> | {extra}"
)


def parse_level(name: str) -> str:
    """Map a level name to a loguru level; unknown names fall back to INFO."""
    return _LEVELS.get(name.strip().lower(), "INFO")


class InterceptHandler(logging.Handler):
    """Redirect standard ``logging`` records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.opt(depth=2, exception=record.exc_info).bind(
            logger_name=record.name
        ).log(level, record.getMessage())


def configure_logging(app_settings: Settings, sink: IO[str] | None = None) -> "Logger":
    """Configure loguru from settings and return the service logger.

    Safe to call more than once: previously installed sinks are removed.
    """
    level = parse_level(app_settings.log_level)
    is_json = app_settings.effective_log_format == "json"

    logger.remove()
    logger.configure(extra={"service": SERVICE_NAME, "version": app_settings.app_version})
    logger.add(
        sink or sys.stdout,
        level=level,
        format="{message}" if is_json else TEXT_FORMAT,
        serialize=is_json,
        backtrace=not app_settings.is_production,
        diagnose=False,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    # Requests are logged by RequestIdMiddleware.
    logging.getLogger("uvicorn.access").setLevel(logging.CRITICAL)

    logger.bind(
        log_level=level.lower(),
        log_format=app_settings.effective_log_format,
        app_env=app_settings.app_env,
    ).info("Logger initialized")
    return logger
