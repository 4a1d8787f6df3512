"""Logging configuration helpers."""

from __future__ import annotations

import logging
import logging.config
from typing import Any

from .config import LoggingSettings

PACKAGE_LOGGER = "injection_kit"

_DEBUG_HANDLER_NAME = "injection_kit.debug"


def _structured_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for structured logs."""
    return {
        "format": "{asctime} {levelname} {name} {message}",
        "style": "{",
    }


def _plain_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for human readable logs."""
    return {
        "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
    }


def configure_logging(settings: LoggingSettings) -> None:
    """Configure application logging according to provided settings."""
    formatter = _structured_formatter() if settings.structured else _plain_formatter()

    dict_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": formatter,
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": settings.level,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": settings.level,
        },
    }

    logging.config.dictConfig(dict_config)


def _debug_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [
        handler for handler in logger.handlers if handler.name == _DEBUG_HANDLER_NAME
    ]


def is_debug_logging_enabled() -> bool:
    """Return whether the verbose injector handler is attached."""
    return bool(_debug_handlers(logging.getLogger(PACKAGE_LOGGER)))


def enable_debug_logging() -> None:
    """Attach a verbose console handler to the package logger.

    Calling it again while the handler is attached has no effect.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    if _debug_handlers(logger):
        return
    handler = logging.StreamHandler()
    handler.set_name(_DEBUG_HANDLER_NAME)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


def disable_debug_logging() -> None:
    """Detach the verbose handler and restore the inherited level."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in _debug_handlers(logger):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


__all__ = [
    "PACKAGE_LOGGER",
    "configure_logging",
    "disable_debug_logging",
    "enable_debug_logging",
    "is_debug_logging_enabled",
]
