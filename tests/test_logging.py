"""Tests for logging utilities."""

from __future__ import annotations

import logging

from injection_kit import Injector
from injection_kit.core.config import LoggingSettings
from injection_kit.core.logging import PACKAGE_LOGGER, configure_logging


def test_configure_logging_sets_root_level() -> None:
    """configure_logging should set the root logger level according to settings."""

    settings = LoggingSettings(level="DEBUG", structured=False)
    configure_logging(settings)
    assert logging.getLogger().level == logging.DEBUG


def test_debug_logging_toggle_attaches_single_handler() -> None:
    """Toggling debug logging should attach and detach one handler."""

    injector = Injector()
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    before = len(package_logger.handlers)

    injector.debug_logging = True
    injector.debug_logging = True
    assert injector.debug_logging
    assert len(package_logger.handlers) == before + 1
    assert package_logger.level == logging.DEBUG

    injector.debug_logging = False
    assert not injector.debug_logging
    assert len(package_logger.handlers) == before
    assert package_logger.level == logging.NOTSET
