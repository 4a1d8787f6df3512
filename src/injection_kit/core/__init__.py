"""Core utilities for configuration, logging, type keys and locking."""

from .config import InjectorSettings, LoggingSettings, load_settings
from .errors import InjectionError, ParameterCastingError, UndefinedInjectionError
from .locking import ReadWriteLock
from .logging import configure_logging, disable_debug_logging, enable_debug_logging
from .type_keys import ANY, TypeKey, key_for, key_of_destination, key_of_value

__all__ = [
    "ANY",
    "InjectionError",
    "InjectorSettings",
    "LoggingSettings",
    "ParameterCastingError",
    "ReadWriteLock",
    "TypeKey",
    "UndefinedInjectionError",
    "configure_logging",
    "disable_debug_logging",
    "enable_debug_logging",
    "key_for",
    "key_of_destination",
    "key_of_value",
    "load_settings",
]
