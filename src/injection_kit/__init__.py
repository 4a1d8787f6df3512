"""Rule-based dependency injection with singleton caching."""

from .cache import SingletonCache
from .core import (
    ANY,
    InjectionError,
    InjectorSettings,
    LoggingSettings,
    ParameterCastingError,
    TypeKey,
    UndefinedInjectionError,
    configure_logging,
    load_settings,
)
from .descriptors import Injected
from .injector import Injector
from .registry import RuleRegistry
from .rules import InjectionPreset, InjectionRule

__all__ = [
    "ANY",
    "InjectionError",
    "InjectionPreset",
    "InjectionRule",
    "Injected",
    "Injector",
    "InjectorSettings",
    "LoggingSettings",
    "ParameterCastingError",
    "RuleRegistry",
    "SingletonCache",
    "TypeKey",
    "UndefinedInjectionError",
    "configure_logging",
    "load_settings",
]
