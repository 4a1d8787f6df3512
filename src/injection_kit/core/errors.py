"""Exceptions raised while resolving injections."""

from __future__ import annotations


class InjectionError(LookupError):
    """Base class for failures raised by the injector."""


class UndefinedInjectionError(InjectionError):
    """Raised when no rule can produce an instance of the requested capability.

    Also raised when a matched factory returns something that is not an
    instance of the capability.
    """


class ParameterCastingError(InjectionError, TypeError):
    """Raised when a rule's parameter is missing or of the wrong type."""


__all__ = ["InjectionError", "ParameterCastingError", "UndefinedInjectionError"]
