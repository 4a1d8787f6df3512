"""Injection rules describing how to construct a capability."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from .core.errors import ParameterCastingError
from .core.type_keys import TypeKey, key_for, type_name

LOGGER = logging.getLogger(__name__)

RuleKey = tuple[TypeKey, TypeKey, TypeKey]


@dataclass(frozen=True, slots=True, eq=False)
class InjectionRule:
    """Binding from a capability to the factory constructing it.

    A rule may be narrowed to calls supplying a parameter of
    ``parameter_type`` and to calls made for ``destination_type``; leaving
    either as ``None`` matches any call. When ``parameter_type`` is set the
    factory receives the parameter, otherwise it is called without
    arguments. ``once`` marks a singleton: the produced instance is cached
    per resolution scope. ``meta`` is a display-only hint naming the concrete
    type the factory builds.

    Rules compare by identity; the singleton cache relies on it.
    """

    capability: Any
    factory: Callable[..., Any]
    parameter_type: Any = None
    destination_type: Any = None
    once: bool = False
    meta: type | None = None
    key: RuleKey = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.capability is None:
            msg = "An injection rule requires a capability"
            raise TypeError(msg)
        capability_key = key_for(self.capability)
        if capability_key.is_any:
            msg = "The wildcard key cannot be used as a capability"
            raise TypeError(msg)
        key = (
            capability_key,
            key_for(self.parameter_type),
            key_for(self.destination_type),
        )
        object.__setattr__(self, "key", key)

    @classmethod
    def shared(
        cls,
        capability: Any,
        factory: Callable[..., Any],
        *,
        parameter_type: Any = None,
        destination_type: Any = None,
        meta: type | None = None,
    ) -> InjectionRule:
        """Build a singleton rule: the factory runs once per resolution scope."""
        return cls(
            capability,
            factory,
            parameter_type=parameter_type,
            destination_type=destination_type,
            once=True,
            meta=meta,
        )

    @property
    def capability_key(self) -> TypeKey:
        return self.key[0]

    @property
    def parameter_key(self) -> TypeKey:
        return self.key[1]

    @property
    def destination_key(self) -> TypeKey:
        return self.key[2]

    def produce(self, parameter: Any = None) -> Any:
        """Invoke the factory, checking the parameter when one is required.

        Raises:
            ParameterCastingError: If the rule requires a parameter and it is
                missing or not an instance of ``parameter_type``.
        """
        if self.parameter_key.is_any:
            return self.factory()

        expected = self.parameter_key.token
        if parameter is None:
            LOGGER.error(
                "Unexpected missing parameter while injecting '%s'. Expected '%s'.",
                self.capability_key,
                self.parameter_key,
            )
            msg = (
                f"Injecting {self.capability_key} requires a "
                f"{self.parameter_key} parameter"
            )
            raise ParameterCastingError(msg)
        if not isinstance(parameter, expected):  # type: ignore[arg-type]
            actual = type_name(type(parameter))
            LOGGER.error(
                "Failed to cast parameter for injection of '%s'. "
                "Expected '%s', but actual parameter is of type '%s'.",
                self.capability_key,
                self.parameter_key,
                actual,
            )
            msg = (
                f"Injecting {self.capability_key} requires a {self.parameter_key} "
                f"parameter, got {actual}"
            )
            raise ParameterCastingError(msg)
        return self.factory(parameter)

    def __str__(self) -> str:
        description = str(self.capability_key)
        if not self.parameter_key.is_any:
            description += f" [{self.parameter_key}]"
        if not self.destination_key.is_any:
            description += f" -> {self.destination_key}"
        if self.meta is not None:
            description += f" : {type_name(self.meta)}"
        return description


@runtime_checkable
class InjectionPreset(Protocol):
    """Bundle of rules handed to the injector in one call."""

    @property
    def rules(self) -> Sequence[InjectionRule]:
        """Rules to be registered."""
        raise NotImplementedError


RuleSource = InjectionPreset | Iterable[InjectionRule]


def iter_rules(source: RuleSource) -> list[InjectionRule]:
    """Materialise the rules held by a preset or an iterable of rules."""
    if isinstance(source, InjectionPreset):
        return list(source.rules)
    return list(source)


__all__ = ["InjectionPreset", "InjectionRule", "RuleKey", "RuleSource", "iter_rules"]
