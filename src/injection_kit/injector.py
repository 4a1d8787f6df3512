"""Resolution of capabilities into instances."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any, TypeVar, cast, overload

from .cache import SingletonCache
from .core.config import InjectorSettings
from .core.errors import InjectionError, ParameterCastingError, UndefinedInjectionError
from .core.logging import (
    disable_debug_logging,
    enable_debug_logging,
    is_debug_logging_enabled,
)
from .core.type_keys import (
    TypeKey,
    key_for,
    key_of_destination,
    key_of_value,
    type_name,
)
from .registry import RuleRegistry
from .rules import InjectionRule, RuleSource

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def _conforms(instance: Any, capability: TypeKey) -> bool:
    """Return whether ``instance`` can be used as ``capability``."""
    try:
        return isinstance(instance, capability.token)  # type: ignore[arg-type]
    except TypeError:
        # Protocols without @runtime_checkable cannot be verified.
        return True


class Injector:
    """Registry of injection rules plus the singleton cache they feed.

    Create one per application (or per test) and share it with everything
    that configures rules or resolves capabilities. All methods are safe to
    call from several threads.
    """

    def __init__(self, rules: RuleSource = ()) -> None:
        """Initialise the injector, optionally with a starting set of rules."""
        self._registry = RuleRegistry(rules)
        self._cache = SingletonCache()

    @classmethod
    def from_settings(
        cls, settings: InjectorSettings, rules: RuleSource = ()
    ) -> Injector:
        """Build an injector honouring the loaded settings."""
        injector = cls(rules)
        injector.debug_logging = settings.debug_logging
        return injector

    # Configuration -----------------------------------------------------------
    def configure(self, rules: RuleSource) -> None:
        """Replace all rules and drop every cached singleton.

        Instances still being built by concurrent calls are not cached.
        """
        self._registry.configure(rules)
        self._cache.invalidate()

    def extend(self, rules: RuleSource) -> None:
        """Add rules on top of the existing configuration."""
        self._registry.extend(rules)

    def add(self, rule: InjectionRule) -> None:
        """Add a single rule, replacing any rule with the same key."""
        self._registry.add(rule)

    def reset(self) -> None:
        """Remove all rules and drop every cached singleton.

        Instances still being built by concurrent calls are not cached, so
        re-adding the same rule objects later never serves them.
        """
        self._registry.reset()
        self._cache.invalidate()

    @property
    def registry(self) -> RuleRegistry:
        return self._registry

    @property
    def cache(self) -> SingletonCache:
        return self._cache

    # Resolution --------------------------------------------------------------
    @overload
    def inject(
        self, capability: type[T], parameter: Any = None, destination: Any = None
    ) -> T: ...

    @overload
    def inject(
        self, capability: Any, parameter: Any = None, destination: Any = None
    ) -> Any: ...

    def inject(
        self, capability: Any, parameter: Any = None, destination: Any = None
    ) -> Any:
        """Resolve an instance of ``capability``.

        Args:
            capability: Class or protocol to resolve. ``Optional[X]`` resolves
                ``X``.
            parameter: Value handed to rules registered with a parameter type.
                Its runtime type selects among such rules.
            destination: Type, or instance of the type, requesting the
                injection. Selects rules registered for that destination.

        Returns:
            The produced instance, or the cached one for singleton rules.

        Raises:
            UndefinedInjectionError: If no rule matches or the factory result
                is not an instance of ``capability``.
            ParameterCastingError: If matching rules require a parameter of
                another type, or the factory rejected the parameter.
        """
        capability_key = key_for(capability)
        parameter_key = key_of_value(parameter)
        destination_key = key_of_destination(destination)
        key = (capability_key, parameter_key, destination_key)
        generation = self._cache.generation

        rule = self._registry.lookup(*key)
        if rule is None:
            raise self._no_rule_error(*key)

        if rule.once:
            entry = self._cache.get(key, rule)
            if entry is not None:
                LOGGER.debug(
                    "Restored cached %s with %s",
                    capability_key,
                    type_name(type(entry.value)),
                )
                return entry.value

        try:
            instance = rule.produce(parameter)
        except InjectionError:
            raise
        except Exception:
            LOGGER.error(
                "%s injection failed: factory of %s raised", capability_key, rule
            )
            raise

        if not _conforms(instance, capability_key):
            LOGGER.error(
                "%s injection failed: %s produced %s",
                capability_key,
                rule,
                type_name(type(instance)),
            )
            msg = (
                f"Rule {rule} produced {type_name(type(instance))}, "
                f"which is not a {capability_key}"
            )
            raise UndefinedInjectionError(msg)

        LOGGER.debug(
            "Successfully injected %s with %s",
            capability_key,
            type_name(type(instance)),
        )
        if rule.once:
            self._cache.set(key, rule, instance, generation)
        return instance

    def try_inject(
        self, capability: type[T], parameter: Any = None, destination: Any = None
    ) -> T | None:
        """Resolve an instance if possible; return ``None`` otherwise."""
        try:
            return cast(T, self.inject(capability, parameter, destination))
        except InjectionError:
            return None

    def _no_rule_error(
        self, capability_key: TypeKey, parameter_key: TypeKey, destination_key: TypeKey
    ) -> InjectionError:
        expected = sorted(
            str(key)
            for key in self._registry.parameter_keys(capability_key)
            if not key.is_any
            and key != parameter_key
            and self._registry.lookup(capability_key, key, destination_key)
            is not None
        )
        if expected:
            LOGGER.error(
                "Parameter of type %s does not match any rule for %s "
                "(expected one of %s) for %s",
                parameter_key,
                capability_key,
                ", ".join(expected),
                destination_key,
            )
            msg = (
                f"Injecting {capability_key} requires a parameter of type "
                f"{' or '.join(expected)}, got {parameter_key}"
            )
            return ParameterCastingError(msg)

        LOGGER.error(
            "Didn't find any rule suitable for injection of %s "
            "with parameter %s for %s",
            capability_key,
            parameter_key,
            destination_key,
        )
        msg = (
            f"No injection rule for {capability_key} "
            f"with parameter {parameter_key} for {destination_key}"
        )
        return UndefinedInjectionError(msg)

    # Diagnostics -------------------------------------------------------------
    @property
    def debug_logging(self) -> bool:
        """Whether the verbose handler is attached to the package logger."""
        return is_debug_logging_enabled()

    @debug_logging.setter
    def debug_logging(self, enabled: bool) -> None:
        if enabled:
            enable_debug_logging()
        else:
            disable_debug_logging()

    def rules(self) -> Iterator[InjectionRule]:
        """Yield the configured rules ordered by capability name."""
        return self._registry.enumerate()

    def describe_configuration(self) -> str:
        """Render the configured rules, one per line."""
        lines = ["Configured injection rules:", ""]
        lines.extend(str(rule) for rule in self.rules())
        return "\n".join(lines)

    def print_configuration(self) -> None:
        """Print all configured injection rules."""
        print(self.describe_configuration())


__all__ = ["Injector"]
