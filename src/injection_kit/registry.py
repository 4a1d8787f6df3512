"""Thread-safe storage of injection rules."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from .core.locking import ReadWriteLock
from .core.type_keys import ANY, TypeKey, key_for
from .rules import InjectionRule, RuleKey, RuleSource, iter_rules

LOGGER = logging.getLogger(__name__)


def fallback_keys(
    capability_key: TypeKey, parameter_key: TypeKey, destination_key: TypeKey
) -> list[RuleKey]:
    """Return the keys to probe, most specific first.

    Parameter specificity outranks destination specificity: ``(p, d)``,
    ``(p, ANY)``, ``(ANY, d)``, ``(ANY, ANY)``. Duplicates produced by
    wildcard inputs are dropped.
    """
    candidates = [
        (capability_key, parameter_key, destination_key),
        (capability_key, parameter_key, ANY),
        (capability_key, ANY, destination_key),
        (capability_key, ANY, ANY),
    ]
    return list(dict.fromkeys(candidates))


def _sort_key(rule: InjectionRule) -> tuple[str, str, str]:
    capability_key, parameter_key, destination_key = rule.key
    return (capability_key.name, parameter_key.name, destination_key.name)


class RuleRegistry:
    """Rules keyed by ``(capability, parameter, destination)``.

    Inserting at an existing key replaces the previous rule. Lookups share a
    read lock; mutations take the write lock.
    """

    def __init__(self, rules: RuleSource = ()) -> None:
        """Initialise the registry, optionally with a starting set of rules."""
        self._rules: dict[RuleKey, InjectionRule] = {}
        self._lock = ReadWriteLock()
        for rule in iter_rules(rules):
            self._rules[rule.key] = rule

    def add(self, rule: InjectionRule) -> None:
        """Register a rule, replacing any rule stored at the same key."""
        with self._lock.write():
            replaced = self._rules.get(rule.key)
            self._rules[rule.key] = rule
        if replaced is not None:
            LOGGER.debug("Replaced injection rule %s with %s", replaced, rule)
        else:
            LOGGER.debug("Added injection rule %s", rule)

    def extend(self, rules: RuleSource) -> None:
        """Add every rule, keeping rules stored at other keys."""
        materialised = iter_rules(rules)
        with self._lock.write():
            for rule in materialised:
                self._rules[rule.key] = rule
        LOGGER.debug("Added %d injection rules", len(materialised))

    def configure(self, rules: RuleSource) -> None:
        """Replace all registered rules with the given ones."""
        materialised = iter_rules(rules)
        with self._lock.write():
            self._rules = {rule.key: rule for rule in materialised}
        LOGGER.debug("Configured %d injection rules", len(materialised))

    def reset(self) -> None:
        """Remove every registered rule."""
        with self._lock.write():
            count = len(self._rules)
            self._rules = {}
        LOGGER.debug("Removed %d injection rules", count)

    def lookup(
        self,
        capability_key: TypeKey,
        parameter_key: TypeKey = ANY,
        destination_key: TypeKey = ANY,
    ) -> InjectionRule | None:
        """Return the most specific rule matching the keys, if any."""
        with self._lock.read():
            for key in fallback_keys(capability_key, parameter_key, destination_key):
                rule = self._rules.get(key)
                if rule is not None:
                    return rule
        return None

    def parameter_keys(self, capability_key: TypeKey) -> set[TypeKey]:
        """Return the parameter keys registered for a capability."""
        with self._lock.read():
            return {
                parameter_key
                for capability, parameter_key, _ in self._rules
                if capability == capability_key
            }

    def enumerate(self) -> Iterator[InjectionRule]:
        """Yield a snapshot of the rules ordered by capability name."""
        with self._lock.read():
            snapshot = list(self._rules.values())
        yield from sorted(snapshot, key=_sort_key)

    def __iter__(self) -> Iterator[InjectionRule]:
        return self.enumerate()

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._rules)

    def __contains__(self, capability: object) -> bool:
        capability_key = key_for(capability)
        with self._lock.read():
            return any(key[0] == capability_key for key in self._rules)


__all__ = ["RuleRegistry", "fallback_keys"]
