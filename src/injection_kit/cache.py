"""In-memory store of instances produced by singleton rules."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .core.locking import ReadWriteLock
from .registry import fallback_keys
from .rules import InjectionRule, RuleKey

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Instance cached together with the rule that produced it."""

    rule: InjectionRule
    value: Any


class SingletonCache:
    """Cache keyed like the rule registry, with the same wildcard fallback.

    An entry only satisfies a lookup made on behalf of the rule that produced
    it, so a destination-specific singleton and a general singleton for the
    same capability never shadow each other, and a replaced rule never serves
    the previous rule's instance.
    """

    def __init__(self) -> None:
        """Initialise empty cache."""
        self._entries: dict[RuleKey, CacheEntry] = {}
        self._generation = 0
        self._lock = ReadWriteLock()

    @property
    def generation(self) -> int:
        """Counter bumped by every ``invalidate``."""
        with self._lock.read():
            return self._generation

    def get(self, key: RuleKey, rule: InjectionRule) -> CacheEntry | None:
        """Return the entry produced by ``rule`` closest to ``key``."""
        with self._lock.read():
            for candidate in fallback_keys(*key):
                entry = self._entries.get(candidate)
                if entry is not None and entry.rule is rule:
                    LOGGER.debug("Cache hit for %s at %s", rule, _format_key(candidate))
                    return entry
        LOGGER.debug("Cache miss for %s at %s", rule, _format_key(key))
        return None

    def set(
        self,
        key: RuleKey,
        rule: InjectionRule,
        value: Any,
        generation: int | None = None,
    ) -> bool:
        """Store the instance produced by ``rule`` at the exact ``key``.

        When ``generation`` is given and the cache was invalidated since it
        was read, the instance is dropped and ``False`` is returned.
        """
        with self._lock.write():
            if generation is not None and generation != self._generation:
                stored = False
            else:
                self._entries[key] = CacheEntry(rule, value)
                stored = True
        if stored:
            LOGGER.debug("Cache set for %s at %s", rule, _format_key(key))
        else:
            LOGGER.debug("Dropped instance of %s built before invalidation", rule)
        return stored

    def invalidate(self) -> int:
        """Drop every cached instance and return how many were dropped."""
        with self._lock.write():
            count = len(self._entries)
            self._entries = {}
            self._generation += 1
        LOGGER.debug("Invalidated all %d cached instances", count)
        return count

    def size(self) -> int:
        """Get current cache size."""
        with self._lock.read():
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()


def _format_key(key: RuleKey) -> str:
    return "(" + ", ".join(str(part) for part in key) + ")"


__all__ = ["CacheEntry", "SingletonCache"]
