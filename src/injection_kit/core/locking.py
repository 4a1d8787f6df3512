"""Reader/writer lock guarding the registry and the singleton cache."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from threading import Condition, Lock


class ReadWriteLock:
    """Read-preferring lock: readers share access, writers are exclusive.

    The lock is not reentrant. Callers must not acquire the write side while
    holding the read side on the same thread.
    """

    def __init__(self) -> None:
        """Initialise an unlocked lock."""
        self._condition = Condition(Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        """Hold shared access for the duration of the block."""
        with self._condition:
            while self._writing:
                self._condition.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._condition:
                self._readers -= 1
                if self._readers == 0:
                    self._condition.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        """Hold exclusive access for the duration of the block."""
        with self._condition:
            while self._writing or self._readers > 0:
                self._condition.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._condition:
                self._writing = False
                self._condition.notify_all()


__all__ = ["ReadWriteLock"]
