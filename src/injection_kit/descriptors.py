"""Class attributes resolved through an injector on first access."""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    Generic,
    TypeVar,
    get_args,
    get_origin,
    get_type_hints,
)

if TYPE_CHECKING:
    from .injector import Injector

T = TypeVar("T")


class Injected(Generic[T]):
    """Resolve a capability for the owning object the first time it is read.

    The capability may be given explicitly or inferred from the attribute's
    annotation, either ``Injected[Capability]`` or plain ``Capability``::

        class ReportModule:
            logger: Injected[Logger] = Injected(injector)

    The owning instance is the destination of the injection, and the result
    is stored on the instance so later reads return the same object. The
    owner's instances therefore need a ``__dict__``; declaring ``Injected`` on
    a class whose ``__slots__`` leave it out raises ``TypeError``.
    """

    def __init__(
        self,
        injector: Injector,
        capability: type[T] | None = None,
        *,
        parameter: Any = None,
    ) -> None:
        self._injector = injector
        self._capability: Any = capability
        self._parameter = parameter
        self._owner: type | None = None
        self._name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        if not owner.__dictoffset__:
            msg = (
                f"{owner.__qualname__}.{name} cannot be Injected: "
                f"{owner.__qualname__} instances have no __dict__"
            )
            raise TypeError(msg)
        self._owner = owner
        self._name = name

    def _resolve_capability(self) -> Any:
        if self._capability is not None:
            return self._capability
        if self._owner is None:
            msg = "Injected must be declared as a class attribute"
            raise TypeError(msg)
        hint = get_type_hints(self._owner).get(self._name)
        if get_origin(hint) is Injected:
            hint = get_args(hint)[0]
        if hint is None:
            attribute = f"{self._owner.__qualname__}.{self._name}"
            msg = f"Cannot infer the capability of {attribute}"
            raise TypeError(msg)
        self._capability = hint
        return hint

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        value = self._injector.inject(
            self._resolve_capability(), self._parameter, instance
        )
        instance.__dict__[self._name] = value
        return value


__all__ = ["Injected"]
