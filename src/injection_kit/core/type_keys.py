"""Stable keys identifying types in the rule registry."""

from __future__ import annotations

import types
from dataclasses import dataclass, field
from typing import Any, Union, get_args, get_origin


class _Wildcard:
    """Token backing the ``ANY`` key; never a type, so never collides."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "ANY"


@dataclass(frozen=True, slots=True)
class TypeKey:
    """Opaque identifier of a type.

    Equality and hashing follow the identity of the underlying type, so two
    classes sharing a qualified name still produce distinct keys. ``name`` is
    only used for display and ordering.
    """

    token: object
    name: str = field(compare=False)

    @property
    def is_any(self) -> bool:
        """Return ``True`` for the wildcard key."""
        return isinstance(self.token, _Wildcard)

    def __str__(self) -> str:
        return self.name


ANY = TypeKey(_Wildcard(), "Any")


def _unwrap_optional(annotation: Any) -> Any:
    """Return ``X`` for ``Optional[X]``; other annotations pass through."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
    return annotation


def type_name(tp: type) -> str:
    """Return the ``module.QualName`` display name of a type."""
    module = getattr(tp, "__module__", None)
    qualname = getattr(tp, "__qualname__", None) or getattr(tp, "__name__", repr(tp))
    if module in (None, "builtins"):
        return qualname
    return f"{module}.{qualname}"


def key_for(tp: Any) -> TypeKey:
    """Derive the key of a type.

    ``None`` and ``ANY`` map to the wildcard; ``Optional[X]`` maps to the key
    of ``X``.

    Raises:
        TypeError: If ``tp`` is not a type.
    """
    if tp is None or tp is ANY:
        return ANY
    if isinstance(tp, TypeKey):
        return tp
    tp = _unwrap_optional(tp)
    if not isinstance(tp, type):
        msg = f"Cannot derive a type key from {tp!r}"
        raise TypeError(msg)
    return TypeKey(tp, type_name(tp))


def key_of_value(value: Any) -> TypeKey:
    """Derive the key of a value's runtime type; ``None`` maps to ``ANY``."""
    if value is None:
        return ANY
    return key_for(type(value))


def key_of_destination(destination: Any) -> TypeKey:
    """Derive a destination key from either a type or an instance."""
    if destination is None or isinstance(destination, (type, TypeKey)):
        return key_for(destination)
    return key_for(type(destination))


__all__ = [
    "ANY",
    "TypeKey",
    "key_for",
    "key_of_destination",
    "key_of_value",
    "type_name",
]
