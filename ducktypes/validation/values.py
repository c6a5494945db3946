"""Classification and description of arbitrary Python values.

Validators need a few structural questions answered about the values they
receive: is it an indexable container, is it object-like, which keys does it
expose?  Answers live here so that primitives, composite validators and the
error model agree on them.
"""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Iterator, Mapping

__all__ = [
    "UNDEFINED",
    "describe_value",
    "is_array_like",
    "is_object_like",
    "is_sequence_like",
    "observed_items",
]


class _Undefined:
    """Sentinel for a validator invoked without an argument."""

    __slots__ = ()
    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED: Any = _Undefined()

_SCALARS = (bool, int, float, complex, str, bytes, bytearray)


def is_sequence_like(value: Any) -> bool:
    """Positional containers: lists and tuples."""

    return isinstance(value, (list, tuple))


def is_array_like(value: Any) -> bool:
    """Indexable containers accepted by array validators."""

    return is_sequence_like(value) or isinstance(value, Mapping)


def is_object_like(value: Any) -> bool:
    """Instances carrying attributes, as opposed to scalars and containers."""

    if value is None or value is UNDEFINED or isinstance(value, type):
        return False
    if isinstance(value, _SCALARS) or is_array_like(value):
        return False
    return not isinstance(value, (set, frozenset))


def observed_items(value: Any) -> Iterator[tuple[Any, Any]]:
    """Yield the ``(key, item)`` pairs a shape validator inspects.

    Mappings expose their items, lists and tuples their indices, dataclass
    instances their fields and other objects their public instance attributes.
    Properties and other accessors on the class are not considered.
    """

    if isinstance(value, Mapping):
        yield from value.items()
    elif is_sequence_like(value):
        yield from enumerate(value)
    elif dataclasses.is_dataclass(value):
        for spec in dataclasses.fields(value):
            yield spec.name, getattr(value, spec.name)
    else:
        attributes = getattr(value, "__dict__", None)
        if isinstance(attributes, Mapping):
            for key, item in attributes.items():
                if not key.startswith("_"):
                    yield key, item


def describe_value(value: Any) -> str:
    """Return the short type description used in incompatibility messages."""

    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return f"bool literal {json.dumps(value)}"
    if isinstance(value, int):
        return f"int literal {value}"
    if isinstance(value, float):
        return f"float literal {json.dumps(value)}"
    if isinstance(value, str):
        return f"string literal {json.dumps(value)}"
    if isinstance(value, list):
        return "list literal"
    if isinstance(value, tuple):
        return "tuple literal"
    if isinstance(value, Mapping):
        return "mapping literal"
    return "object literal"
