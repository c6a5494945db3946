"""Built-in primitive and literal validators.

Primitive keywords follow the Flow vocabulary.  Python's ``bool`` is a subclass
of ``int``; here booleans are never accepted as ``int``, ``float`` or
``number``, and ``null``/``undefined`` both accept ``None`` as well as a missing
argument.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from .validators import PredicateValidator
from .values import UNDEFINED, is_array_like, is_object_like

__all__ = ["PRIMITIVES", "is_numeric", "literal", "primitive"]

_NUMERIC_STRING = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
_INT_LITERAL = re.compile(r"^\d+$")
_FLOAT_LITERAL = re.compile(r"^\d+\.\d+$")


def _is_missing(value: Any) -> bool:
    return value is None or value is UNDEFINED


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return _is_int(value) or isinstance(value, float)


def is_numeric(value: Any) -> bool:
    """Numbers and strings holding a decimal number, e.g. ``" -1.5e3"``."""

    if _is_number(value):
        return True
    return isinstance(value, str) and _NUMERIC_STRING.match(value) is not None


def _define(name: str, predicate: Callable[[Any], bool], reason: str | None = None) -> PredicateValidator:
    return PredicateValidator(name, predicate, reason or f"incompatible with {name}")


PRIMITIVES: Mapping[str, PredicateValidator] = MappingProxyType(
    {
        "*": _define("*", lambda value: not _is_missing(value), "incompatible with existential"),
        "null": _define("null", _is_missing),
        "undefined": _define("undefined", _is_missing),
        "number": _define("number", _is_number),
        "numeric": _define("numeric", is_numeric),
        "string": _define("string", lambda value: isinstance(value, str)),
        "int": _define("int", _is_int),
        "float": _define("float", lambda value: isinstance(value, float)),
        "bool": _define("bool", lambda value: isinstance(value, bool)),
        "boolean": _define("boolean", lambda value: isinstance(value, bool), "incompatible with bool"),
        "true": _define("true", lambda value: value is True, "incompatible with bool"),
        "false": _define("false", lambda value: value is False, "incompatible with bool"),
        "array": _define("array", is_array_like),
        "object": _define("object", is_object_like),
    }
)


def primitive(name: str) -> Optional[PredicateValidator]:
    """Return the built-in validator for ``name`` or ``None``."""

    return PRIMITIVES.get(name)


def literal(name: str) -> Optional[PredicateValidator]:
    """Return a validator for a literal leaf, or ``None`` if ``name`` is not one.

    Recognised literals are quoted strings (``"x"`` or ``'x'``, escaped quotes
    allowed), unsigned integers and unsigned decimals.  Matching is strict:
    ``1`` accepts only the int ``1`` and ``1.0`` only the float ``1.0``.
    """

    if len(name) >= 2 and name[0] in "\"'" and name[-1] == name[0]:
        quote = name[0]
        body = name[1:-1]
        if quote in body.replace("\\" + quote, ""):
            return None
        expected = body.replace("\\" + quote, quote)
        return _define(
            name,
            lambda value: isinstance(value, str) and value == expected,
            f"incompatible with string literal {name}",
        )
    if _INT_LITERAL.match(name):
        number = int(name)
        return _define(
            name,
            lambda value: _is_int(value) and value == number,
            f"incompatible with int literal {name}",
        )
    if _FLOAT_LITERAL.match(name):
        decimal = float(name)
        return _define(
            name,
            lambda value: isinstance(value, float) and value == decimal,
            f"incompatible with float literal {name}",
        )
    return None
