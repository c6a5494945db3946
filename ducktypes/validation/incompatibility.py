"""Structured incompatibility errors and their message flattening.

An :class:`IncompatibleTypeError` is created by the validator that rejects a
value and wrapped by every enclosing composite validator, so the final error is
a tree mirroring the part of the annotation the value diverged from.  Callers
can inspect ``unexpected`` and ``children`` directly, or call
:func:`flatten` (also available as :meth:`IncompatibleTypeError.messages`) to
obtain path-qualified human-readable messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional

from ..exceptions import InternalConsistencyError
from .values import describe_value

__all__ = ["ErrorKind", "IncompatibleTypeError", "Messages", "flatten"]


class ErrorKind(str, Enum):
    """Failure kinds produced by composite validators."""

    WITH_UNION = "incompatible with union"
    WITH_INTERSECTION = "incompatible with intersection"
    WITH_SHAPE = "incompatible with shape"
    WITH_EXACT_SHAPE = "incompatible with exact shape"
    IN_SHAPE_PROPERTIES = "incompatible in shape properties"
    IN_EXACT_SHAPE_PROPERTIES = "incompatible in exact shape properties"
    WITH_ARRAY = "incompatible with array"
    IN_ARRAY_MEMBERS = "incompatible in array members"
    WITH_TUPLE = "incompatible with tuple"
    IN_TUPLE_MEMBERS = "incompatible in tuple members"

    def __str__(self) -> str:
        return self.value


_CONTAINER_KINDS = frozenset(
    {ErrorKind.WITH_SHAPE, ErrorKind.WITH_EXACT_SHAPE, ErrorKind.WITH_ARRAY, ErrorKind.WITH_TUPLE}
)
_PROPERTY_KINDS = frozenset({ErrorKind.IN_SHAPE_PROPERTIES, ErrorKind.IN_EXACT_SHAPE_PROPERTIES})
_MEMBER_KINDS = {ErrorKind.IN_ARRAY_MEMBERS: "array", ErrorKind.IN_TUPLE_MEMBERS: "tuple"}

Messages = str | list[str]


class IncompatibleTypeError(TypeError):
    """A value does not match the annotation it was validated against.

    Parameters
    ----------
    given:
        The rejected value.  Use :meth:`described` to supply a ready-made
        description instead (e.g. ``property `name```).
    unexpected:
        An :class:`ErrorKind` for composite failures, or a leaf-specific
        description such as ``"incompatible with string"``.
    children:
        Child errors keyed by property name or index, or a plain sequence
        which is keyed by position.
    reason:
        Overrides the readable form of ``unexpected`` in the message.
    """

    def __init__(
        self,
        given: Any,
        unexpected: ErrorKind | str,
        children: Mapping[Any, IncompatibleTypeError] | list[IncompatibleTypeError] | None = None,
        *,
        reason: str | None = None,
        given_description: str | None = None,
    ) -> None:
        self.given = given_description if given_description is not None else describe_value(given)
        self.unexpected = unexpected
        self.reason = reason if reason is not None else str(unexpected)
        message = f"{self.given} is {self.reason}"
        super().__init__(message)
        self.message = message
        self.children: dict[Any, IncompatibleTypeError] = _coerce_children(children)

    @classmethod
    def described(
        cls,
        description: str,
        unexpected: ErrorKind | str,
        children: Mapping[Any, IncompatibleTypeError] | list[IncompatibleTypeError] | None = None,
        *,
        reason: str | None = None,
    ) -> "IncompatibleTypeError":
        """Build an error whose given side is ``description`` verbatim."""

        return cls(None, unexpected, children, reason=reason, given_description=description)

    @property
    def kind(self) -> Optional[ErrorKind]:
        """The composite :class:`ErrorKind`, ``None`` for leaf-specific errors."""

        return self.unexpected if isinstance(self.unexpected, ErrorKind) else None

    def messages(self, path: str = "") -> Messages:
        """Return :func:`flatten` for this error."""

        return flatten(self, path)

    def message_list(self) -> list[str]:
        """Flattened messages, always as a list."""

        result = flatten(self)
        return [result] if isinstance(result, str) else result

    def deepest(self) -> "IncompatibleTypeError":
        """Follow single-child chains down to the first branching or leaf error."""

        error = self
        while len(error.children) == 1:
            error = next(iter(error.children.values()))
        return error

    def __repr__(self) -> str:
        return (
            f"IncompatibleTypeError(given={self.given!r}, unexpected={str(self.unexpected)!r}, "
            f"children={list(self.children)!r})"
        )


def _coerce_children(
    children: Mapping[Any, IncompatibleTypeError] | list[IncompatibleTypeError] | None,
) -> dict[Any, IncompatibleTypeError]:
    if children is None:
        return {}
    if isinstance(children, Mapping):
        pairs = list(children.items())
    else:
        pairs = list(enumerate(children))
    for key, child in pairs:
        if not isinstance(child, IncompatibleTypeError):
            raise InternalConsistencyError(
                f"child {key!r} of an incompatibility error must be an IncompatibleTypeError, "
                f"received {type(child).__name__}"
            )
    return dict(pairs)


# ---------------------------------------------------------------------------
# Flattening


def flatten(error: IncompatibleTypeError, path: str = "") -> Messages:
    """Render ``error`` as one message or an ordered list of messages.

    ``path`` is the dotted property path accumulated by enclosing shapes and
    containers; it is only used to qualify messages, never to look anything up.
    """

    kind = error.kind
    if kind is ErrorKind.WITH_UNION:
        return _flatten_union(error, path)
    if kind is ErrorKind.WITH_INTERSECTION:
        return _concat(flatten(child, path) for child in error.children.values())
    if kind in _MEMBER_KINDS:
        return _flatten_members(error, path, _MEMBER_KINDS[kind])
    if kind in _PROPERTY_KINDS:
        return _flatten_properties(error, path)
    if kind in _CONTAINER_KINDS:
        return error.message

    if not error.children:
        return error.message
    if len(error.children) == 1:
        (child,) = error.children.values()
        return _concat([error.message, flatten(child, path)])
    raise InternalConsistencyError(
        f"leaf incompatibility `{error.unexpected}` cannot hold {len(error.children)} children"
    )


def _flatten_union(error: IncompatibleTypeError, path: str) -> Messages:
    results = [flatten(child, path) for child in error.children.values()]
    if any(isinstance(result, list) for result in results):
        return _concat(results)
    return f"{error.given} is either {_union_reasons(error)}"


def _union_reasons(error: IncompatibleTypeError) -> str:
    return " or ".join(
        _union_reasons(child) if child.kind is ErrorKind.WITH_UNION else child.reason
        for child in error.children.values()
    )


def _flatten_members(error: IncompatibleTypeError, path: str, container: str) -> list[str]:
    messages: list[str] = []
    for key, child in error.children.items():
        result = flatten(child, _join(path, key))
        if isinstance(result, str):
            suffix = f" of property `{path}`" if path else ""
            messages.append(f"{result} at index #{key} in {container} members{suffix}")
        else:
            messages.extend(result)
    return messages


def _flatten_properties(error: IncompatibleTypeError, path: str) -> list[str]:
    messages: list[str] = []
    for key, child in error.children.items():
        full_path = _join(path, key)
        result = flatten(child, full_path)
        if isinstance(result, str):
            messages.append(f"{result} in {error.given} of property `{full_path}`")
        else:
            messages.extend(result)
    return messages


def _concat(results: Any) -> list[str]:
    flat: list[str] = []
    for result in results:
        if isinstance(result, str):
            flat.append(result)
        else:
            flat.extend(result)
    return flat


def _join(path: str, key: Any) -> str:
    return f"{path}.{key}" if path else str(key)
