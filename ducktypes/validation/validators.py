"""Compiled validator graph.

Validators are small immutable node objects rather than opaque closures, so a
compiled annotation stays introspectable (``kind``, ``children()``) for tooling
and for the error model.  Internally every node answers :meth:`Validator.evaluate`
with an explicit :class:`ValidationResult`; composite nodes combine their
children's results.  Calling a validator is the single raising boundary: it
returns ``True`` or raises the :class:`IncompatibleTypeError` of the result.

Validators hold no mutable state and can be shared between threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Iterator, Mapping, Optional

from ..exceptions import InternalConsistencyError
from .incompatibility import ErrorKind, IncompatibleTypeError
from .values import (
    UNDEFINED,
    describe_value,
    is_array_like,
    is_object_like,
    is_sequence_like,
    observed_items,
)

__all__ = [
    "PASSED",
    "ArrayValidator",
    "CallableValidator",
    "IndexerValidator",
    "IntersectionValidator",
    "PredicateValidator",
    "PropertyValidator",
    "ShapeValidator",
    "TupleValidator",
    "UnionValidator",
    "ValidationResult",
    "Validator",
    "failed",
]


@dataclass(slots=True, frozen=True)
class ValidationResult:
    """Outcome of :meth:`Validator.evaluate`."""

    ok: bool
    error: Optional[IncompatibleTypeError] = None

    def raise_for_errors(self) -> None:
        if self.error is not None:
            raise self.error


PASSED = ValidationResult(ok=True)


def failed(error: IncompatibleTypeError) -> ValidationResult:
    return ValidationResult(ok=False, error=error)


class Validator:
    """Base class of every compiled validator node."""

    __slots__ = ()

    kind: ClassVar[str] = "validator"

    def evaluate(self, value: Any = UNDEFINED) -> ValidationResult:
        raise NotImplementedError

    def __call__(self, value: Any = UNDEFINED) -> bool:
        self.evaluate(value).raise_for_errors()
        return True

    def children(self) -> Iterator["Validator"]:
        return iter(())

    def walk(self) -> Iterator["Validator"]:
        """Depth-first traversal starting at this node."""

        yield self
        for child in self.children():
            yield from child.walk()


# ---------------------------------------------------------------------------
# Leaf validators


@dataclass(slots=True, frozen=True)
class PredicateValidator(Validator):
    """Leaf validator backed by a boolean predicate."""

    kind: ClassVar[str] = "predicate"

    name: str
    predicate: Callable[[Any], bool]
    reason: str

    def evaluate(self, value: Any = UNDEFINED) -> ValidationResult:
        if self.predicate(value):
            return PASSED
        return failed(IncompatibleTypeError(value, self.reason))


@dataclass(slots=True, frozen=True)
class CallableValidator(Validator):
    """Wrap a user supplied one-argument callable.

    The callable accepts a value by returning anything but ``False``; it may
    reject one by returning ``False`` or by raising
    :class:`IncompatibleTypeError`.  Any other exception propagates.
    """

    kind: ClassVar[str] = "callable"

    name: str
    function: Callable[[Any], Any]

    def evaluate(self, value: Any = UNDEFINED) -> ValidationResult:
        try:
            result = self.function(value)
        except IncompatibleTypeError as exc:
            return failed(exc)
        if result is False:
            return failed(IncompatibleTypeError(value, f"incompatible with {self.name}"))
        return PASSED


# ---------------------------------------------------------------------------
# Composite validators


@dataclass(slots=True, frozen=True)
class UnionValidator(Validator):
    """Accept the value when any member accepts it, trying members in order."""

    kind: ClassVar[str] = "union"

    members: tuple[Validator, ...]

    def evaluate(self, value: Any = UNDEFINED) -> ValidationResult:
        errors: list[IncompatibleTypeError] = []
        for member in self.members:
            result = member.evaluate(value)
            if result.ok:
                return PASSED
            errors.append(_error_of(result))
        if len(errors) == 1:
            return failed(errors[0])
        return failed(IncompatibleTypeError(value, ErrorKind.WITH_UNION, errors))

    def children(self) -> Iterator[Validator]:
        return iter(self.members)


@dataclass(slots=True, frozen=True)
class IntersectionValidator(Validator):
    """Accept the value only when every member accepts it."""

    kind: ClassVar[str] = "intersection"

    members: tuple[Validator, ...]

    def evaluate(self, value: Any = UNDEFINED) -> ValidationResult:
        errors = [
            _error_of(result)
            for result in (member.evaluate(value) for member in self.members)
            if not result.ok
        ]
        if not errors:
            return PASSED
        return failed(IncompatibleTypeError(value, ErrorKind.WITH_INTERSECTION, errors))

    def children(self) -> Iterator[Validator]:
        return iter(self.members)


@dataclass(slots=True, frozen=True)
class ArrayValidator(Validator):
    """Every value of a list, tuple or mapping must satisfy ``element``."""

    kind: ClassVar[str] = "array"

    element: Validator

    def evaluate(self, value: Any = UNDEFINED) -> ValidationResult:
        if not is_array_like(value):
            return failed(IncompatibleTypeError(value, ErrorKind.WITH_ARRAY))
        items = value.items() if isinstance(value, Mapping) else enumerate(value)
        errors: dict[Any, IncompatibleTypeError] = {}
        for index, item in items:
            result = self.element.evaluate(item)
            if not result.ok:
                errors[index] = _error_of(result)
        if not errors:
            return PASSED
        return failed(IncompatibleTypeError(value, ErrorKind.IN_ARRAY_MEMBERS, errors))

    def children(self) -> Iterator[Validator]:
        yield self.element


@dataclass(slots=True, frozen=True)
class TupleValidator(Validator):
    """A list or tuple of exactly ``len(elements)`` positions, typed in order."""

    kind: ClassVar[str] = "tuple"

    elements: tuple[Validator, ...]

    def evaluate(self, value: Any = UNDEFINED) -> ValidationResult:
        if not is_sequence_like(value):
            return failed(IncompatibleTypeError(value, ErrorKind.WITH_TUPLE))
        if len(value) != len(self.elements):
            return failed(
                IncompatibleTypeError.described(
                    f"{describe_value(value)} with arity of {len(value)}",
                    ErrorKind.WITH_TUPLE,
                    reason=f"incompatible with tuple type with arity of {len(self.elements)}",
                )
            )
        errors: dict[Any, IncompatibleTypeError] = {}
        for index, (element, item) in enumerate(zip(self.elements, value)):
            result = element.evaluate(item)
            if not result.ok:
                errors[index] = _error_of(result)
        if not errors:
            return PASSED
        return failed(IncompatibleTypeError(value, ErrorKind.IN_TUPLE_MEMBERS, errors))

    def children(self) -> Iterator[Validator]:
        return iter(self.elements)


@dataclass(slots=True, frozen=True)
class PropertyValidator:
    """Declared shape property."""

    key: str
    validator: Validator
    optional: bool = False


@dataclass(slots=True, frozen=True)
class IndexerValidator:
    """Shape indexer: ``key`` tests undeclared keys, ``value`` their items."""

    key: Validator
    value: Validator


@dataclass(slots=True, frozen=True)
class ShapeValidator(Validator):
    """Mapping or object with named properties.

    Every declared key not marked optional must be present.  Undeclared keys
    are checked against the indexer, if any; exact shapes also reject the
    undeclared keys their indexer does not accept.
    """

    kind: ClassVar[str] = "shape"

    exact: bool
    properties: tuple[PropertyValidator, ...] = ()
    indexer: Optional[IndexerValidator] = None

    @property
    def label(self) -> str:
        return "exact shape" if self.exact else "shape"

    def evaluate(self, value: Any = UNDEFINED) -> ValidationResult:
        container_kind = ErrorKind.WITH_EXACT_SHAPE if self.exact else ErrorKind.WITH_SHAPE
        if not (is_array_like(value) or is_object_like(value)):
            return failed(IncompatibleTypeError(value, container_kind))

        declared = {prop.key: prop for prop in self.properties}
        errors: dict[Any, IncompatibleTypeError] = {}
        observed: set[str] = set()

        for key, item in observed_items(value):
            if not isinstance(key, str):
                return failed(
                    IncompatibleTypeError.described(
                        f"{describe_value(value)} with non-string key {key!r}", container_kind
                    )
                )
            observed.add(key)
            if self._is_extra_key(key, declared):
                errors[key] = IncompatibleTypeError.described(
                    f"property `{key}`", f"missing in {self.label} but exists in value"
                )
                continue
            prop = declared.get(key)
            if prop is not None:
                validator: Validator | None = prop.validator
            else:
                validator = self.indexer.value if self.indexer is not None else None
            if validator is None:
                continue
            result = validator.evaluate(item)
            if not result.ok:
                errors[key] = _error_of(result)

        for prop in self.properties:
            if prop.key not in observed and not prop.optional:
                errors[prop.key] = IncompatibleTypeError.described(
                    f"property `{prop.key}`", f"missing in value but exists in {self.label}"
                )

        if not errors:
            return PASSED
        kind = ErrorKind.IN_EXACT_SHAPE_PROPERTIES if self.exact else ErrorKind.IN_SHAPE_PROPERTIES
        return failed(IncompatibleTypeError(value, kind, errors))

    def _is_extra_key(self, key: str, declared: Mapping[str, PropertyValidator]) -> bool:
        if not self.exact or key in declared:
            return False
        if self.indexer is None:
            return True
        return not self.indexer.key.evaluate(key).ok

    def children(self) -> Iterator[Validator]:
        for prop in self.properties:
            yield prop.validator
        if self.indexer is not None:
            yield self.indexer.key
            yield self.indexer.value


def _error_of(result: ValidationResult) -> IncompatibleTypeError:
    if result.error is None:
        raise InternalConsistencyError("failed validation result carries no error")
    return result.error
