"""Tests for compiled validators and the structure of their errors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pytest

from ducktypes.annotation import ast, parse
from ducktypes.exceptions import (
    AnnotationConflictError,
    AnnotationSyntaxError,
    InternalConsistencyError,
)
from ducktypes.validation import compiler
from ducktypes.validation.incompatibility import ErrorKind, IncompatibleTypeError
from ducktypes.validation.registry import Registry
from ducktypes.validation.validators import (
    ArrayValidator,
    UnionValidator,
    ValidationResult,
    Validator,
)
from ducktypes.validation.values import UNDEFINED


@pytest.fixture()
def registry() -> Registry:
    return Registry()


def _error(validator: Validator, value: Any) -> IncompatibleTypeError:
    result = validator.evaluate(value)
    assert not result.ok
    assert result.error is not None
    return result.error


class Record:
    def __init__(self, **attributes: Any) -> None:
        self._hidden = "ignored"
        for key, value in attributes.items():
            setattr(self, key, value)


@dataclass
class Pair:
    foo: str
    bar: int


@pytest.mark.parametrize(
    ("annotation", "accepted", "rejected"),
    [
        ("string[]", [["foo", "bar"], {"a": "foo", "b": "bar"}, ()], [["foo", 1], "foo", None]),
        ("(string|int)[]", [["foo", "bar", 123]], [["foo", None, 123]]),
        ("Array<?string>", [["foo", None, "bar"]], [["foo", None, 123]]),
        ("(?string)[]", [["foo", None, "bar"]], [["foo", None, 123]]),
        ("(int[])[]", [[[1, 2], [3]], [[1, 2], []]], [[[1, "x"]], [[1, 2, 3], [[1, 1]]]]),
        ("[int, string]", [[1, "a"], (1, "a")], [[1], [1, "a", 2], ["a", 1], {"0": 1, "1": "a"}]),
        ("{a: int} & {b: float}", [{"a": 1, "b": 1.5}], [{"a": 1}, {"b": 1.5}]),
        ("{|foo: ?int, baz: ?int|}", [{"foo": 124, "baz": None}, {"foo": 124, "baz": 13}], [{"foo": 124, "baz": "13"}]),
        ("{ a: int }", [{"a": 1}, {"a": 1, "z": "extra"}, Record(a=1, b=2)], [{"a": "1"}, {}, 5]),
        ("{| a: int, b?: string |}", [{"a": 1}, {"a": 1, "b": "x"}], [{"a": 1, "b": 2}, {"b": "x"}]),
        ("{[string]: int}", [{}, {"x": 1, "y": 2}], [{"x": "y"}, {1: 1}]),
        ("?string", [None, "x"], [1, False]),
        ("int | \"auto\"", [3, "auto"], ["manual", 3.0]),
    ],
)
def test_accepts_and_rejects(
    registry: Registry, annotation: str, accepted: list[Any], rejected: list[Any]
) -> None:
    validator = registry.compile(annotation)
    for value in accepted:
        assert validator(value) is True, value
    for value in rejected:
        assert not validator.evaluate(value).ok, value
        with pytest.raises(IncompatibleTypeError):
            validator(value)


def test_optional_accepts_null_plus_inner_type(registry: Registry) -> None:
    values = [None, "x", 1, 1.5, True, [], {}]
    for inner in ("string", "int", "float[]", "{a: int}"):
        optional = registry.compile(f"?{inner}")
        plain = registry.compile(inner)
        for value in values:
            expected = value is None or plain.evaluate(value).ok
            assert optional.evaluate(value).ok is expected


def test_string_list_scenario(registry: Registry) -> None:
    error = _error(registry.compile("string[]"), ["foo", "bar", 123])

    assert error.kind is ErrorKind.IN_ARRAY_MEMBERS
    assert list(error.children) == [2]
    assert error.children[2].unexpected == "incompatible with string"
    assert error.message_list() == ["int literal 123 is incompatible with string at index #2 in array members"]


def test_union_list_scenario(registry: Registry) -> None:
    error = _error(registry.compile("(string|int)[]"), ["foo", None, 123])

    assert list(error.children) == [1]
    assert error.children[1].kind is ErrorKind.WITH_UNION
    assert error.message_list() == [
        "null is either incompatible with string or incompatible with int at index #1 in array members"
    ]


def test_exact_shape_scenario(registry: Registry) -> None:
    error = _error(registry.compile("{|foo: string, bar: int|}"), {"foo": "baz", "bar": 10, "buz": "bat"})

    assert error.kind is ErrorKind.IN_EXACT_SHAPE_PROPERTIES
    assert list(error.children) == ["buz"]
    assert error.children["buz"].message == "property `buz` is missing in exact shape but exists in value"


def test_exact_shape_reports_missing_keys_in_declaration_order(registry: Registry) -> None:
    error = _error(registry.compile("{| a: int, b: int, c?: int |}"), {"z": 1})

    assert list(error.children) == ["z", "a", "b"]
    assert error.children["a"].message == "property `a` is missing in value but exists in exact shape"


def test_objects_expose_public_attributes(registry: Registry) -> None:
    validator = registry.compile("{|foo: string, bar: int|}")

    assert validator(Record(foo="baz", bar=10))
    assert validator(Pair(foo="baz", bar=10))
    error = _error(validator, Record(foo="baz", bar=10, buz="bat"))
    assert list(error.children) == ["buz"]
    assert error.given == "object literal"


def test_nested_arrays_name_both_indices(registry: Registry) -> None:
    error = _error(registry.compile("(int[])[]"), [[1, 2], [1, "x"]])

    assert error.message_list() == [
        'string literal "x" is incompatible with int at index #1 in array members of property `1`'
    ]
    assert error.children[1].children[1].unexpected == "incompatible with int"


def test_tuple_arity_mismatch_cites_both_arities(registry: Registry) -> None:
    error = _error(registry.compile("[int, string]"), [1])

    assert error.kind is ErrorKind.WITH_TUPLE
    assert error.message == "list literal with arity of 1 is incompatible with tuple type with arity of 2"
    assert error.messages() == error.message


def test_tuple_member_failure(registry: Registry) -> None:
    error = _error(registry.compile("[int, string]"), (1, 2))

    assert error.kind is ErrorKind.IN_TUPLE_MEMBERS
    assert error.message_list() == ["int literal 2 is incompatible with string at index #1 in tuple members"]


def test_intersection_cites_missing_branch(registry: Registry) -> None:
    error = _error(registry.compile("{a: int} & {b: float}"), {"a": 1})

    assert error.kind is ErrorKind.WITH_INTERSECTION
    assert list(error.children) == [0]
    assert error.message_list() == [
        "property `b` is missing in value but exists in shape in mapping literal of property `b`"
    ]


def test_exact_shape_indexer_admits_matching_keys(registry: Registry) -> None:
    validator = registry.compile("{| a: int, [numeric]: string |}")

    assert validator({"a": 1, "2": "two"})
    error = _error(validator, {"a": 1, "b": "x", "3": 3})
    assert list(error.children) == ["b", "3"]
    assert error.children["b"].message == "property `b` is missing in exact shape but exists in value"
    assert error.children["3"].unexpected == "incompatible with string"


def test_non_string_keys_fail_the_shape(registry: Registry) -> None:
    validator = registry.compile("{ a?: int }")

    error = _error(validator, {1: 2})
    assert error.kind is ErrorKind.WITH_SHAPE
    assert error.message == "mapping literal with non-string key 1 is incompatible with shape"
    assert _error(validator, [1]).message == "list literal with non-string key 0 is incompatible with shape"
    assert validator([])


def test_shape_rejects_scalars(registry: Registry) -> None:
    error = _error(registry.compile("{| a: int |}"), "text")

    assert error.kind is ErrorKind.WITH_EXACT_SHAPE
    assert error.message == 'string literal "text" is incompatible with exact shape'


def test_missing_argument(registry: Registry) -> None:
    assert registry.compile("?string")() is True
    with pytest.raises(IncompatibleTypeError) as exc:
        registry.compile("string")()
    assert exc.value.message == "undefined is incompatible with string"


def test_single_member_union_reraises_member_error(registry: Registry) -> None:
    validator = UnionValidator((registry.resolve("int"),))

    error = _error(validator, "x")

    assert error.kind is None
    assert error.unexpected == "incompatible with int"


def test_leaves_are_resolved_once_per_occurrence() -> None:
    calls: list[str] = []
    registry = Registry()

    def resolve(name: str) -> Validator:
        calls.append(name)
        return registry.resolve(name)

    compiler.compile_node(parse("int | int[] | {a: int}"), resolve)

    assert calls == ["int", "int", "int"]


def test_compile_annotation_accepts_text_and_nodes(registry: Registry) -> None:
    from_text = compiler.compile_annotation("int[]", registry.resolve)
    from_node = compiler.compile_annotation(ast.Array(ast.Leaf("int")), registry.resolve)

    assert from_text == from_node
    assert from_text([1, 2])


def test_structural_compile_errors(registry: Registry) -> None:
    with pytest.raises(AnnotationConflictError):
        compiler.compile_node(None, registry.resolve)  # type: ignore[arg-type]
    for empty in (ast.Union(()), ast.Intersection(()), ast.Tuple(())):
        with pytest.raises(AnnotationSyntaxError):
            compiler.compile_node(empty, registry.resolve)


def test_validator_graph_is_introspectable(registry: Registry) -> None:
    validator = registry.compile("{ a: int[], b: [string, ?float] }")

    assert [node.kind for node in validator.walk()] == [
        "shape",
        "array",
        "predicate",
        "tuple",
        "predicate",
        "union",
        "predicate",
        "predicate",
    ]


def test_quoted_keys_are_required(registry: Registry) -> None:
    validator = registry.compile("{'a-b': int, 'c-d': string}")

    assert validator.evaluate({"a-b": 1, "c-d": "x"}).ok
    error = _error(validator, {"a-b": 1})
    assert error.kind is ErrorKind.IN_SHAPE_PROPERTIES
    assert list(error.children) == ["c-d"]


def test_literals_with_separators_compile(registry: Registry) -> None:
    validator = registry.compile("'a:b' | 'x[]'")

    assert validator("a:b") and validator("x[]")
    assert not validator.evaluate("x").ok


class _ErrorlessFailure(Validator):
    def evaluate(self, value: Any = UNDEFINED) -> ValidationResult:
        return ValidationResult(ok=False)


def test_failure_without_error_is_an_internal_error() -> None:
    with pytest.raises(InternalConsistencyError):
        ArrayValidator(_ErrorlessFailure()).evaluate([1])
