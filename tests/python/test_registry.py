"""Tests for primitive, literal and alias resolution."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from ducktypes.exceptions import ErrorCode, ForbiddenAliasError, TypeNotFoundError
from ducktypes.validation.incompatibility import IncompatibleTypeError
from ducktypes.validation.primitives import PRIMITIVES, is_numeric, literal
from ducktypes.validation.registry import Registry
from ducktypes.validation.validators import PredicateValidator
from ducktypes.validation.values import UNDEFINED


@pytest.mark.parametrize(
    ("name", "value", "ok"),
    [
        ("null", None, True),
        ("null", UNDEFINED, True),
        ("null", 0, False),
        ("undefined", UNDEFINED, True),
        ("undefined", "", False),
        ("number", 1, True),
        ("number", 1.5, True),
        ("number", False, False),
        ("numeric", 3, True),
        ("numeric", " -1.5e3", True),
        ("numeric", ".5", True),
        ("numeric", "abc", False),
        ("numeric", True, False),
        ("string", "x", True),
        ("string", b"x", False),
        ("int", 1, True),
        ("int", True, False),
        ("int", 1.0, False),
        ("float", 1.0, True),
        ("float", 1, False),
        ("bool", False, True),
        ("bool", 0, False),
        ("boolean", True, True),
        ("true", True, True),
        ("true", 1, False),
        ("false", False, True),
        ("false", None, False),
        ("array", [1], True),
        ("array", (1,), True),
        ("array", {"a": 1}, True),
        ("array", "abc", False),
        ("object", SimpleNamespace(a=1), True),
        ("object", {}, False),
        ("object", None, False),
        ("*", 0, True),
        ("*", "", True),
        ("*", None, False),
        ("*", UNDEFINED, False),
    ],
)
def test_primitives(name: str, value: Any, ok: bool) -> None:
    assert Registry().resolve(name).evaluate(value).ok is ok


@pytest.mark.parametrize(
    ("name", "reason"),
    [
        ("boolean", "incompatible with bool"),
        ("true", "incompatible with bool"),
        ("false", "incompatible with bool"),
        ("*", "incompatible with existential"),
        ("int", "incompatible with int"),
    ],
)
def test_primitive_reasons(name: str, reason: str) -> None:
    assert PRIMITIVES[name].reason == reason


@pytest.mark.parametrize(
    ("name", "value", "ok"),
    [
        ('"foo"', "foo", True),
        ('"foo"', "bar", False),
        ("'foo'", "foo", True),
        ("42", 42, True),
        ("42", 42.0, False),
        ("1", True, False),
        ("1.5", 1.5, True),
        ("1.5", 1, False),
    ],
)
def test_literals(name: str, value: Any, ok: bool) -> None:
    validator = literal(name)

    assert isinstance(validator, PredicateValidator)
    assert validator.evaluate(value).ok is ok


def test_literal_reasons() -> None:
    with pytest.raises(IncompatibleTypeError) as exc:
        Registry().resolve("42")(7)
    assert exc.value.message == "int literal 7 is incompatible with int literal 42"


@pytest.mark.parametrize("name", ["-1", "1e3", "'foo\"", "\"a\"b\"", "Foo"])
def test_non_literals(name: str) -> None:
    assert literal(name) is None


def test_escaped_quotes_in_string_literals() -> None:
    validator = literal('"a\\"b"')

    assert validator is not None
    assert validator('a"b')


def test_is_numeric() -> None:
    assert is_numeric("10")
    assert not is_numeric("")
    assert not is_numeric(None)


def test_unknown_type_is_not_found() -> None:
    with pytest.raises(TypeNotFoundError) as exc:
        Registry().resolve("Customer")
    assert isinstance(exc.value, LookupError)
    assert exc.value.code is ErrorCode.NOT_FOUND
    assert exc.value.name == "Customer"
    assert str(exc.value) == "Type does not exist: `Customer`"


def test_unknown_type_inside_annotation_is_reported_by_name() -> None:
    with pytest.raises(TypeNotFoundError) as exc:
        Registry().compile("Customer[]")
    assert exc.value.name == "Customer"


def test_any_is_forbidden() -> None:
    registry = Registry()

    with pytest.raises(ForbiddenAliasError) as exc:
        registry.register("any", "*")
    assert exc.value.code is ErrorCode.FORBIDDEN
    with pytest.raises(ForbiddenAliasError):
        registry.register_lazy("any", lambda: "*")


def test_register_callable() -> None:
    registry = Registry()
    registry.register("even", lambda value: isinstance(value, int) and value % 2 == 0)

    validator = registry.compile("even[]")

    assert validator([2, 4])
    with pytest.raises(IncompatibleTypeError) as exc:
        validator([2, 3])
    assert exc.value.message_list() == ["int literal 3 is incompatible with even at index #1 in array members"]


def test_callable_may_raise_its_own_error() -> None:
    def positive(value: Any) -> None:
        if not isinstance(value, int) or value <= 0:
            raise IncompatibleTypeError(value, "incompatible with positive int")

    registry = Registry({"positive": positive})

    assert registry.compile("positive")(3)
    with pytest.raises(IncompatibleTypeError) as exc:
        registry.compile("positive")(-3)
    assert exc.value.message == "int literal -3 is incompatible with positive int"


def test_callable_errors_other_than_incompatibility_propagate() -> None:
    def broken(value: Any) -> bool:
        raise KeyError(value)

    registry = Registry({"broken": broken})

    with pytest.raises(KeyError):
        registry.compile("broken")(1)


def test_callable_must_take_one_argument() -> None:
    with pytest.raises(ForbiddenAliasError):
        Registry().register("pair", lambda left, right: True)
    with pytest.raises(ForbiddenAliasError):
        Registry().register("nothing", lambda: True)
    with pytest.raises(ForbiddenAliasError):
        Registry().register("many", lambda *values: True)

    def scaled(value: Any, factor: int = 1) -> bool:
        return isinstance(value, int)

    with pytest.raises(ForbiddenAliasError):
        Registry().register("scaled", scaled)
    assert Registry().register("digits", str.isdigit)("123")


def test_register_rejects_unknown_kinds() -> None:
    with pytest.raises(TypeError):
        Registry().register("five", 5)  # type: ignore[arg-type]


def test_register_annotation_alias() -> None:
    registry = Registry()
    registry.register("Tag", "{| name: string, weight?: float |}")

    validator = registry.compile("Tag[]")

    assert validator([{"name": "a"}, {"name": "b", "weight": 0.5}])
    assert not validator.evaluate([{"label": "a"}]).ok


def test_annotations_compile_once() -> None:
    registry = Registry()

    assert registry.compile("int[]") is registry.compile("int[]")


def test_lazy_types_are_built_once() -> None:
    calls: list[str] = []

    def factory() -> str:
        calls.append("Point")
        return "{| x: number, y: number |}"

    registry = Registry()
    registry.register_lazy("Point", factory)

    assert "Point" in registry
    assert registry.compile("Point[]")([{"x": 1, "y": 2.5}])
    assert registry.resolve("Point") is registry.resolve("Point")
    assert calls == ["Point"]


def test_lazy_types_may_refer_to_each_other_in_any_order() -> None:
    registry = Registry()
    registry.register_lazy("Team", lambda: "{| lead: Person, members: Person[] |}")
    registry.register_lazy("Person", lambda: "{| name: string |}")

    assert registry.resolve("Team")({"lead": {"name": "a"}, "members": []})


def test_self_referencing_lazy_type_is_not_found() -> None:
    registry = Registry()
    registry.register_lazy("Loop", lambda: "Loop[]")

    with pytest.raises(TypeNotFoundError):
        registry.resolve("Loop")
    assert registry.exists("Loop")


def test_exists_and_names() -> None:
    registry = Registry({"Id": "int"})
    registry.register_lazy("Ids", lambda: "Id[]")

    assert registry.exists("int")
    assert registry.exists('"literal"')
    assert "Id" in registry
    assert "Missing" not in registry
    assert 3 not in registry
    assert list(registry.names()) == ["Id", "Ids"]
