"""Marker resolution: turn a grouped token tree into the canonical AST.

Each level of the tree is processed after its nested groups.  Resolution is a
fixed pipeline of passes, every pass being a pure function from the current
list of level items to the next one:

1. recurse into nested groups, turning names into :class:`~.ast.Leaf` nodes
2. exact shape marker + group
3. shape marker + group
4. ``Array<...>`` marker + group
5. tuple marker + group
6. ``T[]`` array suffix
7. ``?T`` optional prefix
8. ``&`` intersections (left fold)
9. ``|`` unions (left fold, reset by commas)
10. drop commas
11. ``key: value`` grouping into a shape body, or collapse of a lone group

A pattern produced by a later pass is never re-examined by an earlier one, so
the pass order fixes operator precedence: postfix ``[]`` binds tighter than
prefix ``?``, which binds tighter than ``&``, which binds tighter than ``|``.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional, Sequence

from ..exceptions import AnnotationConflictError, AnnotationSyntaxError
from . import ast
from .grouping import TokenTree
from .lexer import (
    ARRAY,
    ARRAY_SUFFIX,
    COLON,
    COMMA,
    EXACT_SHAPE,
    INTERSECTION,
    NAME,
    OPTIONAL,
    OPTIONAL_KEY_SENTINEL,
    SHAPE,
    TUPLE,
    UNION,
    Token,
)

__all__ = ["EXISTENTIAL", "WarningCallback", "normalize"]

EXISTENTIAL = "*"

WarningCallback = Callable[[str], None]


@dataclass(slots=True, frozen=True)
class Group:
    """A normalized level that has not been given a meaning yet.

    Its items read as an implicit union when used as a type, or as positional
    elements when used as a tuple body.
    """

    items: tuple[object, ...]


@dataclass(slots=True, frozen=True)
class ShapeBody:
    """A normalized level made of ``key: value`` pairs."""

    properties: tuple[ast.Property, ...]
    indexer: Optional[ast.Indexer]


Items = list[object]


def normalize(tree: TokenTree, *, warn: WarningCallback | None = None) -> ast.Node:
    """Return the canonical AST for a grouped token tree.

    ``warn`` receives non-fatal diagnostics, such as an indexer declared on an
    exact shape.
    """

    result = _normalize_level(tree, warn)
    if isinstance(result, Group) and not result.items:
        raise AnnotationConflictError("Unexpected empty AST")
    return _as_type(result)


def _normalize_level(level: Sequence[object], warn: WarningCallback | None) -> Group | ShapeBody:
    items: Items = [_descend(item, warn) for item in level]
    passes: tuple[Callable[[Items], Items], ...] = (
        partial(_resolve_shapes, kind=EXACT_SHAPE, exact=True, warn=warn),
        partial(_resolve_shapes, kind=SHAPE, exact=False, warn=warn),
        _resolve_array_markers,
        _resolve_tuples,
        _resolve_array_suffixes,
        _resolve_optionals,
        partial(_fold_operator, kind=INTERSECTION, factory=ast.Intersection),
        partial(_fold_operator, kind=UNION, factory=ast.Union),
        _drop_commas,
    )
    for resolve in passes:
        items = resolve(items)
    return _group_or_shape_body(items)


def _descend(item: object, warn: WarningCallback | None) -> object:
    if isinstance(item, list):
        return _normalize_level(item, warn)
    if isinstance(item, Token) and item.kind == NAME:
        return ast.Leaf(item.value)
    return item


# ---------------------------------------------------------------------------
# Passes


def _resolve_shapes(
    items: Items, *, kind: str, exact: bool, warn: WarningCallback | None
) -> Items:
    def build(body: object) -> ast.Node:
        if isinstance(body, Group) and not body.items:
            return ast.Shape(exact=exact)
        if not isinstance(body, ShapeBody):
            raise AnnotationSyntaxError("Shape must list `key: type` pairs")
        if exact and body.indexer is not None and warn is not None:
            warn("Indexers are usually useful for inexact shapes")
        return ast.Shape(exact=exact, properties=body.properties, indexer=body.indexer)

    return _resolve_prefix(items, kind, build)


def _resolve_array_markers(items: Items) -> Items:
    return _resolve_prefix(items, ARRAY, lambda body: ast.Array(_as_type(body)))


def _resolve_tuples(items: Items) -> Items:
    return _resolve_prefix(items, TUPLE, lambda body: ast.Tuple(_elements(body)))


def _resolve_array_suffixes(items: Items) -> Items:
    result: Items = []
    for item in items:
        if not _is_token(item, ARRAY_SUFFIX):
            result.append(item)
            continue
        if not result or isinstance(result[-1], Token):
            raise AnnotationSyntaxError("Array suffix `[]` must follow a type")
        previous = result[-1]
        if isinstance(previous, ast.Leaf) and previous.name == EXISTENTIAL:
            # Legacy spelling: `*[]` reads as `* | array`, unlike `Array<*>`.
            result.append(ast.Leaf("array"))
        else:
            result[-1] = ast.Array(_as_type(previous))
    return result


def _resolve_optionals(items: Items) -> Items:
    return _resolve_prefix(
        items, OPTIONAL, lambda operand: ast.Union((ast.Leaf("null"), _as_type(operand)))
    )


def _fold_operator(
    items: Items, *, kind: str, factory: Callable[[tuple[ast.Node, ...]], ast.Node]
) -> Items:
    """Left-fold ``a OP b OP c`` into a single ``factory((a, b, c))`` node."""

    result: Items = []
    members: list[ast.Node] | None = None
    index = 0
    while index < len(items):
        item = items[index]
        if not _is_token(item, kind):
            if members is not None:
                result[-1] = factory(tuple(members))
                members = None
            result.append(item)
            index += 1
            continue
        operand = items[index + 1] if index + 1 < len(items) else None
        if operand is None or isinstance(operand, Token):
            raise AnnotationSyntaxError(f"Operator `{item.value}` must be followed by a type")
        if members is None:
            if not result or isinstance(result[-1], Token):
                raise AnnotationSyntaxError(f"Operator `{item.value}` must follow a type")
            members = [_as_type(result[-1])]
        members.append(_as_type(operand))
        index += 2
    if members is not None:
        result[-1] = factory(tuple(members))
    return result


def _drop_commas(items: Items) -> Items:
    return [item for item in items if not _is_token(item, COMMA)]


def _group_or_shape_body(items: Items) -> Group | ShapeBody:
    if not any(_is_token(item, COLON) for item in items):
        if len(items) == 1 and isinstance(items[0], Group):
            return items[0]
        return Group(tuple(items))

    entries: list[tuple[ast.Leaf, list[object]]] = []
    for index, item in enumerate(items):
        if _is_token(item, COLON):
            continue
        if index + 1 < len(items) and _is_token(items[index + 1], COLON):
            if not isinstance(item, ast.Leaf):
                raise AnnotationSyntaxError(
                    "Unexpected syntax error; did you misplace `?` on an object property? "
                    "Object property must be a name, e.g. `{ key?: string }`"
                )
            entries.append((item, []))
        elif not entries:
            raise AnnotationSyntaxError("Expected `key:` before the first shape value")
        else:
            entries[-1][1].append(item)

    properties: list[ast.Property] = []
    seen: set[str] = set()
    indexer: ast.Indexer | None = None
    for key, values in entries:
        if not values:
            raise AnnotationSyntaxError(f"Missing type for shape key `{_key_literal(key.name)}`")
        if len(values) == 1:
            value = _as_type(values[0])
        else:
            value = ast.Union(tuple(_as_type(entry) for entry in values))
        if _is_quoted(key.name):
            name = _key_literal(key.name)
            if name in seen:
                raise AnnotationConflictError(f"Duplicate shape property `{name}`")
            seen.add(name)
            properties.append(
                ast.Property(name, value, optional=key.name.endswith(OPTIONAL_KEY_SENTINEL + '"'))
            )
        else:
            if indexer is not None:
                raise AnnotationConflictError("More than one indexer property")
            indexer = ast.Indexer(key, value)
    return ShapeBody(tuple(properties), indexer)


# ---------------------------------------------------------------------------
# Helpers


def _resolve_prefix(items: Items, kind: str, build: Callable[[object], ast.Node]) -> Items:
    """Replace every ``marker operand`` pair with ``build(operand)``."""

    result: Items = []
    index = 0
    while index < len(items):
        item = items[index]
        if not _is_token(item, kind):
            result.append(item)
            index += 1
            continue
        operand = items[index + 1] if index + 1 < len(items) else None
        if operand is None or isinstance(operand, Token):
            raise AnnotationSyntaxError(f"`{_surface(item)}` must be followed by a type")
        result.append(build(operand))
        index += 2
    return result


def _as_type(item: object) -> ast.Node:
    if isinstance(item, ast.Node):
        return item
    if isinstance(item, Group):
        if not item.items:
            raise AnnotationSyntaxError(
                "Unexpected `()` or missing `,` while compiling type annotation"
            )
        if len(item.items) == 1:
            return _as_type(item.items[0])
        return ast.Union(tuple(_as_type(member) for member in item.items))
    if isinstance(item, ShapeBody):
        raise AnnotationSyntaxError("Key/value pairs are only allowed inside a shape `{ ... }`")
    if isinstance(item, Token):
        raise AnnotationSyntaxError(f"Unexpected `{_surface(item)}`")
    raise TypeError(f"unexpected tree item {item!r}")


def _elements(item: object) -> tuple[ast.Node, ...]:
    if isinstance(item, Group):
        if not item.items:
            raise AnnotationSyntaxError(
                "Unexpected `()` or missing `,` while compiling type annotation"
            )
        return tuple(_as_type(member) for member in item.items)
    return (_as_type(item),)


def _is_token(item: object, kind: str) -> bool:
    return isinstance(item, Token) and item.kind == kind


def _is_quoted(raw: str) -> bool:
    return len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "\"'"


def _key_literal(raw: str) -> str:
    if _is_quoted(raw):
        raw = raw[1:-1]
    return raw.removesuffix(OPTIONAL_KEY_SENTINEL)


_SURFACE = {EXACT_SHAPE: "{|", SHAPE: "{", ARRAY: "Array<", TUPLE: "[", ARRAY_SUFFIX: "[]"}


def _surface(token: Token) -> str:
    return _SURFACE.get(token.kind, token.value)
