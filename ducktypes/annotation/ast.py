"""Canonical abstract syntax tree for parsed annotations.

The normalizer produces exactly six node variants: :class:`Leaf`,
:class:`Union`, :class:`Intersection`, :class:`Array`, :class:`Tuple` and
:class:`Shape`.  Nodes are frozen, slotted dataclasses so that two parses of the
same annotation compare equal and can be hashed, serialised and pretty-printed
without any knowledge of the compiler.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Iterator, Mapping, Optional

__all__ = [
    "Array",
    "Indexer",
    "Intersection",
    "Leaf",
    "Node",
    "Property",
    "Shape",
    "Tuple",
    "Union",
    "format_node",
]


@dataclass(slots=True, frozen=True)
class Node:
    """Base class for all AST nodes."""

    @property
    def node_type(self) -> str:
        """Stable node type string used by the serializer."""

        return self.__class__.__name__

    def children(self) -> Iterator[Node]:
        """Yield child nodes in declaration order."""

        for spec in fields(self):
            yield from _iter_possible_children(getattr(self, spec.name))

    def walk(self) -> Iterator[Node]:
        """Depth-first traversal starting at this node."""

        yield self
        for child in self.children():
            yield from child.walk()


@dataclass(slots=True, frozen=True)
class Leaf(Node):
    """Identifier, primitive keyword or literal, resolved at compile time."""

    name: str


@dataclass(slots=True, frozen=True)
class Union(Node):
    """Value must satisfy at least one member."""

    members: tuple[Node, ...]


@dataclass(slots=True, frozen=True)
class Intersection(Node):
    """Value must satisfy every member."""

    members: tuple[Node, ...]


@dataclass(slots=True, frozen=True)
class Array(Node):
    """Container whose every value satisfies ``element``."""

    element: Node


@dataclass(slots=True, frozen=True)
class Tuple(Node):
    """Fixed-arity container typed position by position."""

    elements: tuple[Node, ...]


@dataclass(slots=True, frozen=True)
class Property:
    """Declared shape property; only ``optional`` keys may be absent from the value."""

    key: str
    value: Node
    optional: bool = False


@dataclass(slots=True, frozen=True)
class Indexer:
    """Open-ended key/value rule of a shape for keys that are not declared."""

    key: Node
    value: Node


@dataclass(slots=True, frozen=True)
class Shape(Node):
    """Object or mapping type with named properties.

    Every non-optional declared key is required; ``exact`` shapes also reject
    undeclared keys unless the indexer accepts them.
    """

    exact: bool
    properties: tuple[Property, ...] = ()
    indexer: Optional[Indexer] = None

    def property_map(self) -> Mapping[str, Property]:
        return {prop.key: prop for prop in self.properties}


def _iter_possible_children(value: object) -> Iterator[Node]:
    if isinstance(value, Node):
        yield value
    elif isinstance(value, Property):
        yield value.value
    elif isinstance(value, Indexer):
        yield value.key
        yield value.value
    elif isinstance(value, tuple):
        for item in value:
            yield from _iter_possible_children(item)


# ---------------------------------------------------------------------------
# Pretty-printing


_BARE_KEY = re.compile(r"^\w+$")


def format_node(node: Node) -> str:
    """Render ``node`` back into annotation syntax.

    The output parses to a structurally equal AST, except for the legacy
    ``*[]`` spelling which is always rendered as ``Array<*>``.
    """

    if isinstance(node, Leaf):
        return node.name
    if isinstance(node, Union):
        return " | ".join(_operand(member, Union) for member in node.members)
    if isinstance(node, Intersection):
        return " & ".join(_operand(member, Intersection) for member in node.members)
    if isinstance(node, Array):
        if isinstance(node.element, Leaf) and node.element.name == "*":
            return "Array<*>"
        return f"{_operand(node.element, Array)}[]"
    if isinstance(node, Tuple):
        return "[" + ", ".join(format_node(element) for element in node.elements) + "]"
    if isinstance(node, Shape):
        entries = [_format_property(prop) for prop in node.properties]
        if node.indexer is not None:
            entries.append(
                f"[{format_node(node.indexer.key)}]: {format_node(node.indexer.value)}"
            )
        body = ", ".join(entries)
        if node.exact:
            return f"{{| {body} |}}" if body else "{||}"
        return f"{{ {body} }}" if body else "{}"
    raise TypeError(f"cannot format {type(node).__name__}")


def _operand(node: Node, parent: type[Node]) -> str:
    text = format_node(node)
    if isinstance(node, Union) and len(node.members) > 1:
        return f"({text})"
    if isinstance(node, Intersection) and parent is not Union and len(node.members) > 1:
        return f"({text})"
    return text


def _format_property(prop: Property) -> str:
    key = prop.key if _BARE_KEY.match(prop.key) else f'"{prop.key}"'
    marker = "?" if prop.optional else ""
    return f"{key}{marker}: {format_node(prop.value)}"
