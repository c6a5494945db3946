"""Compile annotation ASTs into validator graphs."""

from __future__ import annotations

from typing import Callable

from ..annotation import ast
from ..annotation.parser import parse
from ..exceptions import AnnotationConflictError, AnnotationSyntaxError
from ..telemetry.logger import get_logger
from .validators import (
    ArrayValidator,
    IndexerValidator,
    IntersectionValidator,
    PropertyValidator,
    ShapeValidator,
    TupleValidator,
    UnionValidator,
    Validator,
)

__all__ = ["Resolver", "compile_annotation", "compile_node"]

Resolver = Callable[[str], Validator]

LOGGER = get_logger("ducktypes.compiler")


def compile_annotation(annotation: str | ast.Node, resolve: Resolver) -> Validator:
    """Parse ``annotation`` when given as text, then compile it."""

    node = parse(annotation) if isinstance(annotation, str) else annotation
    validator = compile_node(node, resolve)
    LOGGER.debug("compiled %s into a %s validator", ast.format_node(node), validator.kind)
    return validator


def compile_node(node: ast.Node, resolve: Resolver) -> Validator:
    """Recursively build the validator for ``node``.

    Leaves are resolved through ``resolve`` once per occurrence; caching, if
    any, is the resolver's business.
    """

    if not isinstance(node, ast.Node):
        raise AnnotationConflictError("Unexpected empty AST")
    if isinstance(node, ast.Leaf):
        return resolve(node.name)
    if isinstance(node, ast.Union):
        return UnionValidator(_compile_all(node.members, resolve, "union"))
    if isinstance(node, ast.Intersection):
        return IntersectionValidator(_compile_all(node.members, resolve, "intersection"))
    if isinstance(node, ast.Array):
        return ArrayValidator(compile_node(node.element, resolve))
    if isinstance(node, ast.Tuple):
        return TupleValidator(_compile_all(node.elements, resolve, "tuple"))
    if isinstance(node, ast.Shape):
        return _compile_shape(node, resolve)
    raise AnnotationConflictError(f"Unexpected AST node {node.node_type}")


def _compile_all(nodes: tuple[ast.Node, ...], resolve: Resolver, label: str) -> tuple[Validator, ...]:
    if not nodes:
        raise AnnotationSyntaxError(f"Unexpected empty {label} while compiling type annotation")
    return tuple(compile_node(child, resolve) for child in nodes)


def _compile_shape(node: ast.Shape, resolve: Resolver) -> ShapeValidator:
    properties = tuple(
        PropertyValidator(prop.key, compile_node(prop.value, resolve), prop.optional)
        for prop in node.properties
    )
    indexer = None
    if node.indexer is not None:
        indexer = IndexerValidator(
            key=compile_node(node.indexer.key, resolve),
            value=compile_node(node.indexer.value, resolve),
        )
    return ShapeValidator(exact=node.exact, properties=properties, indexer=indexer)
