"""Parse annotation strings into canonical ASTs."""

from __future__ import annotations

from ..exceptions import AnnotationError
from . import ast
from .grouping import build_tree
from .lexer import tokenize
from .normalizer import WarningCallback, normalize

__all__ = ["parse"]


def parse(annotation: str, *, warn: WarningCallback | None = None) -> ast.Node:
    """Parse ``annotation`` into its canonical AST.

    Parsing is a pure function of the annotation text: parsing the same text
    twice yields structurally equal trees.
    """

    try:
        return normalize(build_tree(tokenize(annotation)), warn=warn)
    except AnnotationError as exc:
        raise exc.attach(annotation)
