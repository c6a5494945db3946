"""Annotation lexer, parser and canonical AST."""

from . import ast
from .parser import parse

__all__ = ["ast", "parse"]
