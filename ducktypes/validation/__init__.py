"""Validator compilation, resolution and incompatibility errors."""

from .compiler import compile_annotation, compile_node
from .incompatibility import ErrorKind, IncompatibleTypeError, flatten
from .registry import Registry
from .validators import ValidationResult, Validator
from .values import UNDEFINED

__all__ = [
    "UNDEFINED",
    "ErrorKind",
    "IncompatibleTypeError",
    "Registry",
    "ValidationResult",
    "Validator",
    "compile_annotation",
    "compile_node",
    "flatten",
]
