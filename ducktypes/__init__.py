"""Flow-style structural type annotations for Python values."""

from .annotation import ast, parse
from .api import check, is_valid, passthrough, validator_for
from .exceptions import (
    AnnotationConflictError,
    AnnotationError,
    AnnotationSyntaxError,
    ForbiddenAliasError,
    TypeNotFoundError,
    UnsupportedAnnotationError,
)
from .settings import Settings, load_settings
from .validation import UNDEFINED, IncompatibleTypeError, Registry, Validator

__version__ = "0.1.0"

__all__ = [
    "UNDEFINED",
    "AnnotationConflictError",
    "AnnotationError",
    "AnnotationSyntaxError",
    "ForbiddenAliasError",
    "IncompatibleTypeError",
    "Registry",
    "Settings",
    "TypeNotFoundError",
    "UnsupportedAnnotationError",
    "Validator",
    "ast",
    "check",
    "is_valid",
    "load_settings",
    "parse",
    "passthrough",
    "validator_for",
]
