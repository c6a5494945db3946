"""Exception taxonomy for annotation parsing, compilation and resolution.

Every error raised while turning annotation text into a validator derives from
:class:`AnnotationError`.  These indicate an authoring bug in the annotation (or
in a registered validator) rather than a runtime condition, so they are never
retried.  The only recoverable runtime error, raised when a value does not match
its annotation, is :class:`ducktypes.validation.incompatibility.IncompatibleTypeError`.
"""

from __future__ import annotations

from enum import IntEnum

__all__ = [
    "AnnotationConflictError",
    "AnnotationError",
    "AnnotationSyntaxError",
    "ErrorCode",
    "ForbiddenAliasError",
    "InternalConsistencyError",
    "TypeNotFoundError",
    "UnsupportedAnnotationError",
]


class ErrorCode(IntEnum):
    """Numeric error codes.

    4xx codes are recoverable by changing the client annotation or program,
    5xx codes usually require a change of the library.
    """

    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    INTERNAL = 500
    NOT_IMPLEMENTED = 501


class AnnotationError(ValueError):
    """Base class for parse, compile and resolution failures."""

    code: ErrorCode = ErrorCode.INTERNAL

    def __init__(self, message: str, *, annotation: str | None = None) -> None:
        if annotation is not None:
            super().__init__(f"{message} (in annotation {annotation!r})")
        else:
            super().__init__(message)
        self.message = message
        self.annotation = annotation

    def attach(self, annotation: str) -> "AnnotationError":
        """Record the annotation being processed unless one is already known."""

        if self.annotation is None:
            self.annotation = annotation
            self.args = (f"{self.message} (in annotation {annotation!r})",)
        return self


class AnnotationSyntaxError(AnnotationError):
    """Malformed annotation: reserved characters, unmatched groups, bad keys."""

    code = ErrorCode.FORBIDDEN


class AnnotationConflictError(AnnotationError):
    """The annotation describes an impossible AST (duplicate indexer, empty AST)."""

    code = ErrorCode.CONFLICT


class UnsupportedAnnotationError(AnnotationError, NotImplementedError):
    """Recognised syntax that is deliberately not supported (named indexers)."""

    code = ErrorCode.NOT_IMPLEMENTED


class TypeNotFoundError(AnnotationError, LookupError):
    """A leaf name is neither an alias, a primitive nor a literal."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, name: str) -> None:
        super().__init__(f"Type does not exist: `{name}`")
        self.name = name


class ForbiddenAliasError(AnnotationError):
    """Refused registration, e.g. the unsafe ``any`` alias."""

    code = ErrorCode.FORBIDDEN


class InternalConsistencyError(AnnotationError, RuntimeError):
    """An error model that violates its own structural invariants."""

    code = ErrorCode.INTERNAL
