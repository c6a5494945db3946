"""Public entry points for checking values against annotations."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable, Union

from .annotation import ast
from .settings import Settings, load_settings
from .validation.compiler import compile_node
from .validation.incompatibility import IncompatibleTypeError
from .validation.registry import Registry
from .validation.validators import CallableValidator, Validator
from .validation.values import UNDEFINED, describe_value

__all__ = [
    "AnnotationLike",
    "check",
    "default_registry",
    "default_settings",
    "is_valid",
    "passthrough",
    "reset_defaults",
    "validator_for",
]

AnnotationLike = Union[str, ast.Node, Validator, Callable[[Any], Any]]


@lru_cache(maxsize=1)
def default_settings() -> Settings:
    """Settings read from ``configs/ducktypes.yaml``, loaded once."""

    return load_settings()


@lru_cache(maxsize=1)
def default_registry() -> Registry:
    """Registry shared by calls that do not supply their own."""

    return default_settings().build_registry()


def reset_defaults() -> None:
    """Forget the cached default settings and registry."""

    default_registry.cache_clear()
    default_settings.cache_clear()


def _context(registry: Registry | None, settings: Settings | None) -> tuple[Registry, Settings]:
    if settings is None:
        settings = default_settings()
        return registry or default_registry(), settings
    return registry or settings.build_registry(), settings


def validator_for(
    annotation: AnnotationLike,
    *,
    registry: Registry | None = None,
    settings: Settings | None = None,
) -> Validator:
    """Return the validator for an annotation string, AST node or callable."""

    if isinstance(annotation, Validator):
        return annotation
    registry, _ = _context(registry, settings)
    if isinstance(annotation, str):
        return registry.compile(annotation)
    if isinstance(annotation, ast.Node):
        return compile_node(annotation, registry.resolve)
    if callable(annotation):
        return CallableValidator(_annotation_name(annotation), annotation)
    raise TypeError(f"cannot build a validator from {type(annotation).__name__}")


def check(
    annotation: AnnotationLike,
    value: Any = UNDEFINED,
    *,
    registry: Registry | None = None,
    settings: Settings | None = None,
) -> bool:
    """Return ``True`` or raise :class:`IncompatibleTypeError`."""

    return validator_for(annotation, registry=registry, settings=settings)(value)


def is_valid(
    annotation: AnnotationLike,
    value: Any = UNDEFINED,
    *,
    registry: Registry | None = None,
    settings: Settings | None = None,
) -> bool:
    return validator_for(annotation, registry=registry, settings=settings).evaluate(value).ok


def passthrough(
    value: Any,
    annotation: AnnotationLike,
    default: Any = None,
    *,
    registry: Registry | None = None,
    settings: Settings | None = None,
) -> Any:
    """Return ``value`` (or ``default`` when it is ``None``) once validated.

    ``default`` is validated whenever it is given.  With validation disabled in
    the settings nothing is checked.
    """

    registry, settings = _context(registry, settings)
    if not settings.enabled:
        return value if value is not None else default

    validator = validator_for(annotation, registry=registry, settings=settings)
    name = _annotation_name(annotation)

    if default is not None:
        result = validator.evaluate(default)
        if not result.ok:
            raise IncompatibleTypeError.described(
                "Default value", f"incompatible with {name}", [result.error]
            )

    if value is None:
        return default

    result = validator.evaluate(value)
    if not result.ok:
        raise IncompatibleTypeError.described(
            f"Cannot pass {describe_value(value)}", f"incompatible with {name}", [result.error]
        )
    return value


def _annotation_name(annotation: AnnotationLike) -> str:
    if isinstance(annotation, str):
        return annotation
    if isinstance(annotation, ast.Node):
        return ast.format_node(annotation)
    if isinstance(annotation, Validator):
        return f"[{annotation.kind}]"
    return getattr(annotation, "__name__", "[anonymous]")
