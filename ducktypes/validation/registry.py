"""Type registry resolving leaf names into validators.

A :class:`Registry` is the resolver handed to the compiler.  Names are looked
up in this order: registered aliases, lazy resolvers, primitive keywords and
finally literals.  Aliases may be validator objects, plain one-argument
callables or annotation strings; annotation strings and lazy resolvers are
compiled at most once per name.
"""

from __future__ import annotations

import inspect
from threading import RLock
from typing import Any, Callable, Iterable, Mapping, Union

from ..annotation.normalizer import WarningCallback
from ..annotation.parser import parse
from ..exceptions import ForbiddenAliasError, TypeNotFoundError
from ..telemetry.logger import get_logger
from .compiler import compile_node
from .primitives import PRIMITIVES, literal, primitive
from .validators import CallableValidator, Validator

__all__ = ["AliasType", "Registry"]

AliasType = Union[Validator, Callable[[Any], Any], str]

LOGGER = get_logger("ducktypes.registry")

FORBIDDEN_ALIASES = frozenset({"any"})


class Registry:
    """Thread-safe mapping from type names to validators."""

    def __init__(
        self,
        aliases: Mapping[str, AliasType] | None = None,
        *,
        warn: WarningCallback | None = None,
    ) -> None:
        self._lock = RLock()
        self._types: dict[str, Validator] = {}
        self._lazy: dict[str, Callable[[], AliasType]] = {}
        self._annotations: dict[str, Validator] = {}
        self._warn = warn
        for name, type_ in (aliases or {}).items():
            self.register(name, type_)

    # ------------------------------------------------------------------
    # Registration

    def register(self, name: str, type_: AliasType) -> Validator:
        """Register ``type_`` under ``name`` and return its validator."""

        _assert_allowed(name)
        validator = self._to_validator(name, type_)
        with self._lock:
            if name in self._types or name in PRIMITIVES:
                LOGGER.debug("alias `%s` overrides an existing type", name)
            self._types[name] = validator
            self._lazy.pop(name, None)
        return validator

    def register_lazy(self, name: str, factory: Callable[[], AliasType]) -> None:
        """Defer building ``name`` until it is first resolved."""

        _assert_allowed(name)
        if not callable(factory):
            raise TypeError("lazy resolver must be callable")
        with self._lock:
            self._types.pop(name, None)
            self._lazy[name] = factory

    def compile(self, annotation: str) -> Validator:
        """Compile ``annotation`` against this registry, caching by text."""

        with self._lock:
            cached = self._annotations.get(annotation)
            if cached is not None:
                return cached
            validator = compile_node(parse(annotation, warn=self._warn), self.resolve)
            self._annotations[annotation] = validator
            LOGGER.debug("compiled annotation %r into a %s validator", annotation, validator.kind)
            return validator

    # ------------------------------------------------------------------
    # Resolution

    def resolve(self, name: str) -> Validator:
        """Return the validator for ``name`` or raise :class:`TypeNotFoundError`."""

        with self._lock:
            validator = self._types.get(name)
            if validator is not None:
                return validator
            # Absent while it builds; restored if building fails.
            factory = self._lazy.pop(name, None)
            if factory is not None:
                LOGGER.debug("building lazy type `%s`", name)
                try:
                    return self.register(name, factory())
                except Exception:
                    self._lazy.setdefault(name, factory)
                    raise
        validator = primitive(name) or literal(name)
        if validator is None:
            raise TypeNotFoundError(name)
        return validator

    def exists(self, name: str) -> bool:
        with self._lock:
            if name in self._types or name in self._lazy:
                return True
        return primitive(name) is not None or literal(name) is not None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.exists(name)

    def names(self) -> Iterable[str]:
        """Registered and lazily registered alias names, sorted."""

        with self._lock:
            return sorted({*self._types, *self._lazy})

    # ------------------------------------------------------------------
    # Helpers

    def _to_validator(self, name: str, type_: AliasType) -> Validator:
        if isinstance(type_, Validator):
            return type_
        if isinstance(type_, str):
            return self.compile(type_)
        if callable(type_):
            _assert_unary(name, type_)
            return CallableValidator(name, type_)
        raise TypeError(
            f"type `{name}` must be a validator, a callable or an annotation, "
            f"received {type(type_).__name__}"
        )


def _assert_allowed(name: str) -> None:
    if not isinstance(name, str) or not name:
        raise TypeError("type name must be a non-empty string")
    if name in FORBIDDEN_ALIASES:
        raise ForbiddenAliasError(f"Using `{name}` is unsafe and should be avoided whenever possible")


def _assert_unary(name: str, function: Callable[..., Any]) -> None:
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        # Some builtins expose no signature; they are accepted as is.
        return
    positional = [
        parameter
        for parameter in signature.parameters.values()
        if parameter.kind
        in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    variadic = any(
        parameter.kind is inspect.Parameter.VAR_POSITIONAL
        or (
            parameter.kind is inspect.Parameter.KEYWORD_ONLY
            and parameter.default is inspect.Parameter.empty
        )
        for parameter in signature.parameters.values()
    )
    if len(positional) != 1 or variadic:
        raise ForbiddenAliasError(
            f"Expecting `{name}` to be a callable accepting exactly one argument"
        )
