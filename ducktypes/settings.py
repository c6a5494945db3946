"""Runtime settings for validation and the default registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .annotation.normalizer import WarningCallback
from .telemetry.logger import get_logger
from .utils.config import load_config
from .validation.registry import Registry

__all__ = ["DEFAULT_SETTINGS_PATH", "Settings", "load_settings"]

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parents[1] / "configs" / "ducktypes.yaml"

LOGGER = get_logger("ducktypes.normalizer")


def _deep_update(base: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``updates`` recursively merged."""

    result: dict[str, Any] = {key: value for key, value in base.items()}
    for key, value in updates.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = _deep_update(result[key], value)
        else:
            result[key] = value
    return result


def _flag(payload: Mapping[str, Any], key: str) -> bool:
    value = payload.get(key, True)
    if not isinstance(value, bool):
        raise ValueError(f"`{key}` must be a boolean, received {value!r}")
    return value


def _log_warning(message: str) -> None:
    LOGGER.warning(message)


@dataclass(slots=True)
class Settings:
    """Validation switches and configured annotation aliases."""

    enabled: bool = True
    warn_about_exact_shape_indexers: bool = True
    aliases: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "Settings":
        payload = dict(data or {})
        raw_aliases = payload.get("aliases")
        aliases: dict[str, str] = {}
        if isinstance(raw_aliases, Mapping):
            for name, annotation in raw_aliases.items():
                if not isinstance(annotation, str):
                    raise ValueError(f"alias `{name}` must map to an annotation string")
                aliases[str(name)] = annotation
        elif raw_aliases is not None:
            raise ValueError("aliases must be a mapping of names to annotations")
        return cls(
            enabled=_flag(payload, "enabled"),
            warn_about_exact_shape_indexers=_flag(payload, "warn_about_exact_shape_indexers"),
            aliases=aliases,
        )

    def merge(self, overrides: Mapping[str, Any] | None) -> "Settings":
        if not overrides:
            return self
        return Settings.from_mapping(_deep_update(self.to_dict(), overrides))

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "warn_about_exact_shape_indexers": self.warn_about_exact_shape_indexers,
            "aliases": dict(self.aliases),
        }

    @property
    def warn(self) -> WarningCallback | None:
        """Callback routing parser diagnostics to the ``ducktypes`` logger."""

        return _log_warning if self.warn_about_exact_shape_indexers else None

    def build_registry(self) -> Registry:
        """Return a new registry preloaded with :attr:`aliases`.

        Aliases are registered lazily so they may refer to each other in any
        order; each one is compiled on first use.
        """

        registry = Registry(warn=self.warn)
        for name, annotation in self.aliases.items():
            registry.register_lazy(name, lambda annotation=annotation: annotation)
        return registry


def load_settings(
    path: str | Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Return :class:`Settings` from ``path`` (or the bundled file) and overrides."""

    data: Mapping[str, Any] | None = None
    if path is not None:
        data = load_config(path)
    elif DEFAULT_SETTINGS_PATH.exists():
        data = load_config(DEFAULT_SETTINGS_PATH)
    return Settings.from_mapping(data).merge(overrides)
