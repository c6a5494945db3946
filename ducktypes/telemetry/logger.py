"""Logging helpers shared by the parser, compiler and registry."""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from threading import RLock
from typing import Any, Mapping

import yaml

_CONFIG_LOCK = RLock()
_CONFIGURED = False

CONFIG_PATH = Path(__file__).resolve().parents[2] / "configs" / "logging.yaml"

_DEFAULT_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
            "formatter": "standard",
        }
    },
    "loggers": {
        "ducktypes": {
            "level": "WARNING",
            "handlers": ["console"],
            "propagate": False,
        }
    },
}

_SECTIONS = ("version", "disable_existing_loggers", "formatters", "handlers", "root", "loggers")


def _load_config(path: Path = CONFIG_PATH) -> dict[str, Any]:
    if not path.exists():
        return dict(_DEFAULT_CONFIG)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:  # pragma: no cover - broken config files
        logging.getLogger("ducktypes.telemetry").warning("failed to parse %s: %s", path.name, exc)
        return dict(_DEFAULT_CONFIG)
    if not isinstance(data, Mapping):
        return dict(_DEFAULT_CONFIG)
    merged = dict(_DEFAULT_CONFIG)
    merged.update({key: value for key, value in data.items() if key in _SECTIONS})
    return merged


def configure(path: Path | None = None, *, force: bool = False) -> None:
    """Configure the logging subsystem once; ``force`` reapplies the config."""

    global _CONFIGURED
    with _CONFIG_LOCK:
        if _CONFIGURED and not force:
            return
        logging.config.dictConfig(_load_config(path or CONFIG_PATH))
        _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger configured via ``configs/logging.yaml``."""

    if not isinstance(name, str) or not name:
        raise ValueError("logger name must be a non-empty string")
    configure()
    return logging.getLogger(name)


__all__ = ["CONFIG_PATH", "configure", "get_logger"]
