"""Logging helpers for ducktypes."""

from . import logger

__all__ = ["logger"]
