"""Reporting helpers for validation outcomes."""

from __future__ import annotations

from typing import Any, Dict, Optional

from .incompatibility import IncompatibleTypeError

__all__ = ["build_report", "describe_error"]


def build_report(
    error: Optional[IncompatibleTypeError], *, annotation: str | None = None
) -> Dict[str, Any]:
    """Convert a validation outcome into a JSON-friendly dictionary.

    ``error`` is ``None`` for a value that passed.
    """

    payload: Dict[str, Any] = {"status": "ok" if error is None else "incompatible"}
    if annotation is not None:
        payload["annotation"] = annotation
    if error is None:
        return payload
    messages = error.message_list()
    payload["message_count"] = len(messages)
    payload["messages"] = messages
    payload["error"] = describe_error(error)
    return payload


def describe_error(error: IncompatibleTypeError) -> Dict[str, Any]:
    """Structural view of ``error`` and its children."""

    summary: Dict[str, Any] = {
        "given": error.given,
        "unexpected": str(error.unexpected),
        "message": error.message,
    }
    if error.kind is not None:
        summary["kind"] = error.kind.name.lower()
    if error.children:
        summary["children"] = {
            str(key): describe_error(child) for key, child in error.children.items()
        }
    return summary
