"""ducktypes command-line interface."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Mapping, Sequence

import yaml

from . import api
from .annotation import serializer
from .annotation.ast import format_node
from .annotation.parser import parse
from .settings import DEFAULT_SETTINGS_PATH, Settings, load_settings
from .validation.reporters import build_report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ducktypes", description="Parse annotations and check values against them"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_SETTINGS_PATH if DEFAULT_SETTINGS_PATH.exists() else None,
        help="Optional path to a ducktypes settings YAML file.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        metavar="KEY=VALUE",
        help="Override settings using dot notation (e.g. aliases.Id=int).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    _add_parse_parser(subparsers)
    _add_check_parser(subparsers)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        overrides = _parse_overrides(args.overrides)
        settings = load_settings(args.config, overrides=overrides)
        if args.command == "parse":
            return _cmd_parse(args, settings)
        if args.command == "check":
            return _cmd_check(args, settings)
    except (ValueError, OSError, yaml.YAMLError) as exc:
        print(f"[ducktypes] error: {exc}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


# ---------------------------------------------------------------------------
# Sub-command wiring


def _add_parse_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("parse", help="Parse an annotation and print its AST")
    parser.add_argument("annotation", help="Annotation text, e.g. '{| id: int, tags?: string[] |}'")
    parser.add_argument(
        "--json", action="store_true", help="Emit the canonical JSON encoding of the AST"
    )


def _add_check_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("check", help="Check a value against an annotation")
    parser.add_argument("annotation", help="Annotation the value must satisfy")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--value", help="YAML or JSON literal to check (e.g. '[1, 2]')")
    source.add_argument("--file", type=Path, help="YAML or JSON document to check")
    parser.add_argument("--json", action="store_true", help="Emit the report as JSON")


# ---------------------------------------------------------------------------
# Command implementations


def _cmd_parse(args: argparse.Namespace, settings: Settings) -> int:
    node = parse(args.annotation, warn=settings.warn)
    if args.json:
        print(serializer.to_json(node))
    else:
        print(f"[ducktypes] {format_node(node)}")
    return 0


def _cmd_check(args: argparse.Namespace, settings: Settings) -> int:
    value = _load_value(args)
    validator = api.validator_for(args.annotation, settings=settings)
    result = validator.evaluate(value)
    if args.json:
        print(json.dumps(build_report(result.error, annotation=args.annotation), indent=2))
    elif result.error is None:
        print(f"[ducktypes] value is compatible with {args.annotation}")
    else:
        for message in result.error.message_list():
            print(f"[ducktypes] {message}")
    return 0 if result.ok else 1


# ---------------------------------------------------------------------------
# Helpers


def _parse_overrides(raw: Sequence[str] | None) -> Mapping[str, Any]:
    overrides: dict[str, Any] = {}
    if not raw:
        return overrides
    for item in raw:
        key, sep, value_text = item.partition("=")
        if not sep:
            raise ValueError(f"override '{item}' is missing '='")
        key_parts = [part for part in key.split(".") if part]
        if not key_parts:
            raise ValueError("override key must not be empty")
        value = _coerce_literal(value_text)
        cursor = overrides
        for part in key_parts[:-1]:
            cursor = cursor.setdefault(part, {})  # type: ignore[assignment]
            if not isinstance(cursor, dict):
                raise ValueError(f"override '{key}' conflicts with an existing value")
        cursor[key_parts[-1]] = value
    return overrides


def _coerce_literal(value: str) -> Any:
    # Only YAML scalars are coerced; annotations such as `{a: int}` stay text.
    try:
        loaded = yaml.safe_load(value)
    except yaml.YAMLError:
        return value
    if isinstance(loaded, (bool, int, float)):
        return loaded
    return value


def _load_value(args: argparse.Namespace) -> Any:
    if args.file is not None:
        return yaml.safe_load(args.file.read_text(encoding="utf-8"))
    return yaml.safe_load(args.value)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
