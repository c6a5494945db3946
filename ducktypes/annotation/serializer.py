"""Canonical JSON serializer for annotation ASTs.

The serializer produces deterministic output so that parsed annotations can be
stored as golden files or used as cache keys.  Each node, property and indexer
receives a content-addressed identifier derived from its structural JSON
encoding; the deserializer recomputes the hash to guarantee integrity.
"""

from __future__ import annotations

import hashlib
import json
from collections import OrderedDict
from dataclasses import fields
from typing import Any, Mapping

from . import ast


def to_json(node: ast.Node, *, ensure_ascii: bool = True) -> str:
    """Serialize ``node`` into canonical JSON."""

    payload = _serialize_node(node)
    return json.dumps(payload, indent=2, separators=(",", ": "), ensure_ascii=ensure_ascii)


def from_json(payload: str) -> ast.Node:
    """Deserialize JSON back into an AST node, validating all hashes."""

    raw = json.loads(payload)
    if not isinstance(raw, Mapping):
        raise ValueError("Serialized annotation must be a JSON object")
    return _deserialize_node(raw)


# ---------------------------------------------------------------------------
# Serialization helpers


def _serialize_node(node: ast.Node) -> OrderedDict[str, Any]:
    data: OrderedDict[str, Any] = OrderedDict()
    data["type"] = node.node_type
    for field_info in fields(node):
        data[field_info.name] = _serialize_generic(getattr(node, field_info.name))
    data["id"] = _hash_payload(data)
    return data


def _serialize_generic(value: Any) -> Any:
    if isinstance(value, ast.Node):
        return _serialize_node(value)
    if isinstance(value, ast.Property):
        payload = OrderedDict(
            [
                ("key", value.key),
                ("value", _serialize_node(value.value)),
                ("optional", value.optional),
            ]
        )
        payload["id"] = _hash_payload(payload)
        return payload
    if isinstance(value, ast.Indexer):
        payload = OrderedDict(
            [
                ("key", _serialize_node(value.key)),
                ("value", _serialize_node(value.value)),
            ]
        )
        payload["id"] = _hash_payload(payload)
        return payload
    if isinstance(value, tuple):
        return [_serialize_generic(item) for item in value]
    return value


def _hash_payload(data: Mapping[str, Any]) -> str:
    normalized = json.dumps(
        _strip_ids(data), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:16]


def _strip_ids(data: Any) -> Any:
    if isinstance(data, Mapping):
        return {key: _strip_ids(value) for key, value in data.items() if key != "id"}
    if isinstance(data, list):
        return [_strip_ids(item) for item in data]
    return data


# ---------------------------------------------------------------------------
# Deserialization helpers


NODE_TYPES: dict[str, type[ast.Node]] = {
    cls.__name__: cls
    for cls in (ast.Leaf, ast.Union, ast.Intersection, ast.Array, ast.Tuple, ast.Shape)
}


def _deserialize_node(data: Mapping[str, Any]) -> ast.Node:
    _verify_hash(data)
    node_type = data.get("type")
    if node_type not in NODE_TYPES:
        raise ValueError(f"Unknown node type '{node_type}'")
    cls = NODE_TYPES[node_type]
    if cls is ast.Leaf:
        return ast.Leaf(name=str(data["name"]))
    if cls is ast.Array:
        return ast.Array(element=_deserialize_node(data["element"]))
    if cls in (ast.Union, ast.Intersection):
        return cls(members=tuple(_deserialize_node(item) for item in data["members"]))
    if cls is ast.Tuple:
        return ast.Tuple(elements=tuple(_deserialize_node(item) for item in data["elements"]))
    indexer = data.get("indexer")
    return ast.Shape(
        exact=bool(data["exact"]),
        properties=tuple(_deserialize_property(item) for item in data.get("properties", ())),
        indexer=_deserialize_indexer(indexer) if indexer is not None else None,
    )


def _deserialize_property(data: Mapping[str, Any]) -> ast.Property:
    _verify_hash(data)
    return ast.Property(
        key=str(data["key"]),
        value=_deserialize_node(data["value"]),
        optional=bool(data.get("optional", False)),
    )


def _deserialize_indexer(data: Mapping[str, Any]) -> ast.Indexer:
    _verify_hash(data)
    return ast.Indexer(key=_deserialize_node(data["key"]), value=_deserialize_node(data["value"]))


def _verify_hash(data: Mapping[str, Any]) -> None:
    if not isinstance(data, Mapping):
        raise ValueError("Serialized entry must be a JSON object")
    stored = data.get("id")
    if stored is None:
        raise ValueError("Serialized node is missing 'id'")
    computed = _hash_payload(data)
    if stored != computed:
        raise ValueError("Serialized node failed integrity check")


__all__ = ["NODE_TYPES", "from_json", "to_json"]
