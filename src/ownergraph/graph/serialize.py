"""Diagram Serialization - Canonical JSON form of the ownership graph.

The export shape is ``{"nodes": [...], "edges": [...]}`` with camelCase
keys in declared field order. Absent optional fields are omitted. The
format round-trips through ``DiagramStore.load_diagram``.
"""

from __future__ import annotations

import json
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable

from ownergraph.graph.EntityNode import NODE_FIELDS, FieldSpec
from ownergraph.graph.relations import EDGE_FIELDS

if TYPE_CHECKING:
    from ownergraph.graph.EntityNode import EntityNode
    from ownergraph.graph.mutations import MutationEntry
    from ownergraph.graph.relations import OwnershipEdge


def _to_json_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, list):
        return list(value)
    return value


def _serialize_record(record: Any, specs: tuple[FieldSpec, ...]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for spec in specs:
        value = getattr(record, spec.attr)
        if value is None or (spec.kind == "str_list" and not value):
            continue
        result[spec.wire] = _to_json_value(value)
    return result


def serialize_node(node: EntityNode) -> dict[str, Any]:
    """Serialize an EntityNode to a JSON-compatible dict."""
    return _serialize_record(node, NODE_FIELDS)


def serialize_edge(edge: OwnershipEdge) -> dict[str, Any]:
    """Serialize an OwnershipEdge to a JSON-compatible dict."""
    return _serialize_record(edge, EDGE_FIELDS)


def serialize_diagram(
    nodes: Iterable[EntityNode], edges: Iterable[OwnershipEdge]
) -> dict[str, Any]:
    """Serialize a graph to the canonical {"nodes", "edges"} dict."""
    return {
        "nodes": [serialize_node(n) for n in nodes],
        "edges": [serialize_edge(e) for e in edges],
    }


def export_diagram(nodes: Iterable[EntityNode], edges: Iterable[OwnershipEdge]) -> str:
    """Pretty-printed canonical JSON, as used for download and inspection."""
    return json.dumps(serialize_diagram(nodes, edges), indent=2, ensure_ascii=False)


def serialize_mutation_entry(entry: MutationEntry) -> dict[str, Any]:
    """Serialize a mutation log entry for API responses."""
    return {
        "id": entry.id,
        "operation": entry.operation,
        "target_id": entry.target_id,
        "before_state": entry.before_state,
        "after_state": entry.after_state,
        "timestamp": entry.timestamp.isoformat(),
    }


__all__ = [
    "serialize_node",
    "serialize_edge",
    "serialize_diagram",
    "export_diagram",
    "serialize_mutation_entry",
]
