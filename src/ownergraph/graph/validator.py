"""Payload validation - Schema-check diagrams before they replace the store.

Validates externally supplied payloads in two shapes:
- Diagram form: {"nodes": [...], "edges": [...]}
- Flat form: [{"id": ..., "parentId": ..., "ownershipPercentage": ...}, ...]

Every violation is collected, not just the first, so a rejected load can
name all offending field paths at once. Validation is pure: nothing here
touches a store.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from ownergraph.errors import DiagramValidationError
from ownergraph.graph.EntityNode import NODE_FIELDS, EntityNode, EntityStatus, FieldSpec
from ownergraph.graph.relations import EDGE_FIELDS, OwnershipEdge

_KIND_NAMES = {
    "str": "a string",
    "number": "a number",
    "bool": "a boolean",
    "str_list": "a list of strings",
    "date": "an ISO date string (YYYY-MM-DD)",
    "status": "one of " + ", ".join(repr(s.value) for s in EntityStatus),
}


@dataclass(frozen=True)
class FieldViolation:
    """A single schema violation.

    Attributes:
        path: Dotted path to the offending value (e.g. "nodes[2].label").
        message: What is wrong with it.
    """

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass
class FlatEntity:
    """One record of the flat parent-reference form."""

    node: EntityNode
    parent_id: str | None = None
    ownership_percentage: float | None = None


@dataclass
class ValidationResult:
    """Outcome of validating a payload.

    Exactly one of the payload fields is populated on success; on failure
    ``violations`` is non-empty and the payload fields are left empty.
    """

    nodes: list[EntityNode] = field(default_factory=list)
    edges: list[OwnershipEdge] = field(default_factory=list)
    entities: list[FlatEntity] = field(default_factory=list)
    violations: list[FieldViolation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    def summary(self) -> str:
        """Human-readable multi-line description of the violations."""
        if self.ok:
            return "Payload is valid"
        lines = [f"Invalid diagram: {len(self.violations)} problem(s)"]
        lines.extend(f"  {v}" for v in self.violations)
        return "\n".join(lines)

    def raise_for_violations(self, source: str = "") -> None:
        """Raise DiagramValidationError if any violation was found."""
        if self.violations:
            raise DiagramValidationError(self.violations, source=source)


def _coerce(spec: FieldSpec, value: Any) -> tuple[Any, str | None]:
    """Check a single value against its declared kind.

    Returns:
        (normalized value, None) on success, or (None, message) on failure.
    """
    kind = spec.kind
    if kind == "str" and isinstance(value, str):
        return value, None
    if kind == "number" and isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value), None
    if kind == "bool" and isinstance(value, bool):
        return value, None
    if kind == "str_list" and isinstance(value, list):
        if all(isinstance(item, str) for item in value):
            return list(value), None
    if kind == "date":
        if isinstance(value, date) and not isinstance(value, datetime):
            return value, None
        if isinstance(value, str):
            try:
                return date.fromisoformat(value), None
            except ValueError:
                try:
                    return datetime.fromisoformat(value).date(), None
                except ValueError:
                    pass
    if kind == "status":
        if isinstance(value, EntityStatus):
            return value, None
        if isinstance(value, str):
            try:
                return EntityStatus(value), None
            except ValueError:
                pass
    return None, f"expected {_KIND_NAMES[kind]}, got {value!r}"


def _cleared(spec: FieldSpec) -> Any:
    return [] if spec.kind == "str_list" else None


def _validate_fields(
    data: Mapping[str, Any],
    specs: tuple[FieldSpec, ...],
    path: str,
    *,
    partial: bool = False,
    optional: frozenset[str] = frozenset(),
) -> tuple[dict[str, Any], list[FieldViolation]]:
    """Validate the declared fields of one record.

    Keys outside the declared field set are ignored. A None value on an
    optional field is treated as absent, except with ``partial`` where it
    clears the field.

    Args:
        data: The raw record.
        specs: Declared fields for the record type.
        path: Path prefix for violations.
        partial: If True, required fields may be absent (patch semantics).
        optional: Wire names to treat as optional even if declared required.

    Returns:
        Tuple of (attribute-name -> normalized value, violations).
    """
    values: dict[str, Any] = {}
    violations: list[FieldViolation] = []

    for spec in specs:
        required = spec.required and spec.wire not in optional
        if spec.wire not in data or (data[spec.wire] is None and not required):
            if required and not partial:
                violations.append(FieldViolation(f"{path}.{spec.wire}", "is required"))
            elif partial and spec.wire in data:
                values[spec.attr] = _cleared(spec)
            continue
        value, error = _coerce(spec, data[spec.wire])
        if error:
            violations.append(FieldViolation(f"{path}.{spec.wire}", error))
        else:
            values[spec.attr] = value

    return values, violations


def validate_attributes(
    values: Mapping[str, Any],
    specs: tuple[FieldSpec, ...],
    path: str,
) -> tuple[dict[str, Any], list[FieldViolation]]:
    """Type-check attribute-keyed values from Python callers.

    The same field table and coercion as the wire path, keyed by attribute
    name instead. Violation paths still use wire names. None clears an
    optional field and is a violation on a required one.

    Returns:
        Tuple of (attribute-name -> normalized value, violations).
    """
    by_attr = {spec.attr: spec for spec in specs}
    normalized: dict[str, Any] = {}
    violations: list[FieldViolation] = []

    for attr, value in values.items():
        spec = by_attr.get(attr)
        if spec is None:
            violations.append(FieldViolation(f"{path}.{attr}", "unknown field"))
            continue
        if value is None:
            if spec.required:
                violations.append(FieldViolation(f"{path}.{spec.wire}", "is required"))
            else:
                normalized[attr] = _cleared(spec)
            continue
        coerced, error = _coerce(spec, value)
        if error:
            violations.append(FieldViolation(f"{path}.{spec.wire}", error))
        else:
            normalized[attr] = coerced

    return normalized, violations


def check_record(record: Any, specs: tuple[FieldSpec, ...], path: str) -> list[FieldViolation]:
    """Type-check a constructed node or edge in place.

    On success the record's values are replaced by their normalized forms
    (ints become floats, ISO strings become dates).
    """
    values, violations = validate_attributes(
        {spec.attr: getattr(record, spec.attr) for spec in specs}, specs, path
    )
    if not violations:
        for attr, value in values.items():
            setattr(record, attr, value)
    return violations


def validate_node_fields(
    data: Any,
    path: str = "node",
    *,
    partial: bool = False,
) -> tuple[dict[str, Any], list[FieldViolation]]:
    """Validate a node record (or, with ``partial``, a field patch).

    Returns:
        Tuple of (attribute-name -> value, violations).
    """
    if not isinstance(data, Mapping):
        return {}, [FieldViolation(path, f"expected an object, got {type(data).__name__}")]
    return _validate_fields(data, NODE_FIELDS, path, partial=partial)


def validate_edge_fields(data: Any, path: str = "edge") -> tuple[dict[str, Any], list[FieldViolation]]:
    """Validate an edge record."""
    if not isinstance(data, Mapping):
        return {}, [FieldViolation(path, f"expected an object, got {type(data).__name__}")]
    return _validate_fields(data, EDGE_FIELDS, path)


def _check_unique(
    records: list[Any], section: str, violations: list[FieldViolation]
) -> None:
    first_seen: dict[str, int] = {}
    for i, raw in enumerate(records):
        if not isinstance(raw, Mapping):
            continue
        record_id = raw.get("id")
        if not isinstance(record_id, str):
            continue
        if record_id in first_seen:
            violations.append(
                FieldViolation(
                    f"{section}[{i}].id",
                    f"duplicate id {record_id!r} (first used at {section}[{first_seen[record_id]}])",
                )
            )
        else:
            first_seen[record_id] = i


def validate_diagram(payload: Any) -> ValidationResult:
    """Validate a {"nodes": [...], "edges": [...]} payload.

    Checks field types, id uniqueness within nodes and within edges, and
    that every edge endpoint names a node in the same payload.

    Args:
        payload: Untyped data, typically parsed JSON.

    Returns:
        ValidationResult with typed nodes and edges, or violations.
    """
    if not isinstance(payload, Mapping):
        return ValidationResult(
            violations=[FieldViolation("$", "expected an object with 'nodes' and 'edges'")]
        )

    violations: list[FieldViolation] = []
    raw_nodes = payload.get("nodes")
    raw_edges = payload.get("edges")
    if not isinstance(raw_nodes, list):
        violations.append(FieldViolation("nodes", "expected a list"))
        raw_nodes = []
    if not isinstance(raw_edges, list):
        violations.append(FieldViolation("edges", "expected a list"))
        raw_edges = []

    nodes: list[EntityNode] = []
    for i, raw in enumerate(raw_nodes):
        values, errors = validate_node_fields(raw, f"nodes[{i}]")
        violations.extend(errors)
        if not errors:
            nodes.append(EntityNode(**values))
    _check_unique(raw_nodes, "nodes", violations)

    node_ids = {n.id for n in nodes}
    edges: list[OwnershipEdge] = []
    for i, raw in enumerate(raw_edges):
        values, errors = validate_edge_fields(raw, f"edges[{i}]")
        violations.extend(errors)
        if errors:
            continue
        for endpoint in ("source", "target"):
            if values[endpoint] not in node_ids:
                violations.append(
                    FieldViolation(f"edges[{i}].{endpoint}", f"unknown node {values[endpoint]!r}")
                )
        edges.append(OwnershipEdge(**values))
    _check_unique(raw_edges, "edges", violations)

    if violations:
        return ValidationResult(violations=violations)
    return ValidationResult(nodes=nodes, edges=edges)


def validate_entity_list(records: Any) -> ValidationResult:
    """Validate the flat parent-reference form.

    Each record carries the node fields (label optional, defaulting to
    the id) plus an optional ``parentId`` and ``ownershipPercentage``.

    Args:
        records: Untyped data, typically a parsed JSON array.

    Returns:
        ValidationResult with ``entities`` populated, or violations.
    """
    if not isinstance(records, list):
        return ValidationResult(violations=[FieldViolation("$", "expected a list of entities")])

    violations: list[FieldViolation] = []
    entities: list[FlatEntity] = []
    parent_spec = FieldSpec("parent_id", "parentId", "str")
    stake_spec = FieldSpec("ownership_percentage", "ownershipPercentage", "number")

    for i, raw in enumerate(records):
        path = f"[{i}]"
        if not isinstance(raw, Mapping):
            violations.append(FieldViolation(path, f"expected an object, got {type(raw).__name__}"))
            continue
        values, errors = _validate_fields(
            raw, NODE_FIELDS, path, optional=frozenset({"label"})
        )
        extra, extra_errors = _validate_fields(raw, (parent_spec, stake_spec), path)
        errors.extend(extra_errors)
        violations.extend(errors)
        if not errors:
            entities.append(
                FlatEntity(
                    node=EntityNode(**values),
                    parent_id=extra.get("parent_id"),
                    ownership_percentage=extra.get("ownership_percentage"),
                )
            )
    _check_unique(records, "", violations)

    known = {e.node.id for e in entities}
    for i, entity in enumerate(entities):
        if entity.parent_id is not None and entity.parent_id not in known:
            violations.append(
                FieldViolation(
                    f"[{_index_of(records, entity.node.id, i)}].parentId",
                    f"unknown parent {entity.parent_id!r}",
                )
            )

    if violations:
        return ValidationResult(violations=violations)
    return ValidationResult(entities=entities)


def _index_of(records: list[Any], record_id: str, default: int) -> int:
    for i, raw in enumerate(records):
        if isinstance(raw, Mapping) and raw.get("id") == record_id:
            return i
    return default


__all__ = [
    "FieldViolation",
    "FlatEntity",
    "ValidationResult",
    "validate_node_fields",
    "validate_attributes",
    "check_record",
    "validate_edge_fields",
    "validate_diagram",
    "validate_entity_list",
]
