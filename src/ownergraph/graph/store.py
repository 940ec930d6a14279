"""Diagram Store - Canonical owner of the ownership graph.

This module provides the single mutable state object of the engine:
the node and edge lists, the selection cursor, the active filters, the
view flags, the sandbox session and the mutation log. Consumers that
only render should be handed a ``DiagramView`` instead.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Sequence

from ownergraph.errors import OwnershipCycleError
from ownergraph.graph.EntityNode import NODE_FIELDS, EntityNode
from ownergraph.graph.mutations import (
    DanglingEdge,
    MutationEntry,
    MutationLog,
    MutationOutcome,
    MutationResult,
)
from ownergraph.graph.ownership import (
    apply_effective_ownership,
    find_roots,
    propagate_ownership,
)
from ownergraph.graph.paths import trace_path_to_root
from ownergraph.graph.relations import EDGE_FIELDS, OwnershipEdge, edge_id_for, stake_label
from ownergraph.graph.sandbox import SandboxSession
from ownergraph.graph.serialize import export_diagram, serialize_edge, serialize_node
from ownergraph.graph.validator import (
    FieldViolation,
    ValidationResult,
    check_record,
    validate_attributes,
    validate_diagram,
    validate_edge_fields,
    validate_entity_list,
    validate_node_fields,
)
from ownergraph.graph.views import (
    DEFAULT_DUE_SOON_DAYS,
    ActiveFilters,
    ColoringMode,
    DataOverlay,
    LegendEntry,
    ViewMode,
    filter_edges,
    filter_nodes,
    legend,
    search_nodes,
)

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Outcome of replacing the graph from an external payload.

    Attributes:
        success: True if the store now holds the new graph.
        violations: Every schema violation, when rejected.
        message: Human-readable summary for the user.
    """

    success: bool
    violations: list[FieldViolation] = field(default_factory=list)
    message: str = ""

    def __bool__(self) -> bool:
        return self.success


def _node_from_state(data: dict[str, Any]) -> EntityNode:
    values, _ = validate_node_fields(data)
    return EntityNode(**values)


def _edge_from_state(data: dict[str, Any]) -> OwnershipEdge:
    values, _ = validate_edge_fields(data)
    return OwnershipEdge(**values)


@dataclass
class DiagramStore:
    """Container for the live ownership graph and its editing state.

    Every mutator returns a MutationResult and never raises for unknown
    ids, duplicates or sandbox misuse. Loads return a LoadResult and leave
    the graph untouched when rejected.

    Attributes:
        on_cycle: Ownership cycle policy ("skip" or "reject").
        due_soon_days: Window for the "Due Soon" compliance status.
        view_mode: Diagram or list presentation (consumed by the UI).
        coloring_mode: Node coloring scheme for the legend.
        data_overlay: Which metadata overlay the UI shows.
    """

    on_cycle: str = "skip"
    due_soon_days: int = DEFAULT_DUE_SOON_DAYS
    view_mode: ViewMode = ViewMode.DIAGRAM
    coloring_mode: ColoringMode = ColoringMode.TYPE
    data_overlay: DataOverlay = DataOverlay.OWNERSHIP

    # Internal storage (prefixed) - excluded from constructor
    _nodes: list[EntityNode] = field(default_factory=list, init=False)
    _edges: list[OwnershipEdge] = field(default_factory=list, init=False)
    _selected_id: str | None = field(default=None, init=False)
    _highlighted: frozenset[str] = field(default_factory=frozenset, init=False)
    _filters: ActiveFilters = field(default_factory=ActiveFilters, init=False)
    _sandbox: SandboxSession = field(default_factory=SandboxSession, init=False, repr=False)
    _sandbox_log_mark: int = field(default=0, init=False, repr=False)
    _mutation_log: MutationLog = field(default_factory=MutationLog, init=False, repr=False)
    _revision: int = field(default=0, init=False)

    # ─────────────────────────────────────────────────────────────────────────
    # Read accessors
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def nodes(self) -> tuple[EntityNode, ...]:
        return tuple(self._nodes)

    @property
    def edges(self) -> tuple[OwnershipEdge, ...]:
        return tuple(self._edges)

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def highlighted_path(self) -> frozenset[str]:
        return self._highlighted

    @property
    def filters(self) -> ActiveFilters:
        return self._filters

    @property
    def sandbox_active(self) -> bool:
        return self._sandbox.active

    @property
    def mutation_log(self) -> MutationLog:
        """Access the mutation log for this store."""
        return self._mutation_log

    @property
    def revision(self) -> int:
        """Counter bumped on every state change, for host change detection."""
        return self._revision

    def find_node(self, node_id: str) -> EntityNode | None:
        for node in self._nodes:
            if node.id == node_id:
                return node
        return None

    def find_edge(self, edge_id: str) -> OwnershipEdge | None:
        for edge in self._edges:
            if edge.id == edge_id:
                return edge
        return None

    def node_count(self) -> int:
        return len(self._nodes)

    def edge_count(self) -> int:
        return len(self._edges)

    # ─────────────────────────────────────────────────────────────────────────
    # Derived views
    # ─────────────────────────────────────────────────────────────────────────

    def selected_node(self) -> EntityNode | None:
        if self._selected_id is None:
            return None
        return self.find_node(self._selected_id)

    def filtered_nodes(self) -> list[EntityNode]:
        """Nodes matching every active filter criterion."""
        return filter_nodes(self._nodes, self._filters)

    def filtered_edges(self) -> list[OwnershipEdge]:
        """Edges whose endpoints both survive the filters."""
        return filter_edges(self._edges, self.filtered_nodes())

    def search(self, term: str) -> list[EntityNode]:
        return search_nodes(self._nodes, term)

    def legend(self, mode: ColoringMode | None = None, today: date | None = None) -> list[LegendEntry]:
        """Legend for the filtered nodes under a coloring mode."""
        return legend(
            self.filtered_nodes(),
            mode or self.coloring_mode,
            today=today,
            due_soon_days=self.due_soon_days,
        )

    def roots(self) -> list[str]:
        return find_roots(self._nodes, self._edges)

    def dangling_edges(self) -> list[DanglingEdge]:
        """Edges naming a node that does not exist (raw insertion only)."""
        node_ids = {n.id for n in self._nodes}
        dangling: list[DanglingEdge] = []
        for edge in self._edges:
            if edge.source not in node_ids:
                dangling.append(DanglingEdge(edge.id, edge.source, "source"))
            if edge.target not in node_ids:
                dangling.append(DanglingEdge(edge.id, edge.target, "target"))
        return dangling

    def export_diagram(self) -> str:
        """Canonical pretty-printed JSON of the full graph."""
        return export_diagram(self._nodes, self._edges)

    # ─────────────────────────────────────────────────────────────────────────
    # Loading
    # ─────────────────────────────────────────────────────────────────────────

    def load(self, payload: Any) -> LoadResult:
        """Load either form: a flat entity list, or a {nodes, edges} object."""
        if isinstance(payload, list):
            return self.load_flat_entity_list(payload)
        return self.load_diagram(payload)

    def load_diagram(self, payload: Any) -> LoadResult:
        """Replace the graph with a validated {nodes, edges} payload.

        On success the selection and highlighted path are cleared. On
        failure nothing changes and the result names every violation.
        """
        result = validate_diagram(payload)
        if not result.ok:
            return self._reject(result)
        self._replace(result.nodes, result.edges)
        return LoadResult(
            success=True,
            message=f"Loaded {len(result.nodes)} entities and {len(result.edges)} edges",
        )

    def load_flat_entity_list(self, records: Any) -> LoadResult:
        """Replace the graph from flat parent-reference records.

        Edges are synthesized from ``parentId`` with deterministic ids, and
        effective ownership is computed once before the graph is published.
        """
        result = validate_entity_list(records)
        if not result.ok:
            return self._reject(result)

        nodes = [entity.node for entity in result.entities]
        edges = [
            OwnershipEdge(
                id=edge_id_for(entity.parent_id, entity.node.id),
                source=entity.parent_id,
                target=entity.node.id,
                label=stake_label(entity.ownership_percentage),
                ownership_percentage=entity.ownership_percentage,
            )
            for entity in result.entities
            if entity.parent_id is not None
        ]

        try:
            propagation = propagate_ownership(nodes, edges, on_cycle=self.on_cycle)
        except OwnershipCycleError as e:
            logger.warning("Rejected entity list: %s", e)
            return LoadResult(success=False, message=e.user_message)
        apply_effective_ownership(nodes, propagation)

        self._replace(nodes, edges)
        return LoadResult(
            success=True,
            message=f"Loaded {len(nodes)} entities and {len(edges)} edges",
        )

    def _reject(self, result: ValidationResult) -> LoadResult:
        summary = result.summary()
        logger.warning("Rejected diagram load\n%s", summary)
        return LoadResult(success=False, violations=list(result.violations), message=summary)

    def _replace(self, nodes: list[EntityNode], edges: list[OwnershipEdge]) -> None:
        self._nodes = nodes
        self._edges = edges
        self._selected_id = None
        self._highlighted = frozenset()
        self._mutation_log.clear()
        self._sandbox_log_mark = 0
        self._touch()

    # ─────────────────────────────────────────────────────────────────────────
    # Node Mutation API
    # ─────────────────────────────────────────────────────────────────────────

    def add_node(self, node: EntityNode) -> MutationResult:
        """Append a node. Nodes added in sandbox mode are flagged as drafts.

        Field values are type-checked against the node schema first; a
        mistyped node comes back INVALID and is not added.
        """
        if self.find_node(node.id) is not None:
            return self._skipped(MutationOutcome.DUPLICATE, f"Node '{node.id}' already exists")
        violations = check_record(node, NODE_FIELDS, "node")
        if violations:
            return self._invalid(violations)
        if self._sandbox.active and node.is_draft is None:
            node.is_draft = True

        self._nodes.append(node)
        entry = MutationEntry(
            operation="add_node",
            target_id=node.id,
            before_state={},
            after_state={"node": serialize_node(node)},
        )
        return self._applied(entry, f"Added {node.id}")

    def remove_node(self, node_id: str) -> MutationResult:
        """Remove a node and every edge touching it.

        Clears the selection if the removed node was selected.
        """
        node = self.find_node(node_id)
        if node is None:
            return self._skipped(MutationOutcome.NOT_FOUND, f"Node '{node_id}' not found")

        index = self._nodes.index(node)
        removed_edges = [(i, e) for i, e in enumerate(self._edges) if e.touches(node_id)]
        entry = MutationEntry(
            operation="remove_node",
            target_id=node_id,
            before_state={
                "node": serialize_node(node),
                "index": index,
                "edges": [[i, serialize_edge(e)] for i, e in removed_edges],
                "was_selected": self._selected_id == node_id,
            },
            after_state={},
        )

        del self._nodes[index]
        self._edges = [e for e in self._edges if not e.touches(node_id)]
        if self._selected_id == node_id:
            self._selected_id = None
            self._highlighted = frozenset()
        else:
            self._refresh_highlight()
        return self._applied(entry, f"Removed {node_id} and {len(removed_edges)} edge(s)")

    def update_node(
        self, node_id: str, fields: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> MutationResult:
        """Merge attribute values into an existing node.

        Args:
            node_id: The node to update.
            fields: Attribute name -> value (snake_case attribute names).
            **kwargs: Further attribute values, merged over ``fields``.

        Values are type-checked and normalized as a loaded payload would be.
        None clears an optional field.
        """
        updates = {**(fields or {}), **kwargs}
        node = self.find_node(node_id)
        if node is None:
            return self._skipped(MutationOutcome.NOT_FOUND, f"Node '{node_id}' not found")
        if not updates:
            return self._skipped(MutationOutcome.NOOP, f"No fields to update on {node_id}")

        values, violations = validate_attributes(updates, NODE_FIELDS, f"nodes[{node_id}]")
        if violations:
            return self._invalid(violations)

        before = serialize_node(node)
        try:
            node.apply_fields(values)
        except ValueError as e:
            return self._skipped(MutationOutcome.INVALID, str(e))

        entry = MutationEntry(
            operation="update_node",
            target_id=node_id,
            before_state={"node": before},
            after_state={"node": serialize_node(node)},
        )
        return self._applied(entry, f"Updated {', '.join(sorted(updates))} on {node_id}")

    # ─────────────────────────────────────────────────────────────────────────
    # Edge Mutation API
    # ─────────────────────────────────────────────────────────────────────────

    def add_edge(self, edge: OwnershipEdge) -> MutationResult:
        """Append an edge without checking that its endpoints exist.

        Field types are checked; a mistyped edge comes back INVALID.

        Use dangling_edges() to find edges added this way that point at
        missing nodes.
        """
        if self.find_edge(edge.id) is not None:
            return self._skipped(MutationOutcome.DUPLICATE, f"Edge '{edge.id}' already exists")
        violations = check_record(edge, EDGE_FIELDS, "edge")
        if violations:
            return self._invalid(violations)
        if self._sandbox.active and edge.is_draft is None:
            edge.is_draft = True

        self._edges.append(edge)
        if self.find_node(edge.source) is None or self.find_node(edge.target) is None:
            logger.debug("Edge %s references a missing node", edge.id)
        entry = MutationEntry(
            operation="add_edge",
            target_id=edge.id,
            before_state={},
            after_state={"edge": serialize_edge(edge)},
        )
        self._refresh_highlight()
        return self._applied(entry, f"Added edge {edge.source} -> {edge.target}")

    def remove_edge(self, edge_id: str) -> MutationResult:
        edge = self.find_edge(edge_id)
        if edge is None:
            return self._skipped(MutationOutcome.NOT_FOUND, f"Edge '{edge_id}' not found")

        index = self._edges.index(edge)
        entry = MutationEntry(
            operation="remove_edge",
            target_id=edge_id,
            before_state={"edge": serialize_edge(edge), "index": index},
            after_state={},
        )
        del self._edges[index]
        self._refresh_highlight()
        return self._applied(entry, f"Removed edge {edge_id}")

    # ─────────────────────────────────────────────────────────────────────────
    # Selection, filters, ownership
    # ─────────────────────────────────────────────────────────────────────────

    def select_node(self, node_id: str | None) -> MutationResult:
        """Set the selection and recompute the highlighted ancestor path.

        None clears both. An unknown id leaves the selection unchanged.
        """
        if node_id is None:
            self._selected_id = None
            self._highlighted = frozenset()
            self._touch()
            return MutationResult(MutationOutcome.APPLIED, message="Selection cleared")
        if self.find_node(node_id) is None:
            return self._skipped(MutationOutcome.NOT_FOUND, f"Node '{node_id}' not found")

        self._selected_id = node_id
        self._highlighted = trace_path_to_root(node_id, self._edges)
        self._touch()
        return MutationResult(MutationOutcome.APPLIED, message=f"Selected {node_id}")

    def set_filters(self, filters: ActiveFilters | None = None, **criteria: str | None) -> ActiveFilters:
        """Replace the active filter record.

        Accepts either an ActiveFilters instance or keyword criteria
        (region, entity_type, pillar_two_status).
        """
        self._filters = filters if filters is not None else ActiveFilters(**criteria)
        self._touch()
        return self._filters

    def set_view(
        self,
        view_mode: ViewMode | None = None,
        coloring_mode: ColoringMode | None = None,
        data_overlay: DataOverlay | None = None,
    ) -> None:
        """Change the presentation flags; arguments left as None keep their value."""
        if view_mode is not None:
            self.view_mode = view_mode
        if coloring_mode is not None:
            self.coloring_mode = coloring_mode
        if data_overlay is not None:
            self.data_overlay = data_overlay
        self._touch()

    def propagate_ownership(self) -> MutationResult:
        """Recompute effective ownership over the current graph.

        Not run automatically after edits; callers re-trigger it. Nodes no
        root reaches are reset to None.
        """
        try:
            result = propagate_ownership(self._nodes, self._edges, on_cycle=self.on_cycle)
        except OwnershipCycleError as e:
            logger.warning("Ownership propagation refused: %s", e)
            return MutationResult(MutationOutcome.INVALID, message=e.user_message)

        entry = MutationEntry(
            operation="propagate_ownership",
            target_id="*",
            before_state={"effective": {n.id: n.effective_ownership for n in self._nodes}},
            after_state={
                "effective": dict(result.effective),
                "cycle_edges": list(result.cycle_edges),
            },
        )
        apply_effective_ownership(self._nodes, result)
        reached = len(result.effective)
        return self._applied(entry, f"Computed effective ownership for {reached} entities")

    # ─────────────────────────────────────────────────────────────────────────
    # Sandbox
    # ─────────────────────────────────────────────────────────────────────────

    def start_sandbox(self) -> MutationResult:
        """Snapshot the graph and enter sandbox mode."""
        if not self._sandbox.start(self._nodes, self._edges):
            return self._skipped(MutationOutcome.NOOP, "Sandbox already active")
        self._sandbox_log_mark = len(self._mutation_log)
        self._touch()
        return MutationResult(MutationOutcome.APPLIED, message="Sandbox started")

    def commit_sandbox(self) -> MutationResult:
        """Keep every sandbox edit and clear all draft flags."""
        if not self._sandbox.commit(self._nodes, self._edges):
            return self._skipped(MutationOutcome.NOOP, "Sandbox not active")
        self._touch()
        return MutationResult(MutationOutcome.APPLIED, message="Sandbox committed")

    def discard_sandbox(self) -> MutationResult:
        """Restore the graph exactly as it was when the sandbox started."""
        snapshot = self._sandbox.discard()
        if snapshot is None:
            return self._skipped(MutationOutcome.NOOP, "Sandbox not active")

        self._nodes = snapshot.nodes
        self._edges = snapshot.edges
        dropped = self._mutation_log.truncate(self._sandbox_log_mark)
        logger.debug("Discarded %d sandbox mutation(s)", len(dropped))
        if self._selected_id is not None and self.find_node(self._selected_id) is None:
            self._selected_id = None
            self._highlighted = frozenset()
        else:
            self._refresh_highlight()
        self._touch()
        return MutationResult(MutationOutcome.APPLIED, message="Sandbox discarded")

    # ─────────────────────────────────────────────────────────────────────────
    # Undo
    # ─────────────────────────────────────────────────────────────────────────

    def undo_last(self) -> MutationResult:
        """Reverse the most recent logged mutation.

        Within a sandbox, undo stops at the sandbox start.
        """
        if self._sandbox.active and len(self._mutation_log) <= self._sandbox_log_mark:
            return self._skipped(MutationOutcome.NOOP, "No sandbox mutations to undo")
        entry = self._mutation_log.pop()
        if entry is None:
            return self._skipped(MutationOutcome.NOOP, "No mutations to undo")

        self._apply_undo(entry)
        self._refresh_highlight()
        self._touch()
        return MutationResult(
            MutationOutcome.APPLIED,
            entry=entry,
            message=f"Undid {entry.operation} on {entry.target_id}",
        )

    def _apply_undo(self, entry: MutationEntry) -> None:
        """Restore state from entry.before_state."""
        op = entry.operation
        before = entry.before_state

        if op == "add_node":
            self._nodes = [n for n in self._nodes if n.id != entry.target_id]
            if self._selected_id == entry.target_id:
                self._selected_id = None
        elif op == "remove_node":
            self._nodes.insert(before["index"], _node_from_state(before["node"]))
            for index, edge_state in before["edges"]:
                self._edges.insert(index, _edge_from_state(edge_state))
        elif op == "update_node":
            restored = _node_from_state(before["node"])
            self._nodes = [restored if n.id == entry.target_id else n for n in self._nodes]
        elif op == "add_edge":
            self._edges = [e for e in self._edges if e.id != entry.target_id]
        elif op == "remove_edge":
            self._edges.insert(before["index"], _edge_from_state(before["edge"]))
        elif op == "propagate_ownership":
            for node in self._nodes:
                node.effective_ownership = before["effective"].get(node.id)

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    def _refresh_highlight(self) -> None:
        if self._selected_id is None:
            self._highlighted = frozenset()
        else:
            self._highlighted = trace_path_to_root(self._selected_id, self._edges)

    def _touch(self) -> None:
        self._revision += 1

    def _applied(self, entry: MutationEntry, message: str) -> MutationResult:
        self._mutation_log.append(entry)
        self._touch()
        return MutationResult(MutationOutcome.APPLIED, entry=entry, message=message)

    def _skipped(self, outcome: MutationOutcome, message: str) -> MutationResult:
        logger.debug("%s: %s", outcome.value, message)
        return MutationResult(outcome, message=message)

    def _invalid(self, violations: list[FieldViolation]) -> MutationResult:
        return self._skipped(MutationOutcome.INVALID, "; ".join(str(v) for v in violations))


class DiagramView:
    """Read-only handle on a DiagramStore for rendering consumers.

    Lists returned here are deep copies; editing them never reaches the
    store.
    """

    def __init__(self, store: DiagramStore) -> None:
        self._store = store

    @property
    def nodes(self) -> list[EntityNode]:
        return copy.deepcopy(list(self._store.nodes))

    @property
    def edges(self) -> list[OwnershipEdge]:
        return copy.deepcopy(list(self._store.edges))

    @property
    def selected_id(self) -> str | None:
        return self._store.selected_id

    @property
    def highlighted_path(self) -> frozenset[str]:
        return self._store.highlighted_path

    @property
    def sandbox_active(self) -> bool:
        return self._store.sandbox_active

    @property
    def filters(self) -> ActiveFilters:
        return self._store.filters

    @property
    def revision(self) -> int:
        return self._store.revision

    @property
    def view_mode(self) -> ViewMode:
        return self._store.view_mode

    @property
    def coloring_mode(self) -> ColoringMode:
        return self._store.coloring_mode

    @property
    def data_overlay(self) -> DataOverlay:
        return self._store.data_overlay

    def selected_node(self) -> EntityNode | None:
        return copy.deepcopy(self._store.selected_node())

    def filtered_nodes(self) -> list[EntityNode]:
        return copy.deepcopy(self._store.filtered_nodes())

    def filtered_edges(self) -> list[OwnershipEdge]:
        return copy.deepcopy(self._store.filtered_edges())

    def legend(self, mode: ColoringMode | None = None, today: date | None = None) -> list[LegendEntry]:
        return self._store.legend(mode, today)

    def search(self, term: str) -> Sequence[EntityNode]:
        return copy.deepcopy(self._store.search(term))

    def export_diagram(self) -> str:
        return self._store.export_diagram()


__all__ = ["LoadResult", "DiagramStore", "DiagramView"]
