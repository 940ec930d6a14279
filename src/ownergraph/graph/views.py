"""Derived views - Pure functions of the store's current state.

Filtered node/edge lists, list-view search, compliance classification and
the coloring legend. None of these mutate the graph; the hosting layer
recomputes them whenever the inputs change.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, Sequence

from ownergraph.graph.EntityNode import EntityNode
from ownergraph.graph.relations import OwnershipEdge

DEFAULT_DUE_SOON_DAYS = 30


class ViewMode(Enum):
    DIAGRAM = "diagram"
    LIST = "list"


class ColoringMode(Enum):
    TYPE = "type"
    JURISDICTION = "jurisdiction"
    STATUS = "status"


class DataOverlay(Enum):
    TAX = "TAX"
    OWNERSHIP = "OWNERSHIP"


class ComplianceStatus(Enum):
    """Filing-deadline standing of an entity, with its overlay color."""

    GOOD_STANDING = ("Good Standing", "#10b981")
    DUE_SOON = ("Due Soon", "#f59e0b")
    OVERDUE = ("Overdue", "#ef4444")
    NOT_APPLICABLE = ("N/A", "transparent")

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def color(self) -> str:
        return self.value[1]


# Substring of the lowercased type tag -> color, first match wins.
TYPE_COLORS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("holding", "group"), "#1e40af"),
    (("subsidiary", "ops"), "#059669"),
    (("trust",), "#7c3aed"),
    (("limited",), "#be185d"),
    (("branch",), "#d97706"),
    (("shell",), "#4b5563"),
)
DEFAULT_TYPE_COLOR = "#94a3b8"

JURISDICTION_COLORS: dict[str, str] = {
    "United Kingdom": "#fbcfe8",
    "France": "#bfdbfe",
    "Ireland": "#bbf7d0",
    "USA": "#ddd6fe",
    "Delaware": "#ddd6fe",
}
DEFAULT_JURISDICTION_COLOR = "#e2e8f0"


@dataclass(frozen=True)
class ActiveFilters:
    """Match criteria for the filtered views. None means "any".

    Attributes:
        region: Exact match on the node's region.
        entity_type: Exact match on the node's type tag.
        pillar_two_status: Exact match on the compliance-overlay category.
    """

    region: str | None = None
    entity_type: str | None = None
    pillar_two_status: str | None = None

    def matches(self, node: EntityNode) -> bool:
        """AND over every criterion that is set."""
        if self.region is not None and node.region != self.region:
            return False
        if self.entity_type is not None and node.entity_type != self.entity_type:
            return False
        if self.pillar_two_status is not None and node.pillar_two_status != self.pillar_two_status:
            return False
        return True

    def is_empty(self) -> bool:
        return self.region is None and self.entity_type is None and self.pillar_two_status is None


@dataclass(frozen=True)
class LegendEntry:
    label: str
    color: str


def filter_nodes(nodes: Iterable[EntityNode], filters: ActiveFilters) -> list[EntityNode]:
    """Nodes matching every set criterion, in store order."""
    return [n for n in nodes if filters.matches(n)]


def filter_edges(
    edges: Iterable[OwnershipEdge], visible_nodes: Iterable[EntityNode]
) -> list[OwnershipEdge]:
    """Edges whose endpoints are both in the visible node set."""
    visible = {n.id for n in visible_nodes}
    return [e for e in edges if e.source in visible and e.target in visible]


def search_nodes(nodes: Iterable[EntityNode], term: str) -> list[EntityNode]:
    """Case-insensitive substring search on label, id, or jurisdiction."""
    needle = term.lower()
    return [
        n
        for n in nodes
        if needle in n.label.lower()
        or needle in n.id.lower()
        or (n.jurisdiction is not None and needle in n.jurisdiction.lower())
    ]


def compliance_status(
    node: EntityNode,
    today: date | None = None,
    due_soon_days: int = DEFAULT_DUE_SOON_DAYS,
) -> ComplianceStatus:
    """Classify a node by how close its filing due date is."""
    if node.filing_due_date is None:
        return ComplianceStatus.NOT_APPLICABLE
    days_left = (node.filing_due_date - (today or date.today())).days
    if days_left < 0:
        return ComplianceStatus.OVERDUE
    if days_left <= due_soon_days:
        return ComplianceStatus.DUE_SOON
    return ComplianceStatus.GOOD_STANDING


def type_color(node: EntityNode) -> str:
    tag = (node.entity_type or "").lower()
    for needles, color in TYPE_COLORS:
        if any(needle in tag for needle in needles):
            return color
    return node.color or DEFAULT_TYPE_COLOR


def jurisdiction_color(node: EntityNode) -> str:
    return JURISDICTION_COLORS.get(node.jurisdiction or "", DEFAULT_JURISDICTION_COLOR)


def legend(
    nodes: Sequence[EntityNode],
    mode: ColoringMode,
    today: date | None = None,
    due_soon_days: int = DEFAULT_DUE_SOON_DAYS,
) -> list[LegendEntry]:
    """Unique (label, color) pairs for the nodes under a coloring mode.

    The first node seen for a label decides its color; order follows
    the node order.
    """
    seen: dict[str, str] = {}
    for node in nodes:
        if mode is ColoringMode.TYPE:
            label, color = node.entity_type or "Unknown", type_color(node)
        elif mode is ColoringMode.JURISDICTION:
            label, color = node.jurisdiction or "Unknown", jurisdiction_color(node)
        else:
            status = compliance_status(node, today, due_soon_days)
            label, color = status.label, status.color
        seen.setdefault(label, color)
    return [LegendEntry(label, color) for label, color in seen.items()]


__all__ = [
    "DEFAULT_DUE_SOON_DAYS",
    "ViewMode",
    "ColoringMode",
    "DataOverlay",
    "ComplianceStatus",
    "ActiveFilters",
    "LegendEntry",
    "filter_nodes",
    "filter_edges",
    "search_nodes",
    "compliance_status",
    "type_color",
    "jurisdiction_color",
    "legend",
]
