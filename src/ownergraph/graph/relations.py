"""Relations - Ownership edges between entities.

This module defines the directed ownership relationship:
- OwnershipEdge: parent (source) holds a stake in child (target)
- edge_id_for: deterministic id for edges synthesized from parent references
"""

from __future__ import annotations

from dataclasses import dataclass

from ownergraph.graph.EntityNode import FieldSpec

EDGE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("id", "id", "str", required=True),
    FieldSpec("source", "source", "str", required=True),
    FieldSpec("target", "target", "str", required=True),
    FieldSpec("label", "label", "str"),
    FieldSpec("ownership_percentage", "ownershipPercentage", "number"),
    FieldSpec("is_draft", "isDraft", "bool"),
)


@dataclass
class OwnershipEdge:
    """A directed ownership relationship.

    Attributes:
        id: Unique edge identifier.
        source: Id of the owning (parent) entity.
        target: Id of the owned (child) entity.
        label: Optional display label, typically the stake ("50%").
        ownership_percentage: Direct stake held by source in target.
            Expected in 0-100 but not range-checked.
        is_draft: Set for edges created in sandbox mode.
    """

    id: str
    source: str
    target: str
    label: str | None = None
    ownership_percentage: float | None = None
    is_draft: bool | None = None

    @property
    def stake(self) -> float:
        """Direct stake, treating a missing percentage as zero."""
        return self.ownership_percentage or 0.0

    def touches(self, node_id: str) -> bool:
        """Check whether either endpoint is the given node."""
        return self.source == node_id or self.target == node_id


def edge_id_for(parent_id: str, child_id: str) -> str:
    """Deterministic edge id for a (parent, child) pair.

    Reloading identical flat input yields identical edge ids.
    """
    return f"e-{parent_id}-{child_id}"


def stake_label(percentage: float | None) -> str | None:
    """Format a stake as an edge label ("50%", "33.3%")."""
    if percentage is None:
        return None
    return f"{percentage:g}%"


__all__ = ["EDGE_FIELDS", "OwnershipEdge", "edge_id_for", "stake_label"]
