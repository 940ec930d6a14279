"""EntityNode - Legal entity representation for the ownership graph.

This module provides the core data structures for ownership diagrams:
- EntityStatus: Enum of corporate lifecycle states
- FieldSpec: Declared wire name and type of a record field
- EntityNode: A legal entity with tax and compliance metadata
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from enum import Enum
from typing import Any


class EntityStatus(Enum):
    """Corporate lifecycle state of an entity."""

    ACTIVE = "Active"
    LIQUIDATION = "Liquidation"
    ACQUISITION = "Acquisition"


@dataclass(frozen=True)
class FieldSpec:
    """Declared shape of one record field.

    Attributes:
        attr: Python attribute name on the dataclass.
        wire: Key used in the JSON representation.
        kind: Value type ("str", "number", "bool", "str_list", "date", "status").
        required: Whether the field must be present in a payload.
    """

    attr: str
    wire: str
    kind: str
    required: bool = False


# Declared order is the export order.
NODE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("id", "id", "str", required=True),
    FieldSpec("label", "label", "str", required=True),
    FieldSpec("color", "color", "str"),
    FieldSpec("entity_type", "type", "str"),
    FieldSpec("jurisdiction", "jurisdiction", "str"),
    FieldSpec("tax_id", "taxId", "str"),
    FieldSpec("officers", "officers", "str_list"),
    FieldSpec("filing_due_date", "filingDueDate", "date"),
    FieldSpec("is_draft", "isDraft", "bool"),
    FieldSpec("tax_residency", "taxResidency", "str"),
    FieldSpec("currency", "currency", "str"),
    FieldSpec("cit_rate", "citRate", "number"),
    FieldSpec("region", "region", "str"),
    FieldSpec("status", "status", "status"),
    FieldSpec("pillar_two_status", "pillarTwoStatus", "str"),
    FieldSpec("effective_ownership", "effectiveOwnership", "number"),
)


@dataclass
class EntityNode:
    """A legal entity in the ownership graph.

    The field set is closed; the validator drops unknown payload keys.

    Attributes:
        id: Unique identifier, stable across loads.
        label: Display label. Defaults to the id when empty.
        entity_type: Free-form type tag ("Group", "Subsidiary", ...).
        officers: Ordered officer names.
        filing_due_date: Next statutory filing date.
        is_draft: Set for entities created in sandbox mode.
        effective_ownership: Computed percentage (0-100), None until
            the ownership propagator has run.
    """

    id: str
    label: str = ""
    color: str | None = None
    entity_type: str | None = None
    jurisdiction: str | None = None
    tax_id: str | None = None
    officers: list[str] = field(default_factory=list)
    filing_due_date: date | None = None
    is_draft: bool | None = None
    tax_residency: str | None = None
    currency: str | None = None
    cit_rate: float | None = None
    region: str | None = None
    status: EntityStatus | None = None
    pillar_two_status: str | None = None
    effective_ownership: float | None = None

    def __post_init__(self) -> None:
        if not self.label:
            self.label = self.id

    @classmethod
    def field_names(cls) -> frozenset[str]:
        """Return the attribute names a node accepts."""
        return frozenset(f.name for f in fields(cls))

    def apply_fields(self, updates: dict[str, Any]) -> dict[str, Any]:
        """Merge attribute values into this node.

        Args:
            updates: Mapping of attribute name to new value.

        Returns:
            The previous values of the changed attributes.

        Raises:
            ValueError: If a key is not a node attribute, or if the
                update would change the id.
        """
        unknown = set(updates) - self.field_names()
        if unknown:
            raise ValueError(f"Unknown node field(s): {', '.join(sorted(unknown))}")
        if "id" in updates and updates["id"] != self.id:
            raise ValueError("Node id cannot be changed by an update")

        previous = {key: getattr(self, key) for key in updates}
        for key, value in updates.items():
            setattr(self, key, value)
        if not self.label:
            self.label = self.id
        return previous


__all__ = ["EntityStatus", "FieldSpec", "NODE_FIELDS", "EntityNode"]
