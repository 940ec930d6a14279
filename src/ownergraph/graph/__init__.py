"""Graph module - Ownership graph state and computation.

Exports:
- EntityNode: Legal entity record
- EntityStatus: Corporate lifecycle state
- OwnershipEdge: Directed ownership stake
- DiagramStore: Canonical graph state and mutation surface
- DiagramView: Read-only handle on a store
- LoadResult, MutationResult, MutationOutcome: Operation outcomes
- MutationEntry, MutationLog: Mutation history for undo
- ActiveFilters: Filter criteria for derived views
- ColoringMode, ViewMode, DataOverlay: UI view flags

Note: build a configured store with ownergraph.graph.factory.build_store()
"""

from ownergraph.graph.EntityNode import EntityNode, EntityStatus
from ownergraph.graph.mutations import (
    DanglingEdge,
    MutationEntry,
    MutationLog,
    MutationOutcome,
    MutationResult,
)
from ownergraph.graph.relations import OwnershipEdge, edge_id_for
from ownergraph.graph.store import DiagramStore, DiagramView, LoadResult
from ownergraph.graph.views import ActiveFilters, ColoringMode, DataOverlay, ViewMode

__all__ = [
    "EntityNode",
    "EntityStatus",
    "OwnershipEdge",
    "edge_id_for",
    "DiagramStore",
    "DiagramView",
    "LoadResult",
    "DanglingEdge",
    "MutationEntry",
    "MutationLog",
    "MutationOutcome",
    "MutationResult",
    "ActiveFilters",
    "ColoringMode",
    "DataOverlay",
    "ViewMode",
]
