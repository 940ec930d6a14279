"""
ownergraph - State and graph-computation engine for entity-ownership diagrams

Holds the canonical graph of legal entities and ownership stakes, validates
incoming payloads, propagates effective ownership through the ownership
tree, traces ancestor paths for highlighting, and runs all-or-nothing
sandbox edits.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ownergraph")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__author__ = "ownergraph developers"
__license__ = "MIT"

from ownergraph.graph import (
    ActiveFilters,
    DiagramStore,
    DiagramView,
    EntityNode,
    LoadResult,
    MutationOutcome,
    MutationResult,
    OwnershipEdge,
)

__all__ = [
    "__version__",
    "ActiveFilters",
    "DiagramStore",
    "DiagramView",
    "EntityNode",
    "LoadResult",
    "MutationOutcome",
    "MutationResult",
    "OwnershipEdge",
]
