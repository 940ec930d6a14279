"""Mutation records for DiagramStore operations.

- MutationOutcome / MutationResult: what a mutator did
- MutationEntry: one applied change, with the state needed to reverse it
- MutationLog: ordered undo history
- DanglingEdge: an edge left pointing at a missing entity
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4


@dataclass(frozen=True)
class DanglingEdge:
    """An edge whose source or target names no existing node.

    Only reachable through raw edge insertion; node removal always
    cascades to the edges it touches.

    Attributes:
        edge_id: ID of the offending edge.
        missing_id: The endpoint ID that does not exist.
        endpoint: Which endpoint is missing ("source" or "target").
    """

    edge_id: str
    missing_id: str
    endpoint: str

    def __str__(self) -> str:
        return f"{self.edge_id}: {self.endpoint} {self.missing_id} (missing)"


class MutationOutcome(Enum):
    """What a store mutation did."""

    APPLIED = "applied"
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"
    NOOP = "noop"
    INVALID = "invalid"


@dataclass
class MutationEntry:
    """One applied change to the graph.

    ``before_state`` holds serialized records (wire format) sufficient to
    put the graph back; ``after_state`` is informational.

    Attributes:
        operation: "add_node", "remove_node", "update_node", "add_edge",
            "remove_edge" or "propagate_ownership".
        target_id: Node or edge id, "*" for whole-graph operations.
        before_state: Serialized state to restore on undo.
        after_state: Serialized state after the change.
        id: Random hex id, for API consumers.
        timestamp: When the change was applied.
    """

    operation: str
    target_id: str
    before_state: dict[str, Any]
    after_state: dict[str, Any]
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.operation}({self.target_id}) [{self.id[:8]}]"


@dataclass
class MutationResult:
    """Result of a store mutation.

    Unknown ids, duplicates and sandbox misuse are not errors; they come
    back as a named outcome so callers can tell a race from a bug.

    Attributes:
        outcome: What happened.
        entry: The logged change, only for logged APPLIED mutations.
        message: Short human-readable description.
    """

    outcome: MutationOutcome
    entry: MutationEntry | None = None
    message: str = ""

    @property
    def applied(self) -> bool:
        return self.outcome is MutationOutcome.APPLIED

    def __bool__(self) -> bool:
        return self.applied


class MutationLog:
    """Undo history of a store, oldest first.

    The store records a mark when a sandbox starts; discarding the sandbox
    truncates back to it.
    """

    def __init__(self) -> None:
        self._entries: list[MutationEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[MutationEntry]:
        return iter(self._entries)

    def append(self, entry: MutationEntry) -> None:
        self._entries.append(entry)

    def last(self) -> MutationEntry | None:
        return self._entries[-1] if self._entries else None

    def pop(self) -> MutationEntry | None:
        """Remove and return the newest entry, or None if empty."""
        return self._entries.pop() if self._entries else None

    def truncate(self, length: int) -> list[MutationEntry]:
        """Drop every entry past ``length``.

        Returns:
            The dropped entries, oldest first.
        """
        dropped = self._entries[length:]
        del self._entries[length:]
        return dropped

    def clear(self) -> None:
        self._entries.clear()


__all__ = [
    "DanglingEdge",
    "MutationOutcome",
    "MutationEntry",
    "MutationResult",
    "MutationLog",
]
