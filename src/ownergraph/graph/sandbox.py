"""Sandbox - All-or-nothing speculative editing over the live graph.

The session does not fork the graph. Edits keep going to the live node
and edge lists; the session only remembers a deep copy of the state at the
moment it was entered so that ``discard`` can put it back.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from ownergraph.graph.EntityNode import EntityNode
from ownergraph.graph.relations import OwnershipEdge


class SandboxState(Enum):
    """Editing mode of the store."""

    LIVE = "live"
    SANDBOXED = "sandboxed"


@dataclass
class Snapshot:
    """Independent deep copy of the graph taken when the sandbox starts."""

    nodes: list[EntityNode]
    edges: list[OwnershipEdge]


class SandboxSession:
    """Tracks sandbox mode and holds the rollback point.

    Misuse (double start, commit or discard while live) is a no-op and
    reported by a False return, never an exception.
    """

    def __init__(self) -> None:
        self._state = SandboxState.LIVE
        self._snapshot: Snapshot | None = None

    @property
    def state(self) -> SandboxState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is SandboxState.SANDBOXED

    @property
    def snapshot(self) -> Snapshot | None:
        return self._snapshot

    def start(self, nodes: Sequence[EntityNode], edges: Sequence[OwnershipEdge]) -> bool:
        """Enter sandbox mode, remembering the current graph.

        Returns:
            True if the session started, False if it was already active.
        """
        if self.active:
            return False
        self._snapshot = Snapshot(nodes=copy.deepcopy(list(nodes)), edges=copy.deepcopy(list(edges)))
        self._state = SandboxState.SANDBOXED
        return True

    def commit(self, nodes: Sequence[EntityNode], edges: Sequence[OwnershipEdge]) -> bool:
        """Make draft entities permanent and leave sandbox mode.

        Returns:
            True if committed, False if not in sandbox mode.
        """
        if not self.active:
            return False
        for node in nodes:
            node.is_draft = False
        for edge in edges:
            edge.is_draft = False
        self._snapshot = None
        self._state = SandboxState.LIVE
        return True

    def discard(self) -> Snapshot | None:
        """Leave sandbox mode, handing back the rollback point.

        Returns:
            The snapshot to restore, or None if not in sandbox mode or no
            snapshot exists (in which case nothing changes).
        """
        if not self.active or self._snapshot is None:
            return None
        snapshot = self._snapshot
        self._snapshot = None
        self._state = SandboxState.LIVE
        return snapshot


__all__ = ["SandboxState", "Snapshot", "SandboxSession"]
