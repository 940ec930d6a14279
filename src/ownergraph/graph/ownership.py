"""Ownership propagation - Effective ownership through the ownership tree.

Each root (a node that no edge targets) holds 100%. An edge with direct
stake D passes on ``E * D / 100`` of its parent's effective ownership E. A
child's effective ownership is the sum over all incoming edges, so
joint-venture structures with several parents add up.

Propagation is one pass in topological order (Kahn's algorithm): a node
passes on its total only once every parent has been summed, so each edge
is visited once. Under the "skip" policy the back edges found by a
depth-first sweep from the roots are dropped first and reported.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence

from ownergraph.errors import OwnershipCycleError
from ownergraph.graph.EntityNode import EntityNode
from ownergraph.graph.relations import OwnershipEdge

logger = logging.getLogger(__name__)

ROOT_OWNERSHIP = 100.0
CYCLE_POLICIES = ("skip", "reject")


@dataclass
class PropagationResult:
    """Effective ownership computed for one graph.

    Attributes:
        effective: Node id -> effective percentage, for reachable nodes only.
        roots: Ids of root nodes, in node order.
        cycle_edges: Ids of edges not followed because they close a cycle.
    """

    effective: dict[str, float] = field(default_factory=dict)
    roots: list[str] = field(default_factory=list)
    cycle_edges: list[str] = field(default_factory=list)

    def unreachable(self, nodes: Iterable[EntityNode]) -> list[str]:
        """Ids of nodes that received no effective ownership."""
        return [n.id for n in nodes if n.id not in self.effective]


def find_roots(nodes: Sequence[EntityNode], edges: Sequence[OwnershipEdge]) -> list[str]:
    """Return ids of nodes that are never the target of an edge."""
    targets = {e.target for e in edges}
    return [n.id for n in nodes if n.id not in targets]


def _children_by_source(
    nodes: Sequence[EntityNode], edges: Sequence[OwnershipEdge]
) -> dict[str, list[OwnershipEdge]]:
    node_ids = {n.id for n in nodes}
    children: dict[str, list[OwnershipEdge]] = defaultdict(list)
    for edge in edges:
        if edge.source in node_ids and edge.target in node_ids:
            children[edge.source].append(edge)
    return children


def find_cycle(nodes: Sequence[EntityNode], edges: Sequence[OwnershipEdge]) -> list[str] | None:
    """Find one ownership cycle, if any.

    Returns:
        Node ids along the cycle with the first id repeated at the end
        (e.g. ["A", "B", "A"]), or None if the graph is acyclic.
    """
    children = _children_by_source(nodes, edges)
    done: set[str] = set()

    for start in (n.id for n in nodes):
        if start in done:
            continue
        path: list[str] = [start]
        on_path: set[str] = {start}
        stack = [iter(children.get(start, ()))]
        while stack:
            edge = next(stack[-1], None)
            if edge is None:
                stack.pop()
                finished = path.pop()
                on_path.discard(finished)
                done.add(finished)
                continue
            child = edge.target
            if child in on_path:
                return path[path.index(child) :] + [child]
            if child in done:
                continue
            path.append(child)
            on_path.add(child)
            stack.append(iter(children.get(child, ())))
    return None


def propagate_ownership(
    nodes: Sequence[EntityNode],
    edges: Sequence[OwnershipEdge],
    on_cycle: str = "skip",
) -> PropagationResult:
    """Compute effective ownership for every node reachable from a root.

    Edges whose endpoints are not in ``nodes`` are ignored. Nodes not
    reachable from any root are absent from the result.

    Args:
        nodes: The node set.
        edges: The ownership edges.
        on_cycle: "skip" to leave cycle-closing edges unfollowed, or
            "reject" to raise before computing anything.

    Returns:
        PropagationResult with the computed percentages.

    Raises:
        ValueError: If on_cycle is not a known policy.
        OwnershipCycleError: If on_cycle is "reject" and a cycle exists.
    """
    if on_cycle not in CYCLE_POLICIES:
        raise ValueError(f"Unknown cycle policy: {on_cycle!r}")
    if on_cycle == "reject":
        cycle = find_cycle(nodes, edges)
        if cycle:
            raise OwnershipCycleError(cycle)

    children = _children_by_source(nodes, edges)
    result = PropagationResult(roots=find_roots(nodes, edges))
    reachable, back_edges = _sweep_from_roots(result.roots, children)

    # In-degree counts only followed edges from nodes a root reaches.
    pending: dict[str, int] = defaultdict(int)
    for source in reachable:
        for edge in children.get(source, ()):
            if edge.id not in back_edges:
                pending[edge.target] += 1

    queue = deque(result.roots)
    for root in result.roots:
        result.effective[root] = ROOT_OWNERSHIP
    while queue:
        node_id = queue.popleft()
        amount = result.effective[node_id]
        for edge in children.get(node_id, ()):
            if edge.id in back_edges:
                continue
            child = edge.target
            result.effective[child] = result.effective.get(child, 0.0) + amount * edge.stake / 100.0
            pending[child] -= 1
            if pending[child] == 0:
                queue.append(child)

    result.cycle_edges = list(back_edges)
    if result.cycle_edges:
        logger.warning(
            "Ownership cycle: not following edge(s) %s", ", ".join(result.cycle_edges)
        )
    return result


def _sweep_from_roots(
    roots: Sequence[str], children: dict[str, list[OwnershipEdge]]
) -> tuple[set[str], dict[str, None]]:
    """Depth-first sweep from the roots.

    Returns:
        Tuple of (ids of nodes reached, ids of edges leading back onto the
        current path, in discovery order).
    """
    on_path: set[str] = set()
    reached: set[str] = set()
    back_edges: dict[str, None] = {}

    for root in roots:
        reached.add(root)
        on_path.add(root)
        stack: list[tuple[str, Iterator[OwnershipEdge]]] = [(root, iter(children.get(root, ())))]
        while stack:
            node_id, remaining = stack[-1]
            edge = next(remaining, None)
            if edge is None:
                stack.pop()
                on_path.discard(node_id)
                continue
            child = edge.target
            if child in on_path:
                back_edges[edge.id] = None
            elif child not in reached:
                reached.add(child)
                on_path.add(child)
                stack.append((child, iter(children.get(child, ()))))
    return reached, back_edges


def apply_effective_ownership(nodes: Iterable[EntityNode], result: PropagationResult) -> None:
    """Write computed percentages onto nodes; unreachable nodes get None."""
    for node in nodes:
        node.effective_ownership = result.effective.get(node.id)


__all__ = [
    "ROOT_OWNERSHIP",
    "CYCLE_POLICIES",
    "PropagationResult",
    "find_roots",
    "find_cycle",
    "propagate_ownership",
    "apply_effective_ownership",
]
