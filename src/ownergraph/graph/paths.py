"""Path tracing - Ancestor chains for highlight rendering."""

from __future__ import annotations

from collections import defaultdict, deque
from typing import Iterable

from ownergraph.graph.relations import OwnershipEdge


def trace_path_to_root(start_id: str, edges: Iterable[OwnershipEdge]) -> frozenset[str]:
    """Collect every node and edge on any path from a node up to a root.

    Breadth-first over incoming edges. Each node is visited once, so
    diamond-shaped and cyclic ownership both terminate.

    Args:
        start_id: The selected node.
        edges: All ownership edges.

    Returns:
        Mixed set of node ids and edge ids, including start_id itself.
    """
    incoming: dict[str, list[OwnershipEdge]] = defaultdict(list)
    for edge in edges:
        incoming[edge.target].append(edge)

    path: set[str] = set()
    visited: set[str] = set()
    queue: deque[str] = deque([start_id])
    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)
        path.add(current)
        for edge in incoming.get(current, ()):
            path.add(edge.id)
            queue.append(edge.source)

    return frozenset(path)


__all__ = ["trace_path_to_root"]
