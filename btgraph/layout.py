"""
Layout algorithm for behavior graph nodes.

Places nodes in columns by depth from the root:
- x grows with depth (one column per tree level)
- y grows with the order in which nodes at that depth are discovered

The same algorithm serves live graphs and raw legacy documents, so it works
on a root id plus a successor function rather than on a NodeGraph.
"""

from collections import defaultdict, deque
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from .config import LayoutSettings

if TYPE_CHECKING:
    from .graph import NodeGraph


def tree_layout(
    root_id: Optional[int],
    successors: Callable[[int], Iterable[int]],
    settings: Optional[LayoutSettings] = None,
) -> dict[int, tuple[float, float]]:
    """
    Breadth-first depth/sibling layout from a root.

    Each node is placed the first time the traversal discovers it; later
    edges to an already placed node (shared children, cycles) are ignored.
    Nodes not reachable from the root are absent from the result.

    Args:
        root_id: Node to start from (None gives an empty layout)
        successors: Returns a node's ordered outgoing edges
        settings: Spacing and origin (defaults if None)

    Returns:
        Mapping of node id to (x, y)
    """
    settings = settings or LayoutSettings()
    positions: dict[int, tuple[float, float]] = {}
    if root_id is None:
        return positions

    depth_counts: dict[int, int] = defaultdict(int)
    queue = deque([(root_id, 0)])
    seen = {root_id}

    while queue:
        node_id, depth = queue.popleft()
        sibling_index = depth_counts[depth]
        depth_counts[depth] += 1
        positions[node_id] = (
            settings.start_x + depth * settings.h_spacing,
            settings.start_y + sibling_index * settings.v_spacing,
        )

        for child_id in successors(node_id):
            if child_id in seen:
                continue
            seen.add(child_id)
            queue.append((child_id, depth + 1))

    return positions


def layout(
    graph: "NodeGraph",
    settings: Optional[LayoutSettings] = None,
) -> dict[int, tuple[float, float]]:
    """Compute positions for every node reachable from the graph's root."""

    def successors(node_id: int) -> list[int]:
        node = graph.get_node(node_id)
        if node is None:
            return []
        return [c for c in node.successors() if graph.get_node(c) is not None]

    if graph.get_node(graph.root_id) is None:
        return {}
    return tree_layout(graph.root_id, successors, settings)


def apply_layout(
    graph: "NodeGraph",
    settings: Optional[LayoutSettings] = None,
) -> int:
    """
    Move reachable nodes to their computed positions.

    Unreachable nodes keep their current position.

    Returns:
        Number of nodes placed
    """
    positions = layout(graph, settings)
    for node_id, (x, y) in positions.items():
        graph.move_node(node_id, x, y)
    return len(positions)
