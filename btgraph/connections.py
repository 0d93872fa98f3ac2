"""
Connection rules for behavior trees.

Pure queries over a NodeGraph: arity per node category, parent lookup,
reachability and cycles, root and orphan detection. Nothing here mutates the
graph, and NodeGraph.link never consults these rules; the editor may build
a temporarily invalid tree and the validator reports what is wrong.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Iterator, Optional

from .models import NodeCategory

if TYPE_CHECKING:
    from .graph import NodeGraph


def is_reachable(
    start: int,
    goal: int,
    successors: Callable[[int], Iterable[int]],
    include_start: bool = True,
) -> bool:
    """
    Depth-first search from `start` looking for `goal`.

    Each node is expanded at most once, so the search ends after visiting at
    most every node of the graph even when it contains cycles.

    Args:
        start: Node the search begins at
        goal: Node being looked for
        successors: Returns the outgoing edges of a node
        include_start: If False, `start` only counts as found when it is
            reached again through at least one edge

    Returns:
        True if `goal` is reachable from `start`
    """
    if include_start and start == goal:
        return True

    visited: set[int] = set()
    stack = list(successors(start))
    while stack:
        current = stack.pop()
        if current == goal:
            return True
        if current in visited:
            continue
        visited.add(current)
        stack.extend(successors(current))
    return False


@dataclass(frozen=True)
class ConnectionCheck:
    """Answer to an advisory link-time query."""
    is_valid: bool
    reason: str = ""

    @classmethod
    def valid(cls) -> "ConnectionCheck":
        return cls(True)

    @classmethod
    def invalid(cls, reason: str) -> "ConnectionCheck":
        return cls(False, reason)


def max_children(category: NodeCategory) -> Optional[int]:
    """Maximum child count for a category; None means unbounded."""
    if category == NodeCategory.DECORATOR:
        return 1
    if category == NodeCategory.LEAF:
        return 0
    return None


def min_children(category: NodeCategory) -> int:
    """
    Minimum child count for a category.

    For composites this is a recommendation (a violation is a warning);
    for decorators it is mandatory.
    """
    if category == NodeCategory.LEAF:
        return 0
    return 1


class ConnectionValidator:
    """Read-only topology queries bound to one graph."""

    max_children = staticmethod(max_children)
    min_children = staticmethod(min_children)

    def __init__(self, graph: "NodeGraph"):
        self._graph = graph

    def _successors(self, node_id: int) -> list[int]:
        node = self._graph.get_node(node_id)
        if node is None:
            return []
        return node.successors()

    # --- Reachability ---

    def would_create_cycle(self, from_id: int, to_id: int) -> bool:
        """True if adding the edge from_id -> to_id would close a loop."""
        return is_reachable(to_id, from_id, self._successors)

    def reaches_itself(self, node_id: int) -> bool:
        return is_reachable(node_id, node_id, self._successors, include_start=False)

    def cycle_nodes(self) -> list[int]:
        """
        Every node that can reach itself, in graph order.

        Single pass over strongly connected components; a node is cyclic if
        its component has several members or it links to itself.
        """
        index: dict[int, int] = {}
        low: dict[int, int] = {}
        stack: list[int] = []
        on_stack: set[int] = set()
        cyclic: set[int] = set()

        def visit(node_id: int) -> Iterator[int]:
            index[node_id] = low[node_id] = len(index)
            stack.append(node_id)
            on_stack.add(node_id)
            return iter(self._successors(node_id))

        for node in self._graph.nodes:
            if node.id in index:
                continue
            work = [(node.id, visit(node.id))]
            while work:
                current, successors = work[-1]
                descended = False
                for succ in successors:
                    if succ not in self._graph:
                        continue
                    if succ not in index:
                        work.append((succ, visit(succ)))
                        descended = True
                        break
                    if succ in on_stack:
                        low[current] = min(low[current], index[succ])
                if descended:
                    continue

                work.pop()
                if work:
                    parent = work[-1][0]
                    low[parent] = min(low[parent], low[current])
                if low[current] == index[current]:
                    component = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == current:
                            break
                    if len(component) > 1 or current in self._successors(current):
                        cyclic.update(component)

        return [n.id for n in self._graph.nodes if n.id in cyclic]

    # --- Parents and roots ---

    def parent_index(self) -> dict[int, list[int]]:
        """Map each linked child id to its distinct parents, in graph order."""
        parents: dict[int, list[int]] = {}
        for node in self._graph.nodes:
            for child_id in dict.fromkeys(node.successors()):
                parents.setdefault(child_id, []).append(node.id)
        return parents

    def parents_of(self, node_id: int) -> list[int]:
        """All distinct nodes that list `node_id` as a child, in graph order."""
        return [
            n.id for n in self._graph.nodes
            if node_id in n.children or n.decorator_child == node_id
        ]

    def parent_of(self, node_id: int) -> Optional[int]:
        """The parent of `node_id` (the first one, if several claim it)."""
        parents = self.parents_of(node_id)
        return parents[0] if parents else None

    def root_nodes(self) -> set[int]:
        """Every node without a parent."""
        has_parent: set[int] = set()
        for node in self._graph.nodes:
            has_parent.update(node.successors())
        return {n.id for n in self._graph.nodes if n.id not in has_parent}

    def orphan_nodes(self) -> set[int]:
        """Parentless nodes other than the declared root."""
        return self.root_nodes() - {self._graph.root_id}

    # --- Advisory link-time checks ---

    def can_accept_child(self, node_id: int) -> ConnectionCheck:
        node = self._graph.get_node(node_id)
        if node is None:
            return ConnectionCheck.invalid("Node not found")

        limit = max_children(node.category)
        if limit == 0:
            return ConnectionCheck.invalid(
                f"Node type '{node.type.value}' cannot have children (leaf node)"
            )
        if limit is None:
            return ConnectionCheck.valid()

        count = 1 if node.decorator_child is not None else 0
        if count >= limit:
            return ConnectionCheck.invalid(
                f"Node already has maximum number of children ({limit})"
            )
        return ConnectionCheck.valid()

    def can_accept_parent(self, node_id: int) -> ConnectionCheck:
        if self._graph.get_node(node_id) is None:
            return ConnectionCheck.invalid("Node not found")
        if node_id == self._graph.root_id:
            return ConnectionCheck.invalid("Root node cannot have a parent")
        existing = self.parent_of(node_id)
        if existing is not None:
            return ConnectionCheck.invalid(f"Node already has a parent (node {existing})")
        return ConnectionCheck.valid()

    def can_create_connection(self, parent_id: int, child_id: int) -> ConnectionCheck:
        """Whether linking parent -> child keeps the tree well formed."""
        if self._graph.get_node(parent_id) is None:
            return ConnectionCheck.invalid("Parent node not found")
        if self._graph.get_node(child_id) is None:
            return ConnectionCheck.invalid("Child node not found")
        if parent_id == child_id:
            return ConnectionCheck.invalid("Cannot connect node to itself")

        for check in (self.can_accept_child(parent_id), self.can_accept_parent(child_id)):
            if not check.is_valid:
                return check

        if self.would_create_cycle(parent_id, child_id):
            return ConnectionCheck.invalid("Connection would create a cycle in the tree")
        return ConnectionCheck.valid()
