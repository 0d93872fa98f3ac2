"""Tests for connection rules: arity, parents, roots and cycles."""

from btgraph import ConnectionValidator, NodeCategory, NodeGraph, NodeType
from btgraph.connections import is_reachable


def chain(*types):
    """Build a graph where each node is the child of the previous one."""
    graph = NodeGraph()
    ids = [graph.create_node(t) for t in types]
    graph.set_root(ids[0])
    for parent, child in zip(ids, ids[1:]):
        graph.link(parent, child)
    return graph, ids


class TestArity:
    """Test per-category child limits."""

    def test_max_children(self):
        assert ConnectionValidator.max_children(NodeCategory.DECORATOR) == 1
        assert ConnectionValidator.max_children(NodeCategory.LEAF) == 0
        assert ConnectionValidator.max_children(NodeCategory.COMPOSITE) is None

    def test_min_children(self):
        assert ConnectionValidator.min_children(NodeCategory.DECORATOR) == 1
        assert ConnectionValidator.min_children(NodeCategory.COMPOSITE) == 1
        assert ConnectionValidator.min_children(NodeCategory.LEAF) == 0


class TestCycles:
    """Test reachability-based cycle detection."""

    def test_ring_would_close(self):
        graph, (a, b, c) = chain(NodeType.SEQUENCE, NodeType.SEQUENCE, NodeType.SEQUENCE)
        connections = ConnectionValidator(graph)
        assert connections.would_create_cycle(c, a) is True
        assert connections.would_create_cycle(a, c) is False

    def test_self_link_would_close(self):
        graph, (a,) = chain(NodeType.SEQUENCE)
        assert ConnectionValidator(graph).would_create_cycle(a, a) is True

    def test_cycle_through_decorator_child(self):
        graph, (seq, dec) = chain(NodeType.SEQUENCE, NodeType.DECORATOR)
        assert ConnectionValidator(graph).would_create_cycle(dec, seq) is True

    def test_cycle_nodes_lists_each_member_once(self):
        graph, (a, b, c) = chain(NodeType.SEQUENCE, NodeType.SEQUENCE, NodeType.SEQUENCE)
        graph.link(c, a)
        assert ConnectionValidator(graph).cycle_nodes() == [a, b, c]

    def test_self_loop_is_reported_once(self):
        graph, (a, b) = chain(NodeType.SEQUENCE, NodeType.SEQUENCE)
        graph.link(b, b)
        assert ConnectionValidator(graph).cycle_nodes() == [b]

    def test_nodes_leading_into_a_cycle_are_not_members(self):
        graph, (a, b, c, d) = chain(*[NodeType.SEQUENCE] * 4)
        graph.link(d, b)
        tail = graph.create_node(NodeType.SELECTOR)
        graph.link(tail, c)
        assert ConnectionValidator(graph).cycle_nodes() == [b, c, d]

    def test_cycle_nodes_matches_reachability(self):
        graph, ids = chain(*[NodeType.SEQUENCE] * 6)
        graph.link(ids[3], ids[1])
        graph.link(ids[5], ids[5])
        connections = ConnectionValidator(graph)
        expected = [n for n in ids if connections.reaches_itself(n)]
        assert connections.cycle_nodes() == expected == [ids[1], ids[2], ids[3], ids[5]]

    def test_long_chain_has_no_cycle(self):
        graph, ids = chain(*[NodeType.SEQUENCE] * 3000)
        assert ConnectionValidator(graph).cycle_nodes() == []
        graph.link(ids[-1], ids[0])
        assert len(ConnectionValidator(graph).cycle_nodes()) == 3000

    def test_search_terminates_on_cycles(self):
        edges = {1: [2], 2: [3], 3: [1]}
        assert is_reachable(1, 4, lambda n: edges.get(n, [])) is False
        assert is_reachable(1, 1, lambda n: edges.get(n, []), include_start=False) is True


class TestParentsAndRoots:
    """Test parent lookup, root and orphan sets."""

    def test_parent_of(self):
        graph, (root, dec, leaf) = chain(NodeType.SELECTOR, NodeType.DECORATOR, NodeType.ACTION)
        connections = ConnectionValidator(graph)
        assert connections.parent_of(leaf) == dec
        assert connections.parent_of(dec) == root
        assert connections.parent_of(root) is None

    def test_parents_of_lists_all_claimants(self):
        graph = NodeGraph()
        p1 = graph.create_node(NodeType.SEQUENCE)
        p2 = graph.create_node(NodeType.SELECTOR)
        child = graph.create_node(NodeType.ACTION)
        graph.link(p1, child)
        graph.link(p2, child)
        assert ConnectionValidator(graph).parents_of(child) == [p1, p2]

    def test_parent_index_agrees_with_parents_of(self):
        graph = NodeGraph()
        p1 = graph.create_node(NodeType.SEQUENCE)
        dec = graph.create_node(NodeType.DECORATOR)
        child = graph.create_node(NodeType.ACTION)
        graph.link(p1, dec)
        graph.link(p1, child)
        graph.link(dec, child)
        connections = ConnectionValidator(graph)
        index = connections.parent_index()
        assert index == {dec: [p1], child: [p1, dec]}
        for node_id in (p1, dec, child):
            assert index.get(node_id, []) == connections.parents_of(node_id)

    def test_roots_and_orphans(self):
        graph, (root, leaf) = chain(NodeType.SELECTOR, NodeType.ACTION)
        stray = graph.create_node(NodeType.CONDITION)
        connections = ConnectionValidator(graph)
        assert connections.root_nodes() == {root, stray}
        assert connections.orphan_nodes() == {stray}


class TestAdvisoryChecks:
    """Test the link-time queries used by the editor."""

    def test_valid_connection(self):
        graph = NodeGraph()
        root = graph.create_node(NodeType.SEQUENCE)
        leaf = graph.create_node(NodeType.ACTION)
        graph.set_root(root)
        assert ConnectionValidator(graph).can_create_connection(root, leaf).is_valid

    def test_leaf_cannot_accept_children(self):
        graph = NodeGraph()
        leaf = graph.create_node(NodeType.ACTION)
        other = graph.create_node(NodeType.ACTION)
        check = ConnectionValidator(graph).can_create_connection(leaf, other)
        assert not check.is_valid
        assert "leaf node" in check.reason

    def test_full_decorator(self):
        graph, (dec, leaf) = chain(NodeType.DECORATOR, NodeType.ACTION)
        other = graph.create_node(NodeType.ACTION)
        check = ConnectionValidator(graph).can_accept_child(dec)
        assert not check.is_valid
        assert "maximum number of children (1)" in check.reason
        assert not ConnectionValidator(graph).can_create_connection(dec, other).is_valid

    def test_root_and_parented_nodes_cannot_take_a_parent(self):
        graph, (root, leaf) = chain(NodeType.SEQUENCE, NodeType.ACTION)
        other = graph.create_node(NodeType.SELECTOR)
        connections = ConnectionValidator(graph)
        assert connections.can_accept_parent(root).reason == "Root node cannot have a parent"
        assert "already has a parent" in connections.can_accept_parent(leaf).reason
        assert not connections.can_create_connection(other, leaf).is_valid

    def test_cycle_is_refused(self):
        graph, (a, b) = chain(NodeType.SEQUENCE, NodeType.SEQUENCE)
        graph.set_root(None)
        check = ConnectionValidator(graph).can_create_connection(b, a)
        assert check.reason == "Connection would create a cycle in the tree"

    def test_advisory_checks_never_mutate(self):
        graph, (a, b) = chain(NodeType.SEQUENCE, NodeType.ACTION)
        before = graph.to_document()
        ConnectionValidator(graph).can_create_connection(b, a)
        assert graph.to_document() == before
