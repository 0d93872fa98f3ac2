"""End-to-end scenarios: load, migrate, validate, link, save."""

from btgraph import (
    ConnectionValidator,
    NodeGraph,
    NodeType,
    Severity,
    StructuralValidator,
)


class TestLegacyDocumentScenario:
    """A v1 tree whose leaves lack catalog subtypes."""

    def test_migrate_then_validate(self, catalog, migrator, v1_document):
        migrated = migrator.migrate(v1_document)
        graph = NodeGraph.from_document(migrated)
        validator = StructuralValidator(catalog)
        diagnostics = validator.validate(graph)

        assert all("position" not in d.message.lower() for d in diagnostics)
        assert all(n.position != (0.0, 0.0) for n in graph.nodes)

        subtype_errors = [
            d for d in diagnostics
            if d.severity == Severity.ERROR and "type specified" in d.message
        ]
        assert [d.node_id for d in subtype_errors] == [2, 3]
        assert [d for d in diagnostics if d.severity == Severity.CRITICAL] == []
        assert [d for d in diagnostics if "Orphan" in d.message] == []
        assert validator.is_valid(graph) is False


class TestCycleScenario:
    """Closing a ring is predicted and then reported."""

    def test_ring(self, catalog):
        graph = NodeGraph()
        first = graph.create_node(NodeType.SEQUENCE)
        second = graph.create_node(NodeType.SEQUENCE)
        third = graph.create_node(NodeType.SEQUENCE)
        graph.set_root(first)
        graph.link(first, second)
        graph.link(second, third)

        assert ConnectionValidator(graph).would_create_cycle(third, first) is True
        assert graph.link(third, first) is True

        diagnostics = graph.validate(catalog)
        assert any(d.severity == Severity.CRITICAL for d in diagnostics)

        graph.unlink(third, first)
        diagnostics = graph.validate(catalog)
        assert not any(d.severity == Severity.CRITICAL for d in diagnostics)


class TestSingleParentScenario:
    """One child claimed by two composites."""

    def test_exactly_one_error_naming_both_parents(self, catalog):
        graph = NodeGraph()
        root = graph.create_node(NodeType.SELECTOR)
        left = graph.create_node(NodeType.SEQUENCE)
        right = graph.create_node(NodeType.SEQUENCE)
        shared = graph.create_node(NodeType.ACTION)
        graph.update_node(shared, subtype="Idle")
        graph.set_root(root)
        graph.link(root, left)
        graph.link(root, right)
        graph.link(left, shared)
        graph.link(right, shared)

        errors = [d for d in graph.validate(catalog) if d.severity == Severity.ERROR]
        assert len(errors) == 1
        assert errors[0].message == f"Node has multiple parents: {left}, {right}"


class TestSaveReloadScenario:
    """A tree built in the editor survives a save/load cycle."""

    def test_save_and_reload(self, catalog, valid_tree):
        valid_tree.touch()
        text = valid_tree.to_json()
        reloaded = NodeGraph.from_json(text)

        assert reloaded.metadata.last_modified == valid_tree.metadata.last_modified
        assert reloaded.metadata.created == valid_tree.metadata.created
        assert reloaded.is_valid(catalog)
