"""Shared fixtures for btgraph tests."""

import pytest

from btgraph import InMemoryCatalog, MigrationSettings, NodeGraph, NodeType, SchemaMigrator

ACTION_CATALOG = {
    "version": "1.0",
    "catalogType": "Actions",
    "types": [
        {
            "id": "MoveTo",
            "name": "Move To",
            "description": "Walk to a target",
            "parameters": [
                {"name": "target", "type": "string", "required": True},
                {"name": "speed", "type": "float", "required": False, "default": 1.5},
            ],
        },
        {"id": "Idle", "name": "Idle"},
    ],
}

CONDITION_CATALOG = {
    "version": "1.0",
    "catalogType": "Conditions",
    "types": [
        {
            "id": "HasTarget",
            "parameters": [{"name": "radius", "type": "float", "required": True}],
        },
        {"id": "IsAlive"},
    ],
}

DECORATOR_CATALOG = {
    "version": "1.0",
    "catalogType": "Decorators",
    "types": [
        {"id": "Inverter"},
        {
            "id": "Repeat",
            "parameters": [{"name": "count", "type": "int", "required": True, "default": 3}],
        },
    ],
}


@pytest.fixture
def catalog():
    return InMemoryCatalog.from_documents(
        [ACTION_CATALOG, CONDITION_CATALOG, DECORATOR_CATALOG]
    )


@pytest.fixture
def migrator():
    return SchemaMigrator(MigrationSettings(author="tests", clock=lambda: "2024-01-01T00:00:00"))


@pytest.fixture
def valid_tree():
    """Selector root with a fully configured MoveTo action."""
    graph = NodeGraph(name="Patrol")
    root = graph.create_node(NodeType.SELECTOR)
    action = graph.create_node(NodeType.ACTION, name="Go")
    graph.set_root(root)
    graph.link(root, action)
    graph.update_node(action, subtype="MoveTo")
    graph.set_parameter(action, "target", "waypoint_1")
    return graph


@pytest.fixture
def v1_document():
    """Legacy document: Sequence root with an action and a condition."""
    return {
        "name": "Guard",
        "rootNodeId": 1,
        "nodes": [
            {"id": 1, "name": "Root", "type": "Sequence", "children": [2, 3]},
            {"id": 2, "name": "Attack", "type": "Action", "param": "sword", "param1": 4},
            {"id": 3, "name": "Enemy Near", "type": "Condition", "param2": True},
        ],
    }
