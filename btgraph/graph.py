"""
NodeGraph - The in-memory behavior tree of one open document.

This module implements:
- O(1) node lookups via an id-keyed index that keeps insertion order
- Monotonic node ids that are never reused within a session
- Permissive create/delete/link/unlink edits (validation reports problems,
  it does not prevent them)
- Change callbacks so an undo/redo log can snapshot around each edit
- Lossless conversion to and from the version-2 document format
"""

import json
import logging
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from .catalog import TypeCatalog
from .config import utc_timestamp
from .document import BlueprintDocument
from .errors import ParseError
from .migration import BlueprintKind, SchemaMigrator
from .models import (
    SUBTYPE_KEYS,
    EditorState,
    GraphMetadata,
    GraphNode,
    NodeCategory,
    NodeType,
    stringify_parameter,
)
from .validation import Diagnostic, StructuralValidator

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str, Optional[int]], None]


class NodeGraph:
    """
    A rooted tree of typed nodes plus the document fields around it.

    Mutating methods return False (or None) for unknown ids instead of
    raising, since stale ids are a normal outcome of UI selection races.
    Each successful mutation notifies the registered change callbacks with
    an event name and the affected node id.
    """

    def __init__(self, name: str = "Untitled Graph", description: str = ""):
        self.name = name
        self.description = description
        self.blueprint_type = BlueprintKind.BEHAVIOR_TREE.value
        self.metadata = GraphMetadata()
        self.editor_state = EditorState()
        self.root_id: Optional[int] = None
        self._nodes: dict[int, GraphNode] = {}  # node_id -> GraphNode, insertion order
        self._next_id = 1
        self._on_change_callbacks: list[ChangeCallback] = []

    # --- Properties ---

    @property
    def nodes(self) -> list[GraphNode]:
        """All nodes in insertion order."""
        return list(self._nodes.values())

    @property
    def next_id(self) -> int:
        """The id the next created node will receive."""
        return self._next_id

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: Optional[int]) -> Optional[GraphNode]:
        """Get a node by ID (O(1) lookup)."""
        return self._nodes.get(node_id)

    def links(self) -> list[tuple[int, int]]:
        """Every parent -> child edge, decorator edges included."""
        return [(node.id, child) for node in self._nodes.values() for child in node.successors()]

    # --- Change Callbacks ---

    def on_change(self, callback: ChangeCallback):
        """Register a callback for graph changes."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self, event: str, node_id: Optional[int] = None):
        for callback in self._on_change_callbacks:
            callback(event, node_id)

    # --- Node Operations ---

    def create_node(
        self,
        node_type: Union[NodeType, str],
        x: float = 0.0,
        y: float = 0.0,
        name: Optional[str] = None,
    ) -> int:
        """Append a node with a fresh id and return the id."""
        node_type = NodeType(node_type)
        node = GraphNode(
            id=self._next_id,
            type=node_type,
            name=name or node_type.value,
            x=x,
            y=y,
        )
        self._next_id += 1
        self._nodes[node.id] = node

        logger.debug("Created node %d (%s)", node.id, node.name)
        self._notify_change("create_node", node.id)
        return node.id

    def delete_node(self, node_id: int) -> bool:
        """Delete a node and scrub every reference to it."""
        if node_id not in self._nodes:
            logger.debug("Refused to delete unknown node %s", node_id)
            return False

        del self._nodes[node_id]
        for node in self._nodes.values():
            if node_id in node.children:
                node.children = [c for c in node.children if c != node_id]
            if node.decorator_child == node_id:
                node.decorator_child = None
        if self.root_id == node_id:
            self.root_id = None

        logger.debug("Deleted node %d", node_id)
        self._notify_change("delete_node", node_id)
        return True

    def update_node(
        self,
        node_id: int,
        name: Optional[str] = None,
        subtype: Optional[str] = None,
        x: Optional[float] = None,
        y: Optional[float] = None,
    ) -> Optional[GraphNode]:
        """Update only the provided fields of a node."""
        node = self._nodes.get(node_id)
        if node is None:
            return None

        if name is not None:
            node.name = name
        if subtype is not None:
            node.subtype = subtype
        if x is not None:
            node.x = x
        if y is not None:
            node.y = y

        self._notify_change("update_node", node_id)
        return node

    def move_node(self, node_id: int, x: float, y: float) -> bool:
        return self.update_node(node_id, x=x, y=y) is not None

    def set_root(self, node_id: Optional[int]) -> bool:
        """Declare the root node (None clears it)."""
        if node_id is not None and node_id not in self._nodes:
            return False
        self.root_id = node_id
        self._notify_change("set_root", node_id)
        return True

    # --- Link Operations ---

    def link(self, parent_id: int, child_id: int) -> bool:
        """
        Make `child_id` a child of `parent_id`.

        Decorators hold a single child and a new link replaces the previous
        one. No tree rule is checked here; cycles, extra parents and leaf
        children are reported by validation.
        """
        parent = self._nodes.get(parent_id)
        if parent is None or child_id not in self._nodes:
            logger.debug("Refused link %s -> %s: unknown node", parent_id, child_id)
            return False

        if parent.category == NodeCategory.DECORATOR:
            if parent.decorator_child == child_id:
                return False
            parent.decorator_child = child_id
        else:
            if child_id in parent.children:
                return False
            parent.children.append(child_id)

        logger.debug("Linked node %d -> %d", parent_id, child_id)
        self._notify_change("link", parent_id)
        return True

    def unlink(self, parent_id: int, child_id: int) -> bool:
        """Remove a child link or clear a matching decorator child."""
        parent = self._nodes.get(parent_id)
        if parent is None:
            return False

        if child_id in parent.children:
            parent.children.remove(child_id)
        elif parent.decorator_child == child_id:
            parent.decorator_child = None
        else:
            return False

        logger.debug("Unlinked node %d -> %d", parent_id, child_id)
        self._notify_change("unlink", parent_id)
        return True

    # --- Parameters ---

    def set_parameter(self, node_id: int, key: str, value: Any) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.parameters[key] = stringify_parameter(value)
        self._notify_change("set_parameter", node_id)
        return True

    def get_parameter(self, node_id: int, key: str, default: str = "") -> str:
        node = self._nodes.get(node_id)
        if node is None:
            return default
        return node.parameters.get(key, default)

    def remove_parameter(self, node_id: int, key: str) -> bool:
        node = self._nodes.get(node_id)
        if node is None or key not in node.parameters:
            return False
        del node.parameters[key]
        self._notify_change("remove_parameter", node_id)
        return True

    def clear(self):
        """Remove every node and restart id allocation."""
        self._nodes.clear()
        self._next_id = 1
        self.root_id = None
        self._notify_change("clear")

    def touch(self):
        """Stamp the metadata with the current time (call before saving)."""
        self.metadata.last_modified = utc_timestamp()
        if not self.metadata.created:
            self.metadata.created = self.metadata.last_modified

    # --- Validation ---

    def validate(self, catalog: TypeCatalog) -> list[Diagnostic]:
        return StructuralValidator(catalog).validate(self)

    def is_valid(self, catalog: TypeCatalog) -> bool:
        return StructuralValidator(catalog).is_valid(self)

    # --- Serialization ---

    def to_document(self) -> dict:
        """Convert to a version-2 document dict."""
        nodes = []
        for node in self._nodes.values():
            record = {
                "id": node.id,
                "name": node.name,
                "type": node.type.value,
                "position": {"x": node.x, "y": node.y},
                "parameters": dict(node.parameters),
                "children": list(node.children),
            }
            if node.subtype:
                record[SUBTYPE_KEYS.get(node.type, "subtype")] = node.subtype
            if node.decorator_child is not None:
                record["decoratorChild"] = node.decorator_child
            nodes.append(record)

        document = BlueprintDocument.model_validate({
            "blueprintType": self.blueprint_type,
            "name": self.name,
            "description": self.description,
            "metadata": {
                "author": self.metadata.author,
                "created": self.metadata.created,
                "lastModified": self.metadata.last_modified,
                "tags": list(self.metadata.tags),
            },
            "editorState": {
                "zoom": self.editor_state.zoom,
                "scrollOffset": {
                    "x": self.editor_state.scroll_x,
                    "y": self.editor_state.scroll_y,
                },
            },
            "data": {"rootNodeId": self.root_id, "nodes": nodes},
        })
        return document.to_json_dict()

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_document(), indent=indent)

    @classmethod
    def from_document(
        cls, document: Any, migrator: Optional[SchemaMigrator] = None
    ) -> "NodeGraph":
        """
        Build a graph from a document of any supported schema version.

        Legacy documents are migrated first.

        Raises:
            ParseError: if the document is malformed, of an unsupported
                version, or not a behavior tree
        """
        migrator = migrator or SchemaMigrator()
        if not isinstance(document, dict):
            raise ParseError("Document must be a JSON object")
        if not migrator.is_current(document):
            document = migrator.migrate(document)

        try:
            parsed = BlueprintDocument.model_validate(document)
        except ValidationError as exc:
            raise ParseError.from_validation_error(exc) from exc

        if parsed.blueprint_type != BlueprintKind.BEHAVIOR_TREE.value:
            raise ParseError(
                f"Expected a BehaviorTree document, got {parsed.blueprint_type}",
                path="blueprintType",
            )

        graph = cls(name=parsed.name, description=parsed.description)
        graph.metadata = GraphMetadata(
            author=parsed.metadata.author,
            created=parsed.metadata.created,
            last_modified=parsed.metadata.last_modified,
            tags=list(parsed.metadata.tags),
        )
        graph.editor_state = EditorState(
            zoom=parsed.editor_state.zoom,
            scroll_x=parsed.editor_state.scroll_offset.x,
            scroll_y=parsed.editor_state.scroll_offset.y,
        )

        for index, record in enumerate(parsed.data.nodes):
            path = f"data.nodes[{index}]"
            try:
                node_type = NodeType(record.type)
            except ValueError:
                raise ParseError(f"Unknown node type: {record.type}", path=f"{path}.type") from None
            if record.id in graph._nodes:
                raise ParseError(f"Duplicate node id: {record.id}", path=f"{path}.id")

            subtype = {
                NodeType.ACTION: record.action_type,
                NodeType.CONDITION: record.condition_type,
                NodeType.DECORATOR: record.decorator_type,
            }.get(node_type, record.subtype)
            position = record.position
            try:
                node = GraphNode(
                    id=record.id,
                    type=node_type,
                    subtype=subtype or "",
                    name=record.name,
                    x=position.x if position else 0.0,
                    y=position.y if position else 0.0,
                    children=record.children,
                    decorator_child=record.decorator_child,
                    parameters=record.parameters,
                )
            except ValidationError as exc:
                raise ParseError.from_validation_error(exc, prefix=path) from exc
            graph._nodes[node.id] = node

        graph.root_id = parsed.data.root_node_id
        if graph._nodes:
            graph._next_id = max(graph._nodes) + 1

        logger.debug("Loaded graph %r with %d nodes", graph.name, len(graph))
        return graph

    @classmethod
    def from_json(cls, text: Union[str, bytes], migrator: Optional[SchemaMigrator] = None) -> "NodeGraph":
        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})") from exc
        return cls.from_document(document, migrator)
