"""
Schema migration for saved documents.

Two schema versions exist:
- Version 1: the graph data sits at the top level, nodes have no position
  and parameters are flat `param`, `param1`, `param2`... fields
- Version 2: the data is wrapped in an envelope with metadata and editor
  state, every node has a position and parameters live in one map

Migration is a pure dict-to-dict transformation. Keeping a `.v1.backup`
copy of the original file is the caller's job.
"""

import copy
import logging
import re
from enum import Enum
from typing import Any, Optional

from .config import MigrationSettings
from .document import CURRENT_SCHEMA_VERSION
from .errors import ParseError
from .layout import tree_layout

logger = logging.getLogger(__name__)

LEGACY_PARAM_KEY = re.compile(r"^param\d*$")

# Top-level v1 fields that belong to the envelope rather than to `data`
ENVELOPE_FIELDS = ("schema_version", "name", "description", "blueprintType")


class BlueprintKind(str, Enum):
    """Kinds of documents the editor can open."""
    BEHAVIOR_TREE = "BehaviorTree"
    HFSM = "HFSM"
    ENTITY_PREFAB = "EntityPrefab"
    GENERIC = "Generic"


def detect_blueprint_kind(document: dict) -> BlueprintKind:
    """
    Guess the kind of a legacy document from its structure.

    - `components` at the top level: EntityPrefab
    - `states` (or `initialState`): HFSM
    - `rootNodeId` together with `nodes`: BehaviorTree
    - anything else: Generic
    """
    if "components" in document:
        return BlueprintKind.ENTITY_PREFAB
    if "states" in document or "initialState" in document:
        return BlueprintKind.HFSM
    if "rootNodeId" in document and "nodes" in document:
        return BlueprintKind.BEHAVIOR_TREE
    return BlueprintKind.GENERIC


def schema_version(document: dict) -> int:
    """Version tag of a document; documents without one are version 1."""
    version = document.get("schema_version", 1)
    if isinstance(version, bool) or not isinstance(version, int):
        raise ParseError(f"Invalid schema version: {version!r}", path="schema_version")
    if version not in (1, CURRENT_SCHEMA_VERSION):
        raise ParseError(f"Unsupported schema version: {version}", path="schema_version")
    return version


class SchemaMigrator:
    """Upgrades documents to the current schema version."""

    def __init__(self, settings: Optional[MigrationSettings] = None):
        self.settings = settings or MigrationSettings()

    def is_current(self, document: dict) -> bool:
        return schema_version(document) == CURRENT_SCHEMA_VERSION

    def migrate(self, document: dict) -> dict:
        """
        Return `document` at the current schema version.

        A current document is returned unchanged (the same object). Legacy
        documents are copied; the input is never modified.

        Raises:
            ParseError: if the input is not an object or has an unknown version,
                or a node carries a non-object `parameters` field
        """
        if not isinstance(document, dict):
            raise ParseError("Document must be a JSON object")
        if self.is_current(document):
            return document

        kind = detect_blueprint_kind(document)
        timestamp = self.settings.clock()

        data = {
            key: copy.deepcopy(value)
            for key, value in document.items()
            if key not in ENVELOPE_FIELDS
        }
        if kind == BlueprintKind.BEHAVIOR_TREE:
            self._migrate_behavior_tree(data)
        elif kind == BlueprintKind.HFSM:
            self._migrate_hfsm(data)
        elif kind == BlueprintKind.ENTITY_PREFAB:
            data.setdefault("prefabName", document.get("name", "Unnamed"))

        migrated = {
            "schema_version": CURRENT_SCHEMA_VERSION,
            "blueprintType": kind.value,
            "name": document.get("name", "Unnamed"),
            "description": document.get("description", ""),
            "metadata": {
                "author": self.settings.author,
                "created": timestamp,
                "lastModified": timestamp,
                "tags": [],
            },
            "editorState": {
                "zoom": 1.0,
                "scrollOffset": {"x": 0.0, "y": 0.0},
            },
            "data": data,
        }
        logger.info(
            "Migrated %s document %r from schema v1 to v%d",
            kind.value, migrated["name"], CURRENT_SCHEMA_VERSION,
        )
        return migrated

    # --- Kind-specific steps ---

    def _migrate_behavior_tree(self, data: dict) -> None:
        nodes = data.get("nodes")
        if not isinstance(nodes, list):
            data["nodes"] = []
            return
        indexed = [(i, n) for i, n in enumerate(nodes) if isinstance(n, dict)]
        nodes = [n for _, n in indexed]
        data["nodes"] = nodes

        for index, node in indexed:
            _convert_legacy_position(node)
            _fold_parameters(node, path=f"nodes[{index}].parameters")
            if not node.get("name"):
                node["name"] = node.get("type", "Unnamed")

        if not any("position" in node for node in nodes):
            self._layout_nodes(data.get("rootNodeId"), nodes)

        layout_settings = self.settings.layout
        for node in nodes:
            node.setdefault("position", {
                "x": layout_settings.fallback_x,
                "y": layout_settings.fallback_y,
            })

    def _layout_nodes(self, root_id: Any, nodes: list[dict]) -> None:
        by_id = {node["id"]: node for node in nodes if _is_id(node.get("id"))}

        def successors(node_id: int) -> list[int]:
            node = by_id.get(node_id)
            if node is None:
                return []
            children = node.get("children")
            if not isinstance(children, list):
                children = []
            result = [c for c in children if _is_id(c) and c in by_id]
            decorator_child = node.get("decoratorChild")
            if _is_id(decorator_child) and decorator_child in by_id:
                result.append(decorator_child)
            return result

        if not _is_id(root_id) or root_id not in by_id:
            return
        positions = tree_layout(root_id, successors, self.settings.layout)
        for node_id, (x, y) in positions.items():
            by_id[node_id]["position"] = {"x": x, "y": y}

    def _migrate_hfsm(self, data: dict) -> None:
        data.setdefault("initialState", "")
        states = data.get("states")
        if not isinstance(states, list):
            data["states"] = []
            return
        layout_settings = self.settings.layout
        for state in states:
            if isinstance(state, dict):
                _convert_legacy_position(state)
                state.setdefault("position", {
                    "x": layout_settings.fallback_x,
                    "y": layout_settings.fallback_y,
                })


def _is_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _convert_legacy_position(node: dict) -> None:
    """Turn flat posX/posY fields into a position object."""
    if "posX" in node or "posY" in node:
        x = node.pop("posX", 0.0)
        y = node.pop("posY", 0.0)
        node.setdefault("position", {"x": x, "y": y})


def _fold_parameters(node: dict, path: str) -> None:
    """Move param/param1/param2... into the unified parameters map."""
    parameters = node.get("parameters", {})
    if parameters is None:
        parameters = {}
    if not isinstance(parameters, dict):
        raise ParseError(
            f"Expected an object of parameters, got {type(parameters).__name__}", path=path
        )
    for key in [k for k in node if LEGACY_PARAM_KEY.match(k)]:
        parameters.setdefault(key, node.pop(key))
    node["parameters"] = parameters
