"""
Wire models for the current (version 2) document schema.

Documents are JSON objects of the form:

    {"schema_version": 2, "blueprintType": "BehaviorTree",
     "name": ..., "description": ...,
     "metadata": {"author", "created", "lastModified", "tags"},
     "editorState": {"zoom", "scrollOffset": {"x", "y"}},
     "data": {"rootNodeId": int, "nodes": [...]}}

These models only check shape. Behavior-tree rules are the validator's job.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

CURRENT_SCHEMA_VERSION = 2


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PositionRecord(_WireModel):
    x: float = 0.0
    y: float = 0.0


class NodeRecord(_WireModel):
    """A node entry in `data.nodes`."""
    id: int
    name: str = ""
    type: str
    position: Optional[PositionRecord] = None
    action_type: Optional[str] = Field(default=None, alias="actionType")
    condition_type: Optional[str] = Field(default=None, alias="conditionType")
    decorator_type: Optional[str] = Field(default=None, alias="decoratorType")
    subtype: Optional[str] = None  # Composite nodes
    parameters: dict[str, Any] = Field(default_factory=dict)
    children: list[int] = Field(default_factory=list)
    decorator_child: Optional[int] = Field(default=None, alias="decoratorChild")

    @model_validator(mode="before")
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Treat a decoratorChild of -1 as unset."""
        if isinstance(data, dict) and data.get("decoratorChild") == -1:
            data = {k: v for k, v in data.items() if k != "decoratorChild"}
        return data


class TreeData(_WireModel):
    root_node_id: Optional[int] = Field(default=None, alias="rootNodeId")
    nodes: list[NodeRecord] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Treat a rootNodeId of -1 as unset."""
        if isinstance(data, dict) and data.get("rootNodeId") == -1:
            data = {k: v for k, v in data.items() if k != "rootNodeId"}
        return data


class MetadataRecord(_WireModel):
    author: str = "Unknown"
    created: str = ""
    last_modified: str = Field(default="", alias="lastModified")
    tags: list[str] = Field(default_factory=list)


class EditorStateRecord(_WireModel):
    zoom: float = 1.0
    scroll_offset: PositionRecord = Field(default_factory=PositionRecord, alias="scrollOffset")


class BlueprintDocument(_WireModel):
    """The full version-2 envelope around a behavior tree."""
    schema_version: Literal[2] = CURRENT_SCHEMA_VERSION
    blueprint_type: str = Field(default="BehaviorTree", alias="blueprintType")
    name: str = "Untitled Graph"
    description: str = ""
    metadata: MetadataRecord = Field(default_factory=MetadataRecord)
    editor_state: EditorStateRecord = Field(default_factory=EditorStateRecord, alias="editorState")
    data: TreeData = Field(default_factory=TreeData)

    def to_json_dict(self) -> dict:
        """Convert to a JSON-serializable dict with the on-disk field names."""
        return self.model_dump(by_alias=True, exclude_none=True)
