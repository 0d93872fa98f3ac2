"""
Core data models for behavior graphs.

These models define the in-memory shape of a behavior tree:
- Nodes typed by a closed set of node types, grouped into categories
- Parent/child topology held on the parent as integer node ids
- Graph-level metadata and editor view state

Field Naming Convention:
- In memory, fields use snake_case (`decorator_child`, `last_modified`)
- The on-disk camelCase names live in `btgraph.document`
- Node positions are stored as `x`/`y`, exposed together as `position`
"""

import json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class NodeCategory(str, Enum):
    """Structural category of a node; decides how many children it may have."""
    COMPOSITE = "composite"
    DECORATOR = "decorator"
    LEAF = "leaf"


class NodeType(str, Enum):
    """Concrete node types as written in documents."""
    SEQUENCE = "Sequence"
    SELECTOR = "Selector"
    DECORATOR = "Decorator"
    ACTION = "Action"
    CONDITION = "Condition"

    @property
    def category(self) -> NodeCategory:
        return _CATEGORY_BY_TYPE[self]


_CATEGORY_BY_TYPE = {
    NodeType.SEQUENCE: NodeCategory.COMPOSITE,
    NodeType.SELECTOR: NodeCategory.COMPOSITE,
    NodeType.DECORATOR: NodeCategory.DECORATOR,
    NodeType.ACTION: NodeCategory.LEAF,
    NodeType.CONDITION: NodeCategory.LEAF,
}

# Document key holding the catalog subtype for each node type
SUBTYPE_KEYS: dict[NodeType, str] = {
    NodeType.ACTION: "actionType",
    NodeType.CONDITION: "conditionType",
    NodeType.DECORATOR: "decoratorType",
}


def stringify_parameter(value: Any) -> str:
    """Encode a parameter value as a string (numbers/bools as JSON)."""
    if isinstance(value, str):
        return value
    return json.dumps(value)


class GraphNode(BaseModel):
    """A single vertex of a behavior graph."""
    id: int
    type: NodeType = NodeType.ACTION
    subtype: str = ""  # Catalog id of the action/condition/decorator; "" = unset
    name: str = ""
    x: float = 0.0
    y: float = 0.0
    children: list[int] = Field(default_factory=list)  # Composite nodes only
    decorator_child: Optional[int] = None              # Decorator nodes only
    parameters: dict[str, str] = Field(default_factory=dict)

    @field_validator("parameters", mode="before")
    @classmethod
    def stringify_parameters(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k): stringify_parameter(v) for k, v in value.items()}
        return value

    @property
    def category(self) -> NodeCategory:
        return self.type.category

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    def successors(self) -> list[int]:
        """Every outgoing edge: ordered children, then the decorator child."""
        result = list(self.children)
        if self.decorator_child is not None:
            result.append(self.decorator_child)
        return result


class GraphMetadata(BaseModel):
    """Authoring metadata carried by a document."""
    author: str = "Unknown"
    created: str = ""
    last_modified: str = ""
    tags: list[str] = Field(default_factory=list)


class EditorState(BaseModel):
    """Canvas view state saved alongside the graph."""
    zoom: float = 1.0
    scroll_x: float = 0.0
    scroll_y: float = 0.0
