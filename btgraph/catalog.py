"""
Type catalog interface and an in-memory implementation.

The catalog lists which action, condition and decorator subtypes exist and
which parameters each one requires. The validator only needs the two lookups
of `TypeCatalog`; `InMemoryCatalog` fills them from catalog documents the
editor has already read from disk.
"""

import logging
from enum import Enum
from typing import Any, Iterable, Optional, Protocol

from pydantic import BaseModel, Field, ValidationError, model_validator

from .errors import CatalogError, format_path
from .models import NodeType

logger = logging.getLogger(__name__)


class CatalogKind(str, Enum):
    """The three catalogs, named as in the `catalogType` field."""
    ACTIONS = "Actions"
    CONDITIONS = "Conditions"
    DECORATORS = "Decorators"


CATALOG_KIND_BY_NODE_TYPE: dict[NodeType, CatalogKind] = {
    NodeType.ACTION: CatalogKind.ACTIONS,
    NodeType.CONDITION: CatalogKind.CONDITIONS,
    NodeType.DECORATOR: CatalogKind.DECORATORS,
}


class CatalogParameter(BaseModel):
    """A parameter declared by a catalog type."""
    name: str
    type: str = "string"  # "string", "float", "int", "bool", "array"
    required: bool = False
    default: str = ""

    @model_validator(mode="before")
    @classmethod
    def stringify_default(cls, data: Any) -> Any:
        if isinstance(data, dict) and "default" in data:
            value = data["default"]
            if isinstance(value, bool):
                data = {**data, "default": "true" if value else "false"}
            elif value is None:
                data = {**data, "default": ""}
            elif not isinstance(value, str):
                data = {**data, "default": str(value)}
        return data


class CatalogType(BaseModel):
    """One selectable subtype (e.g. an action id) and its parameters."""
    id: str
    name: str = ""
    description: str = ""
    category: str = ""
    tooltip: str = ""
    parameters: list[CatalogParameter] = Field(default_factory=list)

    @model_validator(mode="after")
    def fill_display_fields(self) -> "CatalogType":
        if not self.name:
            self.name = self.id
        if not self.tooltip:
            self.tooltip = self.description
        return self

    def required_parameters(self) -> list[CatalogParameter]:
        return [p for p in self.parameters if p.required]


class TypeCatalog(Protocol):
    """Read-only lookup the validator consumes."""

    def is_valid_type(self, kind: CatalogKind, type_id: str) -> bool:
        ...

    def find_type(self, kind: CatalogKind, type_id: str) -> Optional[CatalogType]:
        ...


class InMemoryCatalog:
    """
    A TypeCatalog backed by dictionaries.

    Catalog documents look like:

        {"version": "1.0", "catalogType": "Actions",
         "types": [{"id": "MoveTo", "parameters": [
             {"name": "target", "type": "string", "required": true}]}]}

    Loading a catalog of a kind replaces the previous one of that kind.
    """

    def __init__(self):
        self._types: dict[CatalogKind, dict[str, CatalogType]] = {
            kind: {} for kind in CatalogKind
        }
        self._versions: dict[CatalogKind, str] = {}

    @classmethod
    def from_documents(cls, documents: Iterable[dict]) -> "InMemoryCatalog":
        catalog = cls()
        for document in documents:
            catalog.load_document(document)
        return catalog

    def register(self, kind: CatalogKind, types: Iterable[CatalogType]) -> None:
        """Replace the catalog of `kind` with `types`."""
        index: dict[str, CatalogType] = {}
        for type_def in types:
            if not type_def.id:
                raise CatalogError(f"{kind.value} catalog has a type with an empty id")
            if type_def.id in index:
                raise CatalogError(f"Duplicate type id in {kind.value} catalog: {type_def.id}")
            index[type_def.id] = type_def
        self._types[kind] = index

    def load_document(self, document: dict) -> CatalogKind:
        """Parse a catalog document and register its types."""
        if not isinstance(document, dict):
            raise CatalogError("Catalog document must be a JSON object")

        raw_kind = document.get("catalogType")
        if not raw_kind:
            raise CatalogError("Missing catalogType field")
        try:
            kind = CatalogKind(raw_kind)
        except ValueError:
            raise CatalogError(f"Unknown catalog type: {raw_kind}") from None

        raw_types = document.get("types")
        if not isinstance(raw_types, list):
            raise CatalogError("Missing or invalid 'types' array")
        if not raw_types:
            raise CatalogError(f"{kind.value} catalog has no types")

        types = []
        for index, raw in enumerate(raw_types):
            try:
                types.append(CatalogType.model_validate(raw))
            except ValidationError as exc:
                loc = exc.errors()[0].get("loc", ()) if exc.errors() else ()
                path = format_path(loc, f"types[{index}]")
                raise CatalogError(f"Invalid catalog type at {path}") from exc

        self.register(kind, types)
        self._versions[kind] = str(document.get("version", "1.0"))
        logger.info("Loaded %d %s types", len(types), kind.value.lower())
        return kind

    def version(self, kind: CatalogKind) -> Optional[str]:
        return self._versions.get(kind)

    def type_ids(self, kind: CatalogKind) -> list[str]:
        return list(self._types[kind])

    def is_valid_type(self, kind: CatalogKind, type_id: str) -> bool:
        return bool(type_id) and type_id in self._types[kind]

    def find_type(self, kind: CatalogKind, type_id: str) -> Optional[CatalogType]:
        return self._types[kind].get(type_id)
