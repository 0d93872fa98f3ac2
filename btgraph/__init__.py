"""
Behavior graph core - Node graph model, validation, layout and migration.

This package holds the non-UI logic of the behavior tree editor: the editor
shell loads documents, hands them to this package, and draws whatever it
gets back.
"""

from .models import (
    # Enums
    NodeCategory,
    NodeType,
    # Core models
    GraphNode,
    GraphMetadata,
    EditorState,
)

from .catalog import CatalogKind, CatalogParameter, CatalogType, InMemoryCatalog, TypeCatalog
from .config import LayoutSettings, MigrationSettings
from .connections import ConnectionCheck, ConnectionValidator
from .document import CURRENT_SCHEMA_VERSION, BlueprintDocument
from .errors import CatalogError, GraphError, ParseError
from .graph import NodeGraph
from .layout import apply_layout, layout, tree_layout
from .migration import BlueprintKind, SchemaMigrator, detect_blueprint_kind
from .validation import (
    Diagnostic,
    DiagnosticCategory,
    Severity,
    StructuralValidator,
    validation_summary,
)

__all__ = [
    # Enums
    "NodeCategory",
    "NodeType",
    # Models
    "GraphNode",
    "GraphMetadata",
    "EditorState",
    "NodeGraph",
    # Catalog
    "CatalogKind",
    "CatalogParameter",
    "CatalogType",
    "InMemoryCatalog",
    "TypeCatalog",
    # Settings
    "LayoutSettings",
    "MigrationSettings",
    # Errors
    "GraphError",
    "ParseError",
    "CatalogError",
    # Connections
    "ConnectionCheck",
    "ConnectionValidator",
    # Validation
    "Diagnostic",
    "DiagnosticCategory",
    "Severity",
    "StructuralValidator",
    "validation_summary",
    # Layout
    "tree_layout",
    "layout",
    "apply_layout",
    # Migration
    "CURRENT_SCHEMA_VERSION",
    "BlueprintDocument",
    "BlueprintKind",
    "SchemaMigrator",
    "detect_blueprint_kind",
]
