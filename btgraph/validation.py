"""
Behavior graph validation - Check graphs for structural issues.

Produces a list of diagnostics the editor can display next to the graph.
An invalid graph is still a graph: nothing here raises for a structural
problem, and nothing here modifies the graph.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .catalog import CATALOG_KIND_BY_NODE_TYPE, TypeCatalog
from .connections import ConnectionValidator
from .models import GraphNode, NodeCategory

if TYPE_CHECKING:
    from .graph import NodeGraph

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """Severity levels for diagnostics, lowest first."""
    INFO = "info"          # Informational, may be intentional
    WARNING = "warning"    # Potential problem, does not block saving
    ERROR = "error"        # Invalid state, must be fixed before saving
    CRITICAL = "critical"  # The tree cannot be executed at all (cycles)

    @property
    def blocks_save(self) -> bool:
        return self in (Severity.ERROR, Severity.CRITICAL)


class DiagnosticCategory(str, Enum):
    GRAPH = "Graph"
    TYPE = "Type"
    PARAMETER = "Parameter"
    LINK = "Link"
    CONNECTION = "Connection"


@dataclass
class Diagnostic:
    """A single issue found in a graph."""
    severity: Severity
    message: str
    category: DiagnosticCategory
    node_id: Optional[int] = None
    node_name: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "severity": self.severity.value,
            "category": self.category.value,
            "message": self.message,
        }
        if self.node_id is not None:
            result["node_id"] = self.node_id
            result["node_name"] = self.node_name
        return result


class StructuralValidator:
    """
    Full validation pass over a graph, using a type catalog for subtypes.

    Checks, per node:
    - Subtype set and known to the catalog - ERROR
    - Required catalog parameters present and non-empty - ERROR
    - Child count fits the node category - ERROR, or WARNING for an
      empty composite
    - Child references point at existing nodes - ERROR

    Then for the whole graph:
    - Nodes claimed by more than one parent - ERROR
    - Nodes that reach themselves - CRITICAL
    - Parentless nodes other than the root - WARNING
    - Missing, unknown, ambiguous or parented root - ERROR
    """

    def __init__(self, catalog: TypeCatalog):
        self._catalog = catalog

    def validate(self, graph: "NodeGraph") -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []

        if not graph.nodes:
            diagnostics.append(Diagnostic(
                Severity.INFO, "Graph has no nodes", DiagnosticCategory.GRAPH
            ))
            return diagnostics

        for node in graph.nodes:
            self._check_node(graph, node, diagnostics)

        connections = ConnectionValidator(graph)
        self._check_parents(graph, connections, diagnostics)
        self._check_cycles(graph, connections, diagnostics)
        self._check_roots(graph, connections, diagnostics)

        logger.debug("Validated graph %r: %d diagnostics", graph.name, len(diagnostics))
        return diagnostics

    def validate_node(self, graph: "NodeGraph", node_id: int) -> list[Diagnostic]:
        """Run only the per-node checks for one node."""
        diagnostics: list[Diagnostic] = []
        node = graph.get_node(node_id)
        if node is None:
            diagnostics.append(Diagnostic(
                Severity.CRITICAL, "Node not found", DiagnosticCategory.GRAPH, node_id=node_id
            ))
            return diagnostics
        self._check_node(graph, node, diagnostics)
        return diagnostics

    def is_valid(self, graph: "NodeGraph") -> bool:
        return not any(d.severity.blocks_save for d in self.validate(graph))

    # --- Per-node checks ---

    def _check_node(self, graph: "NodeGraph", node: GraphNode, out: list[Diagnostic]) -> None:
        self._check_type(node, out)
        self._check_parameters(node, out)
        self._check_links(graph, node, out)

    def _check_type(self, node: GraphNode, out: list[Diagnostic]) -> None:
        kind = CATALOG_KIND_BY_NODE_TYPE.get(node.type)
        if kind is None:
            return  # composites have no catalog subtype

        label = node.type.value
        if not node.subtype:
            out.append(_node_diagnostic(
                node, Severity.ERROR, DiagnosticCategory.TYPE,
                f"{label} node has no {label.lower()} type specified",
            ))
        elif not self._catalog.is_valid_type(kind, node.subtype):
            out.append(_node_diagnostic(
                node, Severity.ERROR, DiagnosticCategory.TYPE,
                f"Invalid or deprecated {label}Type: {node.subtype}",
            ))

    def _check_parameters(self, node: GraphNode, out: list[Diagnostic]) -> None:
        kind = CATALOG_KIND_BY_NODE_TYPE.get(node.type)
        if kind is None or not node.subtype:
            return
        type_def = self._catalog.find_type(kind, node.subtype)
        if type_def is None:
            return

        for param in type_def.required_parameters():
            if not node.parameters.get(param.name):
                out.append(_node_diagnostic(
                    node, Severity.ERROR, DiagnosticCategory.PARAMETER,
                    f"Missing required parameter: {param.name}",
                ))

    def _check_links(self, graph: "NodeGraph", node: GraphNode, out: list[Diagnostic]) -> None:
        category = node.category

        if category == NodeCategory.COMPOSITE:
            if not node.children:
                out.append(_node_diagnostic(
                    node, Severity.WARNING, DiagnosticCategory.LINK,
                    "Composite node has no children",
                ))
            if node.decorator_child is not None:
                out.append(_node_diagnostic(
                    node, Severity.ERROR, DiagnosticCategory.LINK,
                    "Composite node has a decorator child; composites use a child list",
                ))

        elif category == NodeCategory.DECORATOR:
            if node.decorator_child is None:
                out.append(_node_diagnostic(
                    node, Severity.ERROR, DiagnosticCategory.LINK,
                    "Decorator node has no child",
                ))
            if node.children:
                out.append(_node_diagnostic(
                    node, Severity.ERROR, DiagnosticCategory.LINK,
                    "Decorator node has a child list; decorators take a single child",
                ))

        else:
            if node.children:
                out.append(_node_diagnostic(
                    node, Severity.ERROR, DiagnosticCategory.LINK,
                    f"Leaf node cannot have children ({len(node.children)} linked)",
                ))
            if node.decorator_child is not None:
                out.append(_node_diagnostic(
                    node, Severity.ERROR, DiagnosticCategory.LINK,
                    "Leaf node cannot have a decorator child",
                ))

        for child_id in node.children:
            if graph.get_node(child_id) is None:
                out.append(_node_diagnostic(
                    node, Severity.ERROR, DiagnosticCategory.LINK,
                    f"Child node {child_id} does not exist",
                ))
        if node.decorator_child is not None and graph.get_node(node.decorator_child) is None:
            out.append(_node_diagnostic(
                node, Severity.ERROR, DiagnosticCategory.LINK,
                f"Decorator child node {node.decorator_child} does not exist",
            ))

    # --- Graph-level checks ---

    def _check_parents(
        self, graph: "NodeGraph", connections: ConnectionValidator, out: list[Diagnostic]
    ) -> None:
        parent_index = connections.parent_index()
        for node in graph.nodes:
            parents = parent_index.get(node.id, [])
            if len(parents) > 1:
                out.append(_node_diagnostic(
                    node, Severity.ERROR, DiagnosticCategory.CONNECTION,
                    f"Node has multiple parents: {', '.join(str(p) for p in parents)}",
                ))

    def _check_cycles(
        self, graph: "NodeGraph", connections: ConnectionValidator, out: list[Diagnostic]
    ) -> None:
        for node_id in connections.cycle_nodes():
            out.append(_node_diagnostic(
                graph.get_node(node_id), Severity.CRITICAL, DiagnosticCategory.CONNECTION,
                "Node is part of a cycle",
            ))

    def _check_roots(
        self, graph: "NodeGraph", connections: ConnectionValidator, out: list[Diagnostic]
    ) -> None:
        roots = connections.root_nodes()
        root_id = graph.root_id

        if not roots:
            out.append(Diagnostic(
                Severity.ERROR, "Graph has no root: every node has a parent",
                DiagnosticCategory.GRAPH,
            ))

        if root_id is None or graph.get_node(root_id) is None:
            if root_id is None:
                message = "No root node defined"
            else:
                message = f"Root node {root_id} does not exist"
            out.append(Diagnostic(Severity.ERROR, message, DiagnosticCategory.GRAPH))
            if len(roots) > 1:
                out.append(Diagnostic(
                    Severity.ERROR,
                    f"Multiple root nodes: {', '.join(str(r) for r in sorted(roots))}",
                    DiagnosticCategory.GRAPH,
                ))
            return

        root_parents = connections.parents_of(root_id)
        if root_parents:
            out.append(_node_diagnostic(
                graph.get_node(root_id), Severity.ERROR, DiagnosticCategory.GRAPH,
                f"Root node has a parent (node {root_parents[0]})",
            ))

        for orphan_id in sorted(connections.orphan_nodes()):
            out.append(_node_diagnostic(
                graph.get_node(orphan_id), Severity.WARNING, DiagnosticCategory.CONNECTION,
                "Orphan node: not connected to the root",
            ))


def _node_diagnostic(
    node: GraphNode, severity: Severity, category: DiagnosticCategory, message: str
) -> Diagnostic:
    return Diagnostic(severity, message, category, node_id=node.id, node_name=node.name)


def count(diagnostics: list[Diagnostic], severity: Severity) -> int:
    return len([d for d in diagnostics if d.severity == severity])


def validation_summary(diagnostics: list[Diagnostic]) -> dict:
    """
    Create a summary of diagnostics.

    Args:
        diagnostics: List of diagnostics

    Returns:
        Dictionary with counts by severity
    """
    return {
        "total": len(diagnostics),
        "critical": count(diagnostics, Severity.CRITICAL),
        "errors": count(diagnostics, Severity.ERROR),
        "warnings": count(diagnostics, Severity.WARNING),
        "info": count(diagnostics, Severity.INFO),
        "valid": not any(d.severity.blocks_save for d in diagnostics),
    }
