"""
Exception types raised by the behavior graph core.

Structural problems in a graph are never raised: they are reported as
diagnostics by the validator. Exceptions are reserved for input that cannot
be turned into a graph at all (malformed documents, broken catalogs).
"""

from typing import Optional

from pydantic import ValidationError


class GraphError(Exception):
    """Base class for all btgraph errors."""


class ParseError(GraphError):
    """A document could not be parsed into a NodeGraph."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.message = message
        self.path = path
        if path:
            super().__init__(f"{path}: {message}")
        else:
            super().__init__(message)

    @classmethod
    def from_validation_error(cls, exc: ValidationError, prefix: str = "") -> "ParseError":
        """Build a ParseError from the first pydantic validation failure."""
        errors = exc.errors()
        if not errors:
            return cls(str(exc), path=prefix or None)
        first = errors[0]
        path = format_path(first.get("loc", ()), prefix)
        return cls(first.get("msg", "invalid value"), path=path or None)


class CatalogError(GraphError):
    """A type catalog document is malformed or inconsistent."""


def format_path(loc, prefix: str = "") -> str:
    """Render a pydantic location tuple as a dotted path (data.nodes[1].id)."""
    path = prefix
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path
