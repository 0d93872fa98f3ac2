"""
Settings objects for the layout engine and the schema migrator.

The core reads no environment variables and keeps no global state. The
embedding editor builds these objects (or uses the defaults) and passes them
in explicitly.
"""

from datetime import datetime, timezone
from typing import Callable

from pydantic import BaseModel, Field


def utc_timestamp() -> str:
    """Current UTC time as an ISO 8601 string (seconds precision)."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


class LayoutSettings(BaseModel):
    """Spacing used by the breadth-first tree layout."""
    h_spacing: float = 350.0   # Distance between depth columns
    v_spacing: float = 250.0   # Distance between siblings in one column
    start_x: float = 200.0
    start_y: float = 300.0
    # Where migrated nodes land when layout could not reach them
    fallback_x: float = 400.0
    fallback_y: float = 300.0


class MigrationSettings(BaseModel):
    """Values synthesized when upgrading a legacy document."""
    author: str = "Unknown"
    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    clock: Callable[[], str] = utc_timestamp
