"""
Base models for the statement protocol.

These models define the common structures found in result pages and query
info documents.
"""

from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field

from trino_http.types import QueryState


@dataclass
class ErrorLocation:
    """Position in the submitted SQL text an error refers to (1-based)."""

    line_number: int
    column_number: int


@dataclass
class ErrorInfo:
    """Error information reported by the server for a failed query."""

    message: str
    error_code: Optional[int] = None
    error_name: Optional[str] = None
    error_type: Optional[str] = None
    error_location: Optional[ErrorLocation] = None
    sql_state: Optional[str] = None
    failure_type: Optional[str] = None


@dataclass
class Column:
    """Result column metadata."""

    name: str
    type: str
    type_signature: Optional[Dict[str, Any]] = None


@dataclass
class QueryStats:
    """Progress information attached to every page."""

    state: Optional[QueryState] = None
    queued: bool = False
    scheduled: bool = False
    progress_percentage: Optional[float] = None
    nodes: int = 0
    total_splits: int = 0
    queued_splits: int = 0
    running_splits: int = 0
    completed_splits: int = 0
    cpu_time_millis: int = 0
    wall_time_millis: int = 0
    queued_time_millis: int = 0
    elapsed_time_millis: int = 0
    processed_rows: int = 0
    processed_bytes: int = 0
    peak_memory_bytes: int = 0
    spilled_bytes: int = 0
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ServerWarning:
    """Non-fatal warning raised while planning or executing a query."""

    message: str
    code: Optional[int] = None
    name: Optional[str] = None


Row = List[Any]
