"""
Response models for the statement protocol.

These models define the structures returned by the submission, continuation
and query info endpoints.
"""

import logging
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

from trino_http.exc import ProtocolError
from trino_http.types import QueryState
from trino_http.models.base import (
    Column,
    ErrorInfo,
    ErrorLocation,
    QueryStats,
    Row,
    ServerWarning,
)

logger = logging.getLogger(__name__)


def _require_mapping(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ProtocolError(
            f"Expected a JSON object for {what}, got {type(data).__name__}",
            {"document": what},
        )
    return data


def _parse_error_location(data: Optional[Dict[str, Any]]) -> Optional[ErrorLocation]:
    if not data:
        return None
    return ErrorLocation(
        line_number=data.get("lineNumber", 0),
        column_number=data.get("columnNumber", 0),
    )


def _parse_error(data: Optional[Dict[str, Any]]) -> Optional[ErrorInfo]:
    """Parse the `error` member of a page."""
    if not data:
        return None
    failure_info = data.get("failureInfo") or {}
    location = data.get("errorLocation") or failure_info.get("errorLocation")
    return ErrorInfo(
        message=data.get("message") or failure_info.get("message") or "",
        error_code=data.get("errorCode"),
        error_name=data.get("errorName"),
        error_type=data.get("errorType"),
        error_location=_parse_error_location(location),
        sql_state=data.get("sqlState"),
        failure_type=failure_info.get("type"),
    )


def _parse_columns(data: Optional[List[Dict[str, Any]]]) -> Optional[List[Column]]:
    if data is None:
        return None
    return [
        Column(
            name=column.get("name", ""),
            type=column.get("type", ""),
            type_signature=column.get("typeSignature"),
        )
        for column in data
    ]


def _parse_data(data: Any, page_id: str) -> Optional[List[Row]]:
    if data is None:
        return None
    if not isinstance(data, list) or not all(isinstance(row, list) for row in data):
        raise ProtocolError(
            "Result page data must be a list of rows",
            {"query-id": page_id, "document": "result page"},
        )
    return data


def _parse_stats(data: Optional[Dict[str, Any]]) -> QueryStats:
    if not data:
        return QueryStats()
    state = QueryState.from_str(data.get("state"))
    if state is None and data.get("state"):
        logger.debug("Unknown query state in page stats: %s", data.get("state"))
    return QueryStats(
        state=state,
        queued=data.get("queued", False),
        scheduled=data.get("scheduled", False),
        progress_percentage=data.get("progressPercentage"),
        nodes=data.get("nodes", 0),
        total_splits=data.get("totalSplits", 0),
        queued_splits=data.get("queuedSplits", 0),
        running_splits=data.get("runningSplits", 0),
        completed_splits=data.get("completedSplits", 0),
        cpu_time_millis=data.get("cpuTimeMillis", 0),
        wall_time_millis=data.get("wallTimeMillis", 0),
        queued_time_millis=data.get("queuedTimeMillis", 0),
        elapsed_time_millis=data.get("elapsedTimeMillis", 0),
        processed_rows=data.get("processedRows", 0),
        processed_bytes=data.get("processedBytes", 0),
        peak_memory_bytes=data.get("peakMemoryBytes", 0),
        spilled_bytes=data.get("spilledBytes", 0),
        raw=data,
    )


def _parse_warnings(data: Optional[List[Dict[str, Any]]]) -> List[ServerWarning]:
    warnings = []
    for warning in data or []:
        code = warning.get("warningCode") or {}
        warnings.append(
            ServerWarning(
                message=warning.get("message", ""),
                code=code.get("code"),
                name=code.get("name"),
            )
        )
    return warnings


@dataclass
class Page:
    """One server response unit of the statement protocol.

    A page is either a data/continuation page or the terminal page. A page
    carrying an `error` is always terminal, whether or not the server also
    sent a continuation URI.
    """

    id: str
    info_uri: Optional[str] = None
    next_uri: Optional[str] = None
    partial_cancel_uri: Optional[str] = None
    columns: Optional[List[Column]] = None
    data: Optional[List[Row]] = None
    stats: QueryStats = field(default_factory=QueryStats)
    error: Optional[ErrorInfo] = None
    warnings: List[ServerWarning] = field(default_factory=list)
    update_type: Optional[str] = None
    update_count: Optional[int] = None

    @property
    def has_data(self) -> bool:
        return bool(self.data)

    @property
    def is_terminal(self) -> bool:
        return self.error is not None or not self.next_uri

    @property
    def is_waiting(self) -> bool:
        """True for a page that only says the query is still queued or running."""
        return not self.has_data and not self.is_terminal

    @classmethod
    def from_dict(cls, data: Any) -> "Page":
        data = _require_mapping(data, "result page")
        page_id = data.get("id")
        if not page_id:
            raise ProtocolError(
                "Result page does not carry a query id", {"document": "result page"}
            )
        try:
            return cls(
                id=page_id,
                info_uri=data.get("infoUri"),
                next_uri=data.get("nextUri"),
                partial_cancel_uri=data.get("partialCancelUri"),
                columns=_parse_columns(data.get("columns")),
                data=_parse_data(data.get("data"), page_id),
                stats=_parse_stats(data.get("stats")),
                error=_parse_error(data.get("error")),
                warnings=_parse_warnings(data.get("warnings")),
                update_type=data.get("updateType"),
                update_count=data.get("updateCount"),
            )
        except (AttributeError, TypeError) as e:
            raise ProtocolError(
                f"Malformed result page: {e}",
                {"query-id": page_id, "original-exception": e},
            ) from e


@dataclass
class QueryInfo:
    """Out-of-band snapshot of a query, fetched by id."""

    query_id: str
    state: QueryState
    query: str
    failure_info: Optional[ErrorInfo] = None
    self_uri: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "QueryInfo":
        data = _require_mapping(data, "query info")
        state = QueryState.from_str(data.get("state"))
        if state is None:
            raise ProtocolError(
                f"Invalid state: {data.get('state')}",
                {"query-id": data.get("queryId")},
            )
        try:
            failure_info = None
            failure_data = data.get("failureInfo")
            if failure_data:
                error_code = data.get("errorCode") or {}
                failure_info = ErrorInfo(
                    message=failure_data.get("message") or "",
                    error_code=error_code.get("code"),
                    error_name=error_code.get("name"),
                    error_type=data.get("errorType") or error_code.get("type"),
                    error_location=_parse_error_location(
                        failure_data.get("errorLocation")
                    ),
                    failure_type=failure_data.get("type"),
                )
            return cls(
                query_id=data.get("queryId", ""),
                state=state,
                query=data.get("query", ""),
                failure_info=failure_info,
                self_uri=data.get("self"),
                raw=data,
            )
        except (AttributeError, TypeError) as e:
            raise ProtocolError(
                f"Malformed query info: {e}",
                {"query-id": data.get("queryId"), "original-exception": e},
            ) from e
