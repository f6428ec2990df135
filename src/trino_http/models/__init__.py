"""
Models for the statement protocol.

This package contains data models for result pages and query info documents.
"""

from trino_http.models.base import (
    Column,
    ErrorInfo,
    ErrorLocation,
    QueryStats,
    Row,
    ServerWarning,
)
from trino_http.models.responses import (
    Page,
    QueryInfo,
)

__all__ = [
    # Base models
    "Column",
    "ErrorInfo",
    "ErrorLocation",
    "QueryStats",
    "Row",
    "ServerWarning",
    # Response models
    "Page",
    "QueryInfo",
]
