"""
SQL execution gateway.

This package provides:
- Safety validation of raw SQL (SELECT only, keyword denylist)
- Count and page query rewriting
- A thread-safe description -> SQL cache
- Execution against the read-only engine
- Text and structured report formatting
- The QueryGateway orchestrating all of the above
"""

from sqlgate.gateway.cache import CachedEntry, QueryCache, normalize_key
from sqlgate.gateway.errors import ExecutionError, GatewayError, UnsafeQueryError
from sqlgate.gateway.executor import QueryExecutor
from sqlgate.gateway.formatter import ResultFormatter
from sqlgate.gateway.models import (
    CellKind,
    CellValue,
    PageRequest,
    Pagination,
    QueryResult,
    Report,
    TableColumn,
    TableView,
)
from sqlgate.gateway.rewriter import QueryRewriter
from sqlgate.gateway.service import QueryGateway
from sqlgate.gateway.validator import SafetyValidator, ValidationResult

__all__ = [
    "CachedEntry",
    "CellKind",
    "CellValue",
    "ExecutionError",
    "GatewayError",
    "PageRequest",
    "Pagination",
    "QueryCache",
    "QueryExecutor",
    "QueryGateway",
    "QueryResult",
    "QueryRewriter",
    "Report",
    "ResultFormatter",
    "SafetyValidator",
    "TableColumn",
    "TableView",
    "UnsafeQueryError",
    "ValidationResult",
    "normalize_key",
]
