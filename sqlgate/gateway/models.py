"""
Gateway data model.

Value objects passed between the validator, rewriter, executor, formatter
and the gateway itself.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


# ─────────────────────────────────────────────────────────────────────────────
# Pagination Request
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PageRequest:
    """A page number and page size, always within bounds."""

    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def clamp(
        cls,
        page: int | None = None,
        page_size: int | None = None,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> "PageRequest":
        """
        Build a request from untrusted input.

        Missing or non-positive page -> 1; missing or non-positive size ->
        the default; size above the maximum -> the maximum.
        """
        if page is None or page <= 0:
            page = DEFAULT_PAGE
        if page_size is None or page_size <= 0:
            page_size = default_page_size
        if page_size > max_page_size:
            page_size = max_page_size
        return cls(page=page, page_size=page_size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


# ─────────────────────────────────────────────────────────────────────────────
# Cell Values
# ─────────────────────────────────────────────────────────────────────────────

class CellKind(str, Enum):
    """Kinds of values a result cell can hold."""

    NULL = "null"
    NUMBER = "number"
    STRING = "string"
    DATE = "date"
    BOOL = "bool"


@dataclass(frozen=True)
class CellValue:
    """
    A database value tagged with its kind.

    Raw driver values are converted once, by ``of``; formatting then
    dispatches on ``kind``.
    """

    kind: CellKind
    value: Any = None

    @classmethod
    def of(cls, value: Any) -> "CellValue":
        """Tag a raw driver value."""
        if value is None:
            return NULL
        if isinstance(value, bool):
            return cls(CellKind.BOOL, value)
        if isinstance(value, (int, float, Decimal)):
            return cls(CellKind.NUMBER, value)
        if isinstance(value, (datetime, date, time)):
            return cls(CellKind.DATE, value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(CellKind.STRING, bytes(value).decode("utf-8", errors="replace"))
        return cls(CellKind.STRING, str(value))

    @property
    def is_null(self) -> bool:
        return self.kind is CellKind.NULL

    def display(self) -> str:
        """Text shown in the rendered table."""
        if self.kind is CellKind.NULL:
            return "NULL"
        if self.kind is CellKind.BOOL:
            return "true" if self.value else "false"
        if self.kind is CellKind.DATE:
            if isinstance(self.value, datetime):
                return self.value.isoformat(sep=" ")
            return self.value.isoformat()
        return str(self.value)

    def to_json(self) -> Any:
        """JSON-safe representation."""
        if self.kind is CellKind.NULL:
            return None
        if self.kind is CellKind.DATE:
            return self.display()
        if self.kind is CellKind.NUMBER and isinstance(self.value, Decimal):
            return float(self.value)
        return self.value


NULL = CellValue(CellKind.NULL)

Row = dict[str, CellValue]


def collect_columns(rows: list[Row]) -> list[str]:
    """Union of row keys in first-seen order."""
    columns: dict[str, None] = {}
    for row in rows:
        for name in row:
            columns.setdefault(name, None)
    return list(columns)


@dataclass
class QueryResult:
    """Rows of one executed page plus the total-count estimate."""

    rows: list[Row]
    total_count: int
    elapsed_ms: int
    columns: list[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.columns:
            self.columns = collect_columns(self.rows)


# ─────────────────────────────────────────────────────────────────────────────
# Reports
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Pagination:
    """Pagination metadata of a successful report."""

    current: int
    page_size: int
    total: int
    total_pages: int
    has_prev: bool
    has_next: bool


@dataclass
class TableColumn:
    """Column definition of the structured table."""

    title: str
    data_index: str
    key: str
    width: int
    align: str | None = None
    resizable: bool = True
    ellipsis: bool = True


@dataclass
class TableView:
    """Structured rendering of a page for UI consumers."""

    columns: list[TableColumn]
    data_source: list[dict[str, Any]]
    top_text: str = ""
    bottom_text: str = ""


@dataclass
class Report:
    """
    Uniform outcome handed back to the caller.

    Attributes:
        success: Whether the operation succeeded
        sql: SQL the report is about (base SQL, before pagination)
        body: Formatted text
        pagination: Set on successful query execution
        table: Structured table for the current page
        error: Error message when the operation failed
        elapsed_ms: Page execution time
    """

    success: bool
    sql: str
    body: str
    pagination: Pagination | None = None
    table: TableView | None = None
    error: str | None = None
    elapsed_ms: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return asdict(self)
