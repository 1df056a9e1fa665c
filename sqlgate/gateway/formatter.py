"""
Format gateway results.

Builds the text reports handed back to the calling LLM layer and the
structured table variant used by UI consumers.
"""

import math
import unicodedata
from typing import Iterable

from sqlgate.gateway.cache import CachedEntry
from sqlgate.gateway.models import (
    NULL,
    CellKind,
    PageRequest,
    Pagination,
    QueryResult,
    Report,
    Row,
    TableColumn,
    TableView,
    collect_columns,
)
from sqlgate.gateway.validator import REJECTION_MESSAGE

MAX_COLUMN_WIDTH = 25
TRUNCATE_TO = 22
SQL_SUMMARY_LENGTH = 50

DIAGNOSTIC_HINTS: tuple[str, ...] = (
    "Table names are correct (see get_database_tables)",
    "Column names match the table structure (see get_database_structure)",
    "Date values use the stored format (YYYYMMDD or YYYYMM)",
    "The SQL syntax is valid for the target database",
    "The account has permission to read the referenced tables",
)


class Emoji:
    """Markers used in report text."""

    CHECK = "✅"
    CROSS = "❌"
    CHART = "📊"
    SEARCH = "🔍"
    MEMO = "📝"
    CLIPBOARD = "📋"
    CYCLE = "🔄"
    BOOM = "💥"
    WRENCH = "🔧"
    BULB = "💡"
    LOCK = "🔒"


def fenced(content: str, lang: str = "") -> str:
    """Wrap content in a Markdown code fence."""
    return f"```{lang}\n{content}\n```\n"


def column_pixel_width(title: str, kind: CellKind | None) -> int:
    """
    Estimate a UI column width from the title.

    CJK characters count widest, then letters, digits and everything else.
    Numeric columns get at least 120px and date columns 160px.
    """
    width = 20
    for char in title:
        if unicodedata.name(char, "").startswith("CJK UNIFIED IDEOGRAPH"):
            width += 17
        elif char.isalpha():
            width += 12
        elif char.isdigit():
            width += 8
        else:
            width += 7

    if kind is CellKind.NUMBER:
        return max(120, width)
    if kind is CellKind.DATE:
        return max(160, width)
    return width


class ResultFormatter:
    """Renders rows and outcomes as reports."""

    def __init__(
        self,
        max_column_width: int = MAX_COLUMN_WIDTH,
        truncate_to: int = TRUNCATE_TO,
        sql_summary_length: int = SQL_SUMMARY_LENGTH,
    ):
        self.max_column_width = max_column_width
        self.truncate_to = truncate_to
        self.sql_summary_length = sql_summary_length

    # ─────────────────────────────────────────────────────────────────────────
    # Query Reports
    # ─────────────────────────────────────────────────────────────────────────

    def render_success(self, result: QueryResult, sql: str, request: PageRequest) -> Report:
        """
        Build the report for a successfully executed page.

        Args:
            result: Rows of the current page with the total-count estimate
            sql: Base SQL, without pagination
            request: Page that was executed
        """
        rows = result.rows
        page = request.page
        page_size = request.page_size
        total = result.total_count
        elapsed_ms = result.elapsed_ms

        total_pages = math.ceil(total / page_size)
        pagination = Pagination(
            current=page,
            page_size=page_size,
            total=total,
            total_pages=total_pages,
            has_prev=page > 1,
            has_next=page < total_pages,
        )

        lines = [
            f"{Emoji.CHECK} Query executed successfully!",
            "",
            f"{Emoji.CHART} Query statistics:",
            f"- Current page: {page}",
            f"- Page size: {page_size}",
            f"- Rows on this page: {len(rows)}",
            f"- Total rows: {total}",
            f"- Total pages: {total_pages}",
            f"- Execution time: {elapsed_ms}ms",
            "",
            f"{Emoji.SEARCH} Base SQL (without pagination):",
        ]
        body = "\n".join(lines) + "\n" + fenced(sql, "sql") + "\n"

        if rows:
            body += f"{Emoji.CLIPBOARD} Query results:\n" + self.format_table(rows)
        else:
            body += f"{Emoji.MEMO} Query results: no data on this page\n"

        if pagination.has_prev or pagination.has_next:
            body += f"\n{Emoji.CYCLE} Page navigation:\n"
            if pagination.has_prev:
                body += f"- Previous page: page={page - 1}\n"
            if pagination.has_next:
                body += f"- Next page: page={page + 1}\n"

        table = self.build_table_view(rows)
        table.top_text = f"Page {page} of {total_pages}, {total} rows in total"
        table.bottom_text = f"Executed in {elapsed_ms}ms"

        return Report(
            success=True,
            sql=sql,
            body=body,
            pagination=pagination,
            table=table,
            elapsed_ms=elapsed_ms,
        )

    def render_error(self, sql: str, message: str) -> Report:
        """Build the report for a query the data source failed to run."""
        body = (
            f"{Emoji.CROSS} Query execution failed!\n\n"
            f"{Emoji.SEARCH} Executed SQL:\n"
            + fenced(sql, "sql")
            + f"\n{Emoji.BOOM} Error: {message}\n\n"
            f"{Emoji.WRENCH} Please check:\n"
            + "".join(f"- {hint}\n" for hint in DIAGNOSTIC_HINTS)
        )
        return Report(success=False, sql=sql, body=body, error=message)

    def render_rejected(self, sql: str, reason: str | None) -> Report:
        """Build the report for a query refused by the safety policy."""
        return Report(
            success=False,
            sql=sql,
            body=f"{Emoji.LOCK} {REJECTION_MESSAGE}",
            error=reason,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Tables
    # ─────────────────────────────────────────────────────────────────────────

    def format_table(self, rows: list[Row]) -> str:
        """
        Render rows as a fixed-width text table inside a code fence.

        Column widths are capped; longer values are cut and marked with an
        ellipsis. Missing cells print as NULL.
        """
        if not rows:
            return "no data"

        columns = collect_columns(rows)
        widths = {}
        for col in columns:
            longest = max(len(row.get(col, NULL).display()) for row in rows)
            widths[col] = min(max(len(col), longest), self.max_column_width)

        out = ["```\n"]
        out.append("".join(f"{col.ljust(widths[col])} | " for col in columns) + "\n")
        out.append("".join("-" * widths[col] + "-+-" for col in columns) + "\n")
        for row in rows:
            cells = []
            for col in columns:
                value = row.get(col, NULL).display()
                if len(value) > self.max_column_width:
                    value = value[: self.truncate_to] + "..."
                cells.append(f"{value.ljust(widths[col])} | ")
            out.append("".join(cells) + "\n")
        out.append("```\n")
        return "".join(out)

    @staticmethod
    def build_table_view(rows: list[Row]) -> TableView:
        """Structured table: column definitions plus JSON-safe rows."""
        columns = []
        for col in collect_columns(rows):
            kind = next(
                (row[col].kind for row in rows if col in row and not row[col].is_null),
                None,
            )
            columns.append(
                TableColumn(
                    title=col,
                    data_index=col,
                    key=col,
                    width=column_pixel_width(col, kind),
                    align="right" if kind is CellKind.NUMBER else None,
                )
            )
        data_source = [
            {name: cell.to_json() for name, cell in row.items()} for row in rows
        ]
        return TableView(columns=columns, data_source=data_source)

    # ─────────────────────────────────────────────────────────────────────────
    # Cache Reports
    # ─────────────────────────────────────────────────────────────────────────

    def render_cache_hit(self, entry: CachedEntry) -> Report:
        body = (
            f"{Emoji.CHECK} Found cached SQL:\n\n"
            f"Description: {entry.original_description}\n"
            f"Cached at: {entry.cached_at:%Y-%m-%d %H:%M:%S}\n\n"
            "SQL:\n"
            + fenced(entry.sql, "sql")
            + f"\n{Emoji.BULB} Run it directly with execute_query, or adjust it as needed"
        )
        return Report(success=True, sql=entry.sql, body=body)

    def render_cache_miss(self, description: str) -> Report:
        body = (
            f"{Emoji.CROSS} No cached SQL found\n\n"
            f"Description: {description}\n\n"
            f"{Emoji.BULB} Suggestions:\n"
            "1. Generate a new SQL statement\n"
            "2. Pass an accurate description to execute_query so it gets cached\n"
            "3. Use get_database_tables and get_database_structure to look up the schema"
        )
        return Report(success=False, sql="", body=body)

    def render_blank_description(self) -> Report:
        message = "Query description must not be empty"
        return Report(success=False, sql="", body=message, error=message)

    def render_cache_list(self, entries: Iterable[CachedEntry]) -> Report:
        entries = list(entries)
        if not entries:
            return Report(
                success=True,
                sql="",
                body=f"{Emoji.MEMO} No cached SQL statements",
            )

        body = f"{Emoji.CLIPBOARD} Cached SQL statements:\n\n"
        for index, entry in enumerate(entries, start=1):
            summary = entry.sql[: self.sql_summary_length]
            body += (
                f"{index}. Description: {entry.original_description}\n"
                f"   Cached at: {entry.cached_at:%Y-%m-%d %H:%M:%S}\n"
                f"   SQL summary: {summary}...\n\n"
            )
        body += f"{len(entries)} cached entries"
        return Report(success=True, sql="", body=body)

    def render_cache_cleared(self, removed: int) -> Report:
        return Report(
            success=True,
            sql="",
            body=f"{Emoji.CHECK} SQL cache cleared, removed {removed} entries",
        )
