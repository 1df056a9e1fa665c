"""
Query Rewriter.

Derives the count query and the page query from a validated SELECT using
regular expressions rather than a parser. The heuristics are intentionally
simple and can mis-rewrite SQL that nests FROM inside the projection list
(scalar sub-selects, some CTEs). Tests pin the current behavior.
"""

import re
from typing import Literal

from sqlgate.gateway.models import PageRequest

LimitStyle = Literal["offset_comma", "limit_offset"]

# Dialects that accept ``LIMIT <offset>, <count>``
OFFSET_COMMA_DIALECTS = frozenset({"mysql", "mariadb", "sqlite"})

_TRAILING_TERMINATORS = re.compile(r";+$")
_SELECT_FROM = re.compile(r"SELECT.*?FROM", re.IGNORECASE | re.DOTALL)
_LIMIT_COMMA = re.compile(r"LIMIT\s+\d+(?:\s*,\s*\d+)?", re.IGNORECASE)
_LIMIT_OFFSET = re.compile(
    r"LIMIT\s+\d+(?:\s*,\s*\d+|\s+OFFSET\s+\d+)?", re.IGNORECASE
)


class QueryRewriter:
    """Normalizes SQL and builds the count and page variants."""

    def __init__(self, limit_style: LimitStyle = "offset_comma"):
        """
        Args:
            limit_style: ``offset_comma`` renders ``LIMIT o, n``;
                ``limit_offset`` renders ``LIMIT n OFFSET o``
        """
        self.limit_style = limit_style

    @classmethod
    def for_dialect(cls, dialect: str) -> "QueryRewriter":
        """Pick the LIMIT style a SQLAlchemy dialect name understands."""
        if dialect.lower() in OFFSET_COMMA_DIALECTS:
            return cls("offset_comma")
        return cls("limit_offset")

    @staticmethod
    def normalize(sql: str) -> str:
        """Strip surrounding whitespace and trailing semicolons."""
        return _TRAILING_TERMINATORS.sub("", sql.strip()).strip()

    @staticmethod
    def build_count_query(sql: str) -> str:
        """
        Build a query returning the total number of rows of ``sql``.

        Grouped queries are wrapped in a sub-select; anything else has its
        first ``SELECT ... FROM`` span replaced.
        """
        if "GROUP BY" in sql.upper():
            return f"SELECT COUNT(*) FROM ({sql}) AS count_table"
        return _SELECT_FROM.sub("SELECT COUNT(*) FROM", sql, count=1)

    def build_page_query(self, sql: str, request: PageRequest) -> str:
        """
        Build the query for one page of ``sql``.

        An existing LIMIT clause (first occurrence) is replaced, otherwise
        the clause is appended.
        """
        if self.limit_style == "offset_comma":
            clause = f"LIMIT {request.offset}, {request.page_size}"
            pattern = _LIMIT_COMMA
        else:
            clause = f"LIMIT {request.page_size} OFFSET {request.offset}"
            pattern = _LIMIT_OFFSET

        if "LIMIT" in sql.upper():
            return pattern.sub(clause, sql, count=1)
        return f"{sql} {clause}"
