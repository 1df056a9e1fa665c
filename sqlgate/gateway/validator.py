"""
SQL Safety Validator.

Decides whether a raw query string may be executed at all.

The keyword check is a plain substring match on the upper-cased text, so a
column such as ``execution_date`` or a literal such as ``'DROP'`` is rejected
too. That over-strictness is accepted behavior.
"""

from dataclasses import dataclass, field

import sqlparse
from sqlparse.exceptions import SQLParseError

from sqlgate.gateway.errors import UnsafeQueryError

REJECTION_MESSAGE = (
    "Security restriction: only SELECT queries may be executed; "
    "INSERT, UPDATE, DELETE and other modifying statements are not supported"
)


@dataclass
class ValidationResult:
    """Result of SQL validation."""

    valid: bool
    sql: str
    reason: str | None = None
    warnings: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid


class SafetyValidator:
    """
    SQL safety validator.

    Accepts only text that starts with SELECT and contains none of the
    forbidden keywords anywhere.
    """

    FORBIDDEN_KEYWORDS: tuple[str, ...] = (
        "INSERT",
        "UPDATE",
        "DELETE",
        "DROP",
        "CREATE",
        "ALTER",
        "TRUNCATE",
        "EXEC",
        "EXECUTE",
        "DECLARE",
    )

    def check(self, sql: str | None) -> ValidationResult:
        """
        Validate a SQL query.

        Args:
            sql: Raw SQL query string

        Returns:
            ValidationResult; ``reason`` names the first rule that failed
        """
        if sql is None or not sql.strip():
            return ValidationResult(valid=False, sql=sql or "", reason="empty query")

        sql_upper = sql.strip().upper()

        if not sql_upper.startswith("SELECT"):
            return ValidationResult(
                valid=False,
                sql=sql,
                reason="only SELECT statements are allowed",
            )

        for keyword in self.FORBIDDEN_KEYWORDS:
            if keyword in sql_upper:
                return ValidationResult(
                    valid=False,
                    sql=sql,
                    reason=f"forbidden keyword: {keyword}",
                )

        return ValidationResult(valid=True, sql=sql, warnings=self._warnings(sql))

    def ensure_safe(self, sql: str | None) -> str:
        """
        Validate and return the query, raising on rejection.

        Raises:
            UnsafeQueryError: If the query fails the policy
        """
        result = self.check(sql)
        if not result.valid:
            raise UnsafeQueryError(REJECTION_MESSAGE, sql=result.sql, reason=result.reason)
        return result.sql

    @staticmethod
    def _warnings(sql: str) -> list[str]:
        """Non-blocking observations about an accepted query."""
        warnings: list[str] = []

        try:
            statements = [s for s in sqlparse.parse(sql) if str(s).strip(" \n\t;")]
        except SQLParseError:
            # Nesting or token limits exceeded; acceptance never depends on parsing
            statements = []
            warnings.append("Query too complex to check for multiple statements")
        if len(statements) > 1:
            warnings.append("Multiple statements found; the data source may reject them")

        sql_upper = sql.upper()
        if "SELECT *" in sql_upper:
            warnings.append("Consider selecting specific columns instead of *")
        if "LIMIT" in sql_upper:
            warnings.append("Existing LIMIT clause will be replaced by pagination")

        return warnings
