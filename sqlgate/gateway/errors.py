"""
Gateway exceptions.
"""


class GatewayError(Exception):
    """Base error for the SQL gateway."""

    def __init__(self, message: str, sql: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.sql = sql


class UnsafeQueryError(GatewayError):
    """Raised when a query fails the safety policy."""

    def __init__(self, message: str, sql: str, reason: str) -> None:
        super().__init__(message, sql)
        self.reason = reason


class ExecutionError(GatewayError):
    """Raised when the data source fails to run the primary (page) query."""
