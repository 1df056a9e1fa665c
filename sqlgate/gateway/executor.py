"""
Query Executor.

Runs already validated and rewritten SQL against the read-only engine.
"""

import time

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from sqlgate.gateway.errors import ExecutionError
from sqlgate.gateway.models import CellValue, Row
from sqlgate.logging_config import get_logger

logger = get_logger(__name__)


def _raw(conn: Connection) -> Connection:
    """Execute without a parameter set so psycopg2 keeps literal ``%`` intact."""
    return conn.execution_options(no_parameters=True)


class QueryExecutor:
    """
    Executes count and page queries.

    A count failure is tolerated (the caller falls back to the page row
    count); a page failure is not.
    """

    def __init__(self, engine: Engine):
        self._engine = engine

    def run_count(self, count_sql: str) -> int | None:
        """
        Execute a count query.

        Returns:
            The scalar result, or None if it could not be obtained
        """
        logger.info("count_query_executing", sql=count_sql)
        try:
            with self._engine.connect() as conn:
                value = _raw(conn).exec_driver_sql(count_sql).scalar()
            return int(value)
        except (SQLAlchemyError, TypeError, ValueError) as e:
            logger.warning("count_unavailable", sql=count_sql, error=str(e))
            return None

    def run_page(self, paged_sql: str) -> tuple[list[Row], int]:
        """
        Execute the page query.

        Returns:
            (rows, elapsed_ms) with rows as ordered column -> CellValue maps

        Raises:
            ExecutionError: If the data source rejects or fails the query
        """
        logger.info("page_query_executing", sql=paged_sql)
        start_time = time.perf_counter()
        try:
            with self._engine.connect() as conn:
                result = _raw(conn).exec_driver_sql(paged_sql)
                columns = list(result.keys())
                rows = [
                    {name: CellValue.of(value) for name, value in zip(columns, record)}
                    for record in result
                ]
        except SQLAlchemyError as e:
            # DBAPIError carries the driver message in .orig
            message = str(getattr(e, "orig", None) or e)
            raise ExecutionError(message, sql=paged_sql) from e
        elapsed_ms = int((time.perf_counter() - start_time) * 1000)

        logger.info("page_executed", rows=len(rows), elapsed_ms=elapsed_ms)
        return rows, elapsed_ms
