"""
Query Gateway.

Single entry point for the operations exposed to the LLM layer:

    execute_query:  validate -> (cache) -> rewrite -> count + page -> format
    get_cached_sql / list_cached_sqls / clear_sql_cache: cache access

Every call returns a Report; no execution error escapes.
"""

from sqlgate.gateway.cache import QueryCache
from sqlgate.gateway.errors import ExecutionError, UnsafeQueryError
from sqlgate.gateway.executor import QueryExecutor
from sqlgate.gateway.formatter import ResultFormatter
from sqlgate.gateway.models import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    PageRequest,
    QueryResult,
    Report,
)
from sqlgate.gateway.rewriter import QueryRewriter
from sqlgate.gateway.validator import SafetyValidator, ValidationResult
from sqlgate.logging_config import get_logger

logger = get_logger(__name__)


class QueryGateway:
    """
    Safe, paginated, cached SQL execution.

    One instance (and so one cache) is meant to be shared by all requests.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        cache: QueryCache | None = None,
        validator: SafetyValidator | None = None,
        rewriter: QueryRewriter | None = None,
        formatter: ResultFormatter | None = None,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self.executor = executor
        self.cache = cache if cache is not None else QueryCache()
        self.validator = validator or SafetyValidator()
        self.rewriter = rewriter or QueryRewriter()
        self.formatter = formatter or ResultFormatter()
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def execute_query(
        self,
        sql: str,
        page: int | None = None,
        page_size: int | None = None,
        description: str | None = None,
    ) -> Report:
        """
        Validate, paginate and run a SELECT query.

        Args:
            sql: SQL SELECT query
            page: Page number, 1-based (default 1)
            page_size: Rows per page (default 10, max 100)
            description: Natural-language description to cache the SQL under

        Returns:
            Report with the formatted page and pagination metadata, or an
            error report
        """
        logger.info("query_received", sql=sql, page=page, page_size=page_size)

        try:
            safe_sql = self.validator.ensure_safe(sql)

            request = PageRequest.clamp(
                page,
                page_size,
                default_page_size=self.default_page_size,
                max_page_size=self.max_page_size,
            )
            clean_sql = self.rewriter.normalize(safe_sql)

            if description and description.strip():
                self.cache.put(description, clean_sql)

            count_sql = self.rewriter.build_count_query(clean_sql)
            total = self.executor.run_count(count_sql)

            paged_sql = self.rewriter.build_page_query(clean_sql, request)
            rows, elapsed_ms = self.executor.run_page(paged_sql)

            result = QueryResult(
                rows=rows,
                total_count=len(rows) if total is None else total,
                elapsed_ms=elapsed_ms,
            )
            return self.formatter.render_success(result, clean_sql, request)
        except UnsafeQueryError as e:
            logger.warning("query_rejected", sql=sql, reason=e.reason)
            return self.formatter.render_rejected(e.sql, e.reason)
        except ExecutionError as e:
            logger.error("query_failed", sql=sql, error=e.message)
            return self.formatter.render_error(sql or "", e.message)
        except Exception as e:
            logger.error("query_failed_unexpected", sql=sql, error=str(e), exc_info=True)
            return self.formatter.render_error(sql or "", str(e))

    def validate_sql(self, sql: str) -> ValidationResult:
        """Run the safety policy without executing anything."""
        return self.validator.check(sql)

    def get_cached_sql(self, description: str | None) -> Report:
        """Look up SQL previously cached for a description."""
        if description is None or not description.strip():
            return self.formatter.render_blank_description()

        entry = self.cache.get(description)
        if entry is None:
            return self.formatter.render_cache_miss(description)
        return self.formatter.render_cache_hit(entry)

    def list_cached_sqls(self) -> Report:
        """Enumerate cached SQL statements."""
        return self.formatter.render_cache_list(self.cache.list())

    def clear_sql_cache(self) -> Report:
        """Drop every cached SQL statement."""
        return self.formatter.render_cache_cleared(self.cache.clear())
