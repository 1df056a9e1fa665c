"""
Unit tests for the QueryGateway.

Runs the whole pipeline (validate, cache, rewrite, count, page, format)
against the seeded in-memory SQLite database.
"""

from unittest.mock import MagicMock, patch

import pytest

from sqlgate.gateway import QueryGateway
from sqlgate.gateway.errors import ExecutionError
from sqlgate.gateway.formatter import DIAGNOSTIC_HINTS
from sqlgate.gateway.models import PageRequest, QueryResult, Report
from sqlgate.gateway.validator import REJECTION_MESSAGE


# ─────────────────────────────────────────────────────────────────────────────
# Test: Successful Execution
# ─────────────────────────────────────────────────────────────────────────────

class TestExecuteQuery:
    """Happy-path pagination."""

    def test_first_page(self, gateway):
        """Test: 25 rows with page size 10 give three pages."""
        report = gateway.execute_query("select name, total from orders", page=1, page_size=10)

        assert report.success is True
        assert report.error is None
        p = report.pagination
        assert (p.current, p.page_size, p.total, p.total_pages, p.has_prev, p.has_next) == (
            1, 10, 25, 3, False, True,
        )
        assert len(report.table.data_source) == 10
        assert "order-01" in report.body
        assert "order-11" not in report.body
        assert "- Next page: page=2" in report.body

    def test_last_page_is_partial(self, gateway):
        report = gateway.execute_query(
            "SELECT name FROM orders ORDER BY id", page=3, page_size=10
        )

        assert len(report.table.data_source) == 5
        assert report.table.data_source[0] == {"name": "order-21"}
        assert report.pagination.has_next is False
        assert report.pagination.has_prev is True

    def test_page_past_the_end(self, gateway):
        report = gateway.execute_query("SELECT name FROM orders", page=10, page_size=10)

        assert report.success is True
        assert report.table.data_source == []
        assert report.pagination.total == 25
        assert "no data on this page" in report.body

    def test_trailing_semicolons_are_removed(self, gateway):
        report = gateway.execute_query("SELECT name FROM orders;;", page=1, page_size=5)

        assert report.success is True
        assert report.sql == "SELECT name FROM orders"

    def test_existing_limit_is_replaced(self, gateway):
        report = gateway.execute_query(
            "SELECT name FROM orders ORDER BY id LIMIT 3", page=2, page_size=10
        )

        assert report.success is True
        assert len(report.table.data_source) == 10
        assert report.table.data_source[0] == {"name": "order-11"}
        assert report.sql.endswith("LIMIT 3")

    def test_group_by_counts_groups(self, gateway):
        """Test: Grouped queries count groups, not underlying rows."""
        report = gateway.execute_query(
            "SELECT region, COUNT(*) AS n FROM orders GROUP BY region", page_size=10
        )

        assert report.success is True
        assert report.pagination.total == 3
        assert len(report.table.data_source) == 3

    def test_nulls_render_as_null(self, gateway):
        report = gateway.execute_query("SELECT id, region FROM orders WHERE id = 5")

        assert "NULL" in report.body
        assert report.table.data_source == [{"id": 5, "region": None}]

    def test_defaults_apply(self, gateway):
        report = gateway.execute_query("SELECT id FROM orders")

        assert report.pagination.current == 1
        assert report.pagination.page_size == 10


# ─────────────────────────────────────────────────────────────────────────────
# Test: Clamping
# ─────────────────────────────────────────────────────────────────────────────

class TestClamping:
    """Out-of-range pagination input is clamped, never rejected."""

    def test_oversized_page_size(self, gateway):
        report = gateway.execute_query("SELECT id FROM orders", page=1, page_size=500)

        assert report.pagination.page_size == 100
        assert report.pagination.total_pages == 1
        assert len(report.table.data_source) == 25

    @pytest.mark.parametrize("page_size", [0, -1])
    def test_non_positive_page_size(self, gateway, page_size):
        report = gateway.execute_query("SELECT id FROM orders", page=1, page_size=page_size)
        assert report.pagination.page_size == 10

    @pytest.mark.parametrize("page", [0, -4])
    def test_non_positive_page(self, gateway, page):
        report = gateway.execute_query("SELECT id FROM orders", page=page, page_size=10)

        assert report.pagination.current == 1
        assert report.pagination.has_prev is False

    def test_custom_bounds(self, executor):
        gateway = QueryGateway(executor=executor, default_page_size=4, max_page_size=6)

        assert gateway.execute_query("SELECT id FROM orders").pagination.page_size == 4
        assert (
            gateway.execute_query("SELECT id FROM orders", page_size=50).pagination.page_size
            == 6
        )


# ─────────────────────────────────────────────────────────────────────────────
# Test: Failures
# ─────────────────────────────────────────────────────────────────────────────

class TestFailures:
    """Error handling inside execute_query."""

    def test_count_failure_falls_back_to_row_count(self, gateway):
        """Test: A broken count query still yields a successful page."""
        # The count rewrite cuts at the sub-select's FROM and is invalid SQL
        sql = "SELECT name, (SELECT MAX(total) FROM orders) AS top FROM orders"

        report = gateway.execute_query(sql, page=1, page_size=10)

        assert report.success is True
        assert report.pagination.total == 10
        assert report.pagination.total_pages == 1
        assert len(report.table.data_source) == 10

    def test_count_none_falls_back_to_row_count(self, gateway):
        with patch.object(gateway.executor, "run_count", return_value=None):
            report = gateway.execute_query("SELECT id FROM orders", page=3, page_size=10)

        assert report.success is True
        assert report.pagination.total == 5

    def test_page_failure_returns_error_report(self, gateway):
        sql = "SELECT nope FROM orders;"

        report = gateway.execute_query(sql, page=1, page_size=10)

        assert report.success is False
        assert report.pagination is None
        assert report.sql == sql
        assert "nope" in report.error
        assert f"```sql\n{sql}\n```" in report.body
        for hint in DIAGNOSTIC_HINTS:
            assert hint in report.body

    def test_execution_error_message_is_reported(self, gateway):
        with patch.object(
            gateway.executor,
            "run_page",
            side_effect=ExecutionError("Access denied for table orders"),
        ):
            report = gateway.execute_query("SELECT id FROM orders")

        assert report.success is False
        assert report.error == "Access denied for table orders"

    def test_unexpected_exception_is_reported(self, gateway):
        with patch.object(
            gateway.rewriter, "build_count_query", side_effect=RuntimeError("boom")
        ):
            report = gateway.execute_query("SELECT id FROM orders")

        assert report.success is False
        assert report.error == "boom"

    def test_deeply_nested_select_returns_a_report(self, gateway):
        """Test: Parser limits in the warning pass never escape."""
        sql = "SELECT " + "(" * 300 + "1" + ")" * 300 + " AS v FROM orders"

        report = gateway.execute_query(sql, page_size=5)

        assert isinstance(report, Report)
        assert REJECTION_MESSAGE not in report.body

    def test_long_in_list_executes(self, gateway):
        ids = ", ".join(str(i) for i in range(20000))

        report = gateway.execute_query(f"SELECT id FROM orders WHERE id IN ({ids})")

        assert report.success is True
        assert report.pagination.total == 25

    def test_validator_failure_is_reported(self, gateway):
        with patch.object(
            gateway.validator, "ensure_safe", side_effect=RuntimeError("parser exploded")
        ):
            report = gateway.execute_query("SELECT id FROM orders")

        assert report.success is False
        assert report.error == "parser exploded"

    def test_page_result_reaches_formatter(self, gateway):
        with patch.object(
            gateway.formatter, "render_success", wraps=gateway.formatter.render_success
        ) as render:
            gateway.execute_query("SELECT id FROM orders", page=2, page_size=10)

        result, sql, request = render.call_args.args
        assert isinstance(result, QueryResult)
        assert result.total_count == 25
        assert result.columns == ["id"]
        assert len(result.rows) == 10
        assert sql == "SELECT id FROM orders"
        assert request == PageRequest(page=2, page_size=10)


# ─────────────────────────────────────────────────────────────────────────────
# Test: Rejection
# ─────────────────────────────────────────────────────────────────────────────

class TestRejection:
    """Unsafe queries never reach the executor."""

    @pytest.fixture
    def guarded(self, cache):
        executor = MagicMock()
        return QueryGateway(executor=executor, cache=cache), executor

    @pytest.mark.parametrize(
        "sql, reason",
        [
            ("DELETE FROM orders", "only SELECT statements are allowed"),
            ("  with x as (select 1) select * from x", "only SELECT statements are allowed"),
            ("SELECT * FROM orders; DROP TABLE orders", "forbidden keyword: DROP"),
            ("SELECT created_on FROM orders", "forbidden keyword: CREATE"),
            ("", "empty query"),
            ("   ", "empty query"),
            (None, "empty query"),
        ],
    )
    def test_rejected(self, guarded, sql, reason):
        gateway, executor = guarded

        report = gateway.execute_query(sql, description="should not be cached")

        assert report.success is False
        assert report.error == reason
        assert REJECTION_MESSAGE in report.body
        assert report.pagination is None
        executor.run_count.assert_not_called()
        executor.run_page.assert_not_called()
        assert len(gateway.cache) == 0

    def test_rejected_none_has_empty_sql(self, guarded):
        gateway, _ = guarded
        assert gateway.execute_query(None).sql == ""

    def test_table_survives_injection_attempt(self, gateway):
        gateway.execute_query("SELECT * FROM orders; DROP TABLE orders")

        report = gateway.execute_query("SELECT id FROM orders")
        assert report.pagination.total == 25


# ─────────────────────────────────────────────────────────────────────────────
# Test: Caching
# ─────────────────────────────────────────────────────────────────────────────

class TestCaching:
    """Description-keyed SQL caching through the gateway."""

    def test_description_caches_normalized_sql(self, gateway):
        gateway.execute_query("SELECT name FROM orders;", description="Order names")

        entry = gateway.cache.get("order names")
        assert entry.sql == "SELECT name FROM orders"
        assert entry.original_description == "Order names"

    def test_no_description_caches_nothing(self, gateway):
        gateway.execute_query("SELECT name FROM orders")
        assert len(gateway.cache) == 0

    def test_blank_description_caches_nothing(self, gateway):
        gateway.execute_query("SELECT name FROM orders", description="   ")
        assert len(gateway.cache) == 0

    def test_failing_query_is_still_cached(self, gateway):
        """Test: Caching happens before execution."""
        gateway.execute_query("SELECT nope FROM orders", description="broken")
        assert gateway.cache.get("broken").sql == "SELECT nope FROM orders"

    def test_get_cached_sql_hit(self, gateway):
        gateway.execute_query("SELECT name FROM orders", description="Order names")

        report = gateway.get_cached_sql("  ORDER names!  ")

        assert report.success is True
        assert report.sql == "SELECT name FROM orders"
        assert "Order names" in report.body

    def test_get_cached_sql_miss(self, gateway):
        report = gateway.get_cached_sql("unknown")

        assert report.success is False
        assert "No cached SQL found" in report.body

    @pytest.mark.parametrize("description", ["", "  ", None])
    def test_get_cached_sql_blank(self, gateway, description):
        report = gateway.get_cached_sql(description)

        assert report.success is False
        assert report.error == "Query description must not be empty"

    def test_list_and_clear(self, gateway):
        gateway.execute_query("SELECT id FROM orders", description="ids")
        gateway.execute_query("SELECT name FROM orders", description="names")

        listing = gateway.list_cached_sqls()
        assert "Description: ids" in listing.body
        assert "Description: names" in listing.body
        assert "2 cached entries" in listing.body

        cleared = gateway.clear_sql_cache()
        assert "removed 2 entries" in cleared.body
        assert "No cached SQL statements" in gateway.list_cached_sqls().body
        assert gateway.get_cached_sql("ids").success is False


# ─────────────────────────────────────────────────────────────────────────────
# Test: Validation Only
# ─────────────────────────────────────────────────────────────────────────────

class TestValidateSql:

    def test_valid_with_warnings(self, gateway):
        result = gateway.validate_sql("SELECT * FROM orders LIMIT 5")

        assert result.valid is True
        assert result.reason is None
        assert len(result.warnings) == 2

    def test_invalid(self, gateway):
        result = gateway.validate_sql("UPDATE orders SET total = 0")

        assert result.valid is False
        assert result.reason == "only SELECT statements are allowed"
