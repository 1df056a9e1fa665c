"""
SQL Gateway MCP Server.

MCP server that exposes tools for:
1. execute_query: Run a validated SELECT with pagination and SQL caching
2. get_cached_sql / list_cached_sqls / clear_sql_cache: SQL cache access
3. get_database_tables / get_database_structure: Static schema reference
4. validate_sql: Check a query against the safety policy

Uses FastMCP for simple server definition.

Usage:
    # STDIO mode (development)
    python -m sqlgate.server

    # SSE mode
    sqlgate-server --transport sse --port 8080
"""

import argparse
from typing import Any

from mcp.server.fastmcp import FastMCP
from sqlalchemy.engine import Engine

from sqlgate.config import settings
from sqlgate.database import dispose_engine, get_readonly_engine
from sqlgate.gateway import (
    QueryCache,
    QueryExecutor,
    QueryGateway,
    QueryRewriter,
    ResultFormatter,
)
from sqlgate.logging_config import configure_logging, get_logger
from sqlgate.reference import ReferenceDocs

logger = get_logger(__name__)

mcp = FastMCP(
    settings.server_name,
    instructions=(
        "Read-only SQL gateway. Look up the schema with get_database_tables and "
        "get_database_structure, reuse SQL with get_cached_sql, then run SELECT "
        "queries page by page with execute_query."
    ),
)

# Built on first use so importing this module never touches the database
_gateway: QueryGateway | None = None

reference_docs = ReferenceDocs(
    tables_path=settings.reference_tables_path,
    structure_path=settings.reference_structure_path,
)


def build_gateway(engine: Engine | None = None) -> QueryGateway:
    """Assemble a gateway from settings."""
    engine = engine or get_readonly_engine()
    return QueryGateway(
        executor=QueryExecutor(engine),
        cache=QueryCache(),
        rewriter=QueryRewriter.for_dialect(engine.dialect.name),
        formatter=ResultFormatter(
            max_column_width=settings.max_column_width,
            truncate_to=settings.truncate_to,
            sql_summary_length=settings.sql_summary_length,
        ),
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )


def get_gateway() -> QueryGateway:
    """Get or create the shared gateway."""
    global _gateway
    if _gateway is None:
        _gateway = build_gateway()
    return _gateway


# =============================================================================
# TOOLS
# =============================================================================

@mcp.tool()
def execute_query(
    sql: str,
    page: int | None = None,
    page_size: int | None = None,
    query_description: str | None = None,
) -> dict[str, Any]:
    """
    Execute a SQL SELECT query and return one page of formatted results.

    Security measures:
    - Only SELECT statements allowed
    - Modifying keywords (INSERT, UPDATE, DELETE, DROP, ...) are rejected

    Args:
        sql: SQL SELECT query to execute
        page: Page number starting at 1 (default 1)
        page_size: Rows per page (default 10, max 100)
        query_description: Natural-language description; when given, the SQL
            is cached under it for get_cached_sql

    Returns:
        dict with: success, sql, body, pagination, table, error, elapsed_ms
    """
    return get_gateway().execute_query(
        sql, page=page, page_size=page_size, description=query_description
    ).to_dict()


@mcp.tool()
def get_cached_sql(query_description: str) -> dict[str, Any]:
    """
    Get SQL previously generated for a query description.

    Use this before generating new SQL; if nothing is cached, generate SQL
    and pass the description to execute_query so it gets cached.

    Args:
        query_description: Natural-language description of the query

    Returns:
        dict with: success (False when not cached), sql, body
    """
    return get_gateway().get_cached_sql(query_description).to_dict()


@mcp.tool()
def clear_sql_cache() -> dict[str, Any]:
    """Remove every cached SQL statement and report how many were removed."""
    return get_gateway().clear_sql_cache().to_dict()


@mcp.tool()
def list_cached_sqls() -> dict[str, Any]:
    """List all cached SQL statements with their descriptions."""
    return get_gateway().list_cached_sqls().to_dict()


@mcp.tool()
def validate_sql(sql: str) -> dict[str, Any]:
    """
    Check a SQL query against the safety policy without executing it.

    Args:
        sql: SQL query to validate

    Returns:
        dict with: valid, reason, warnings
    """
    result = get_gateway().validate_sql(sql)
    return {
        "valid": result.valid,
        "reason": result.reason,
        "warnings": result.warnings,
    }


@mcp.tool()
def get_database_tables() -> str:
    """Get the predefined list of queryable tables with descriptions."""
    return reference_docs.tables()


@mcp.tool()
def get_database_structure() -> str:
    """Get the predefined column-level structure of the queryable tables."""
    return reference_docs.structure()


# =============================================================================
# MAIN
# =============================================================================

def main():
    """Run the MCP server."""
    parser = argparse.ArgumentParser(description="SQL Gateway MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default=settings.transport,
        help="Transport mode (stdio for dev, sse for prod)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.http_port,
        help="HTTP port (for sse transport)",
    )

    args = parser.parse_args()

    configure_logging()
    logger.info("server_starting", transport=args.transport, port=args.port)

    try:
        if args.transport == "stdio":
            mcp.run(transport="stdio")
        else:
            mcp.settings.port = args.port
            mcp.run(transport="sse")
    finally:
        dispose_engine()
        logger.info("server_stopped")


if __name__ == "__main__":
    main()
