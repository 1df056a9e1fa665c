"""
Pytest configuration and fixtures for the SQL gateway test suite.

Provides:
- An in-memory SQLite engine seeded with an ``orders`` table
- Gateway fixtures wired to that engine
- Row-building helpers
"""

import os
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

# Set test environment before importing gateway modules
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FORMAT", "console")

from sqlgate.gateway import (  # noqa: E402
    CellValue,
    QueryCache,
    QueryExecutor,
    QueryGateway,
    QueryRewriter,
)

ORDER_COUNT = 25


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="function")
def engine():
    """
    In-memory SQLite engine with a seeded ``orders`` table.

    SQLite accepts ``LIMIT <offset>, <count>``, so page queries run unchanged.
    StaticPool keeps every connection on the same in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    with engine.begin() as conn:
        conn.exec_driver_sql(
            """
            CREATE TABLE orders (
                id INTEGER PRIMARY KEY,
                name VARCHAR(50) NOT NULL,
                region VARCHAR(20),
                total NUMERIC(10, 2) NOT NULL,
                created_on DATE NOT NULL
            )
            """
        )
        for i in range(1, ORDER_COUNT + 1):
            conn.exec_driver_sql(
                "INSERT INTO orders (id, name, region, total, created_on) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    i,
                    f"order-{i:02d}",
                    None if i % 5 == 0 else ("north" if i % 2 else "south"),
                    i * 10.5,
                    date(2025, 9, i % 28 + 1).isoformat(),
                ),
            )
    yield engine
    engine.dispose()


@pytest.fixture
def executor(engine) -> QueryExecutor:
    return QueryExecutor(engine)


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache()


@pytest.fixture
def gateway(executor, cache) -> QueryGateway:
    """Gateway over the seeded SQLite database."""
    return QueryGateway(
        executor=executor,
        cache=cache,
        rewriter=QueryRewriter.for_dialect("sqlite"),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def make_row(**values) -> dict[str, CellValue]:
    """Build a result row from plain Python values."""
    return {name: CellValue.of(value) for name, value in values.items()}


@pytest.fixture
def sample_rows():
    """Three heterogeneous rows; the last one lacks ``region``."""
    return [
        make_row(name="alice", region="north", total=Decimal("10.50")),
        make_row(name="bob", region=None, total=7),
        make_row(name="carol", total=3.25),
    ]
