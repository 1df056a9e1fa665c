"""
Database engine management.

The gateway only ever reads, so a single lazily built engine bound to the
read-only account is shared by every request.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from sqlgate.config import settings
from sqlgate.logging_config import get_logger

logger = get_logger(__name__)

# Lazy-loaded engine
_readonly_engine: Engine | None = None


def _connect_args() -> dict:
    """Driver-specific connection arguments (timeouts)."""
    timeout = settings.db_connect_timeout_seconds
    dialect = settings.database_dialect
    if dialect == "postgresql":
        return {
            "connect_timeout": timeout,
            "options": f"-c statement_timeout={timeout * 1000}",
        }
    if dialect == "mysql":
        return {"connection_timeout": timeout}
    return {}


def get_readonly_engine() -> Engine:
    """Get or create the read-only database engine."""
    global _readonly_engine
    if _readonly_engine is None:
        kwargs = {
            "pool_pre_ping": True,
            "echo": settings.db_echo,
            "connect_args": _connect_args(),
        }
        if settings.database_dialect != "sqlite":
            kwargs["pool_size"] = settings.db_pool_size
        _readonly_engine = create_engine(settings.database_url, **kwargs)
        logger.info(
            "readonly_engine_created",
            dialect=settings.database_dialect,
            pool_size=kwargs.get("pool_size"),
        )
    return _readonly_engine


def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    global _readonly_engine
    if _readonly_engine is not None:
        _readonly_engine.dispose()
        _readonly_engine = None
        logger.info("readonly_engine_disposed")
