"""
Structured logging configuration using structlog.

Every module logs snake_case events with context, e.g.
``logger.info("page_executed", rows=10, elapsed_ms=12)``.
Output always goes to stderr: under the stdio MCP transport stdout carries
the protocol stream.
"""

import logging
import sys

import structlog

from sqlgate.config import settings

# Libraries that log every statement or message at INFO
NOISY_LOGGERS = ("sqlalchemy.engine", "mcp.server.lowlevel.server")

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Configure structured logging for the gateway.

    Args:
        log_level: Overrides ``settings.log_level``
        log_format: ``json`` or ``console``; overrides ``settings.log_format``
    """
    level = getattr(logging, (log_level or settings.log_level).upper())

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, _renderer(log_format or settings.log_format)],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    # db_echo turns SQLAlchemy's statement log back on
    for name in NOISY_LOGGERS:
        if name == "sqlalchemy.engine" and settings.db_echo:
            continue
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the module)
    """
    return structlog.get_logger(name)
