"""
Trust Debt logging - structured, run-aware logging.

This module provides:
- Structured logging with structlog
- Run/stage context propagation via contextvars
- Timing utilities for stage and store operations
- Environment-based configuration

Usage:
    from trustdebt.framework.logging import get_logger, configure_logging, log_step, set_context

    # Configure once at startup
    configure_logging()

    # Get a logger
    log = get_logger(__name__)

    # Set run context (automatically attached to all logs)
    set_context(run_id="run-3f2a9c0d1e2b", stage="matrix", stage_index=3)

    # Log with timing
    with log_step("matrix.build", categories=45):
        build_matrix()
"""

from trustdebt.framework.logging.config import configure_logging, is_configured
from trustdebt.framework.logging.context import (
    LogContext,
    bind_context,
    clear_context,
    get_context,
    get_logger,
    push_context,
    set_context,
)
from trustdebt.framework.logging.timing import log_db_operation, log_step, timed_block

__all__ = [
    # Configuration
    "configure_logging",
    "is_configured",
    # Context
    "get_logger",
    "set_context",
    "clear_context",
    "get_context",
    "bind_context",
    "push_context",
    "LogContext",
    # Timing
    "log_step",
    "timed_block",
    "log_db_operation",
]
