"""
Logging configuration.

Single entry point for configuring structured logging. Configuration is read
from arguments first, then from environment variables:

- TRUSTDEBT_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR (default: INFO)
- TRUSTDEBT_LOG_FORMAT: json | console (default: console)
- TRUSTDEBT_LOG_STAGE_DEBUG: comma-separated stage names that always log at DEBUG

Usage:
    from trustdebt.framework.logging import configure_logging
    configure_logging()

    # Or with explicit settings
    configure_logging(level="DEBUG", format="json")
"""

import logging
import os
import sys
from typing import Any, Literal

import structlog
from structlog.types import Processor

from trustdebt.framework.logging.context import add_context_processor

_configured = False


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
    stage_debug: list[str] | None = None,
    force: bool = False,
) -> None:
    """
    Configure structured logging for the application.

    Called once at startup (CLI entry, test session). Subsequent calls are
    no-ops unless force=True.

    Args:
        level: Log level (overrides TRUSTDEBT_LOG_LEVEL)
        format: Output format (overrides TRUSTDEBT_LOG_FORMAT)
        stage_debug: Stage names for verbose debug logging
        force: Reconfigure even if already configured
    """
    global _configured

    if _configured and not force:
        return

    log_level = (level or os.environ.get("TRUSTDEBT_LOG_LEVEL", "INFO")).upper()
    log_format = (format or os.environ.get("TRUSTDEBT_LOG_FORMAT", "console")).lower()

    debug_stages = stage_debug
    if debug_stages is None:
        env_stages = os.environ.get("TRUSTDEBT_LOG_STAGE_DEBUG", "")
        debug_stages = [s.strip() for s in env_stages.split(",") if s.strip()]

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_context_processor,
        structlog.processors.format_exc_info,
        structlog.processors.StackInfoRenderer(),
    ]

    if debug_stages:
        # Runs after add_context_processor so the bound stage name is visible
        processors.insert(processors.index(add_context_processor) + 1, _make_stage_filter(debug_stages, log_level))
    else:
        processors.insert(0, structlog.stdlib.filter_by_level)

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # With a stage filter the structlog processor decides; stdlib must let DEBUG through
    root_level = "DEBUG" if debug_stages else log_level
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, root_level),
        force=True,
    )
    logging.getLogger("trustdebt").setLevel(getattr(logging, root_level))

    _configured = True


def _make_stage_filter(debug_stages: list[str], default_level: str):
    """
    Create a processor that enables DEBUG for specific stages.

    Events from listed stages always pass; others use the default level.
    """
    default_level_num = getattr(logging, default_level)

    def stage_debug_filter(
        logger: Any,
        method_name: str,
        event_dict: dict,
    ) -> dict:
        stage = event_dict.get("stage")
        level_num = getattr(logging, method_name.upper(), logging.DEBUG)

        if stage and stage in debug_stages:
            return event_dict

        if level_num < default_level_num:
            raise structlog.DropEvent

        return event_dict

    return stage_debug_filter


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured
