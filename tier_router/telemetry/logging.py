"""Structured logging configuration.

Configures structlog with JSON output in production and a coloured
console renderer in development.

Features:
- Dotted event names per component ("tier_router.route_selected")
- Logger name, level and ISO8601 UTC timestamps on every entry
- Task context (task_type, priority) bound through contextvars
- Stack traces for exceptions

Log format (production):
    {
        "timestamp": "2026-10-19T10:30:45.123456Z",
        "level": "warning",
        "logger": "tier_router.routing.router",
        "event": "tier_router.provider_unavailable",
        "provider": "anthropic_opus",
        "reason": "daily_budget_exceeded",
        "task_type": "financial_analysis"
    }
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor


def configure_logging(
    *,
    json_logs: bool = False,
    log_level: str = "INFO",
) -> None:
    """Configure structured logging for the application.

    Args:
        json_logs: Use JSON format (True for production, False for dev)
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    # Logs go to stderr so CLI output on stdout stays machine-readable
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.RichTracebackFormatter(),
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ------------------------------------------------------------------ #
# Context Binding Helpers
# ------------------------------------------------------------------ #


def bind_task_context(task_type: str, priority: str = "normal") -> None:
    """Bind task context to logs for this routing request.

    Args:
        task_type: Task type tag
        priority: Task priority label
    """
    structlog.contextvars.bind_contextvars(task_type=task_type, priority=priority)


def clear_context() -> None:
    """Clear all context variables (useful for testing)."""
    structlog.contextvars.clear_contextvars()
