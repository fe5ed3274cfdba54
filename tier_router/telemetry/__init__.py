"""Telemetry package: structured logging configuration and context helpers."""

from __future__ import annotations

from tier_router.telemetry.logging import (
    bind_task_context,
    clear_context,
    configure_logging,
)

__all__ = [
    "bind_task_context",
    "clear_context",
    "configure_logging",
]
