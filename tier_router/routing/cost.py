"""Projected dollar cost of a task from its estimated token count."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tier_router.routing.complexity import Task

# Currency units per token
INPUT_RATE = Decimal("0.00001")
OUTPUT_RATE = Decimal("0.00002")

DEFAULT_ESTIMATED_TOKENS = 500


def estimate_cost(task: Task, complexity: int) -> Decimal:  # noqa: ARG001
    """Estimate the cost of running a task.

    Assumes output length equals input length. ``complexity`` is accepted
    so tier-dependent pricing can be added without changing callers; it
    does not affect the result today.

    Args:
        task: Task to price
        complexity: Complexity score of the task (currently unused)

    Returns:
        Unrounded cost; round only for display
    """
    tokens = task.estimated_tokens or DEFAULT_ESTIMATED_TOKENS
    return tokens * INPUT_RATE + tokens * OUTPUT_RATE
