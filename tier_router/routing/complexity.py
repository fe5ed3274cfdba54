"""Task complexity assessment for provider tier selection.

The ComplexityAssessor maps a task to an integer score in [1, 10] by
starting from a baseline of 5 and applying fixed rule weights:

Type weights (a task has one type, so at most one applies):
- financial_analysis: +4
- strategic_planning: +3
- classification: -3
- validation: -2
- formatting: -2

Attribute weights (always stack on top of the type weight):
- involves_multiple_sources: +2
- requires_reasoning: +1

Score → tier mapping (see router.preferred_tier):
- 8-10: anthropic_opus
- 5-7: anthropic_sonnet
- 1-4: anthropic_haiku
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import structlog

from tier_router.routing.cost import DEFAULT_ESTIMATED_TOKENS, estimate_cost

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Task:
    """A unit of work to be routed.

    Attributes:
        type: Task type tag ("financial_analysis", "classification", ...)
        estimated_tokens: Expected token count (defaults to 500 when unset)
        priority: Caller-defined priority label
        involves_multiple_sources: Task combines several inputs
        requires_reasoning: Task needs multi-step reasoning
    """

    type: str
    estimated_tokens: int | None = None
    priority: str = "normal"
    involves_multiple_sources: bool = False
    requires_reasoning: bool = False

    def __post_init__(self) -> None:
        """Validate token estimate."""
        if self.estimated_tokens is not None and self.estimated_tokens < 1:
            raise ValueError(
                f"estimated_tokens must be positive, got {self.estimated_tokens}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Task:
        """Build a Task from a plain structured value, ignoring unknown keys."""
        return cls(
            type=str(data["type"]),
            estimated_tokens=data.get("estimated_tokens"),
            priority=data.get("priority") or "normal",
            involves_multiple_sources=bool(data.get("involves_multiple_sources")),
            requires_reasoning=bool(data.get("requires_reasoning")),
        )


@dataclass(frozen=True)
class Assessment:
    """Derived scoring result for a single task. Not persisted."""

    type: str
    complexity: int
    estimated_tokens: int
    estimated_cost: Decimal
    priority: str


class ComplexityAssessor:
    """Scores tasks with additive rule weights, clamped to [1, 10]."""

    BASELINE = 5
    MIN_SCORE = 1
    MAX_SCORE = 10

    TYPE_WEIGHTS: dict[str, int] = {
        "financial_analysis": 4,
        "strategic_planning": 3,
        "classification": -3,
        "validation": -2,
        "formatting": -2,
    }

    MULTIPLE_SOURCES_WEIGHT = 2
    REASONING_WEIGHT = 1

    def score(self, task: Task) -> int:
        """Compute the clamped complexity score of a task."""
        score = self.BASELINE
        score += self.TYPE_WEIGHTS.get(task.type, 0)

        if task.involves_multiple_sources:
            score += self.MULTIPLE_SOURCES_WEIGHT
        if task.requires_reasoning:
            score += self.REASONING_WEIGHT

        return min(self.MAX_SCORE, max(self.MIN_SCORE, score))

    def assess(self, task: Task) -> Assessment:
        """Assess a task: complexity, token estimate and projected cost.

        Args:
            task: Task to assess

        Returns:
            Assessment with complexity in [1, 10]
        """
        complexity = self.score(task)
        assessment = Assessment(
            type=task.type,
            complexity=complexity,
            estimated_tokens=task.estimated_tokens or DEFAULT_ESTIMATED_TOKENS,
            estimated_cost=estimate_cost(task, complexity),
            priority=task.priority,
        )

        log.debug(
            "complexity_assessor.assessed",
            task_type=task.type,
            complexity=complexity,
            estimated_tokens=assessment.estimated_tokens,
            estimated_cost=str(assessment.estimated_cost),
        )
        return assessment
