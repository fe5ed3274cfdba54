"""Tests for ComplexityAssessor and Task.

Tests cover:
- Baseline score for tasks without special attributes
- Type weights (positive and negative)
- Attribute weights stacking on type weights
- Clamping to [1, 10]
- Assessment defaults (tokens, priority, cost)
- Task.from_dict and validation
"""

from __future__ import annotations

import itertools
from decimal import Decimal

import pytest

from tier_router.routing.complexity import Assessment, ComplexityAssessor, Task


@pytest.fixture
def assessor() -> ComplexityAssessor:
    return ComplexityAssessor()


# ------------------------------------------------------------------ #
# Scoring
# ------------------------------------------------------------------ #


def test_plain_task_scores_baseline(assessor):
    """A task with no special fields scores exactly 5."""
    assert assessor.score(Task(type="data_extraction")) == 5


@pytest.mark.parametrize(
    ("task_type", "expected"),
    [
        ("financial_analysis", 9),
        ("strategic_planning", 8),
        ("classification", 2),
        ("validation", 3),
        ("formatting", 3),
        ("unknown_type", 5),
    ],
)
def test_type_weights(assessor, task_type, expected):
    """Each known type applies its fixed weight to the baseline."""
    assert assessor.score(Task(type=task_type)) == expected


def test_attribute_weights_stack_on_type(assessor):
    """Boolean attributes add on top of the type weight."""
    task = Task(type="validation", involves_multiple_sources=True, requires_reasoning=True)
    assert assessor.score(task) == 5 - 2 + 2 + 1


def test_score_clamped_to_ten(assessor):
    """financial_analysis + both attributes is 12 raw, clamped to 10."""
    task = Task(
        type="financial_analysis",
        involves_multiple_sources=True,
        requires_reasoning=True,
    )
    assert assessor.score(task) == 10


def test_score_always_within_bounds(assessor):
    """Every combination of inputs lands in [1, 10]."""
    types = [*ComplexityAssessor.TYPE_WEIGHTS, "other"]
    for task_type, multi, reasoning in itertools.product(types, (False, True), (False, True)):
        task = Task(type=task_type, involves_multiple_sources=multi, requires_reasoning=reasoning)
        assert 1 <= assessor.score(task) <= 10


def test_score_clamped_to_one_with_custom_weights():
    """A heavily negative weight is clamped to the minimum score."""

    class HarshAssessor(ComplexityAssessor):
        TYPE_WEIGHTS = {"trivial": -20}

    assert HarshAssessor().score(Task(type="trivial")) == 1


# ------------------------------------------------------------------ #
# Assessment
# ------------------------------------------------------------------ #


def test_assess_fills_defaults(assessor):
    """Missing tokens default to 500 and priority to normal."""
    assessment = assessor.assess(Task(type="classification"))

    assert isinstance(assessment, Assessment)
    assert assessment.type == "classification"
    assert assessment.complexity == 2
    assert assessment.estimated_tokens == 500
    assert assessment.priority == "normal"
    assert assessment.estimated_cost == Decimal("0.015")


def test_assess_uses_task_tokens_and_priority(assessor):
    assessment = assessor.assess(
        Task(type="strategic_planning", estimated_tokens=2000, priority="high")
    )

    assert assessment.complexity == 8
    assert assessment.estimated_tokens == 2000
    assert assessment.priority == "high"
    assert assessment.estimated_cost == Decimal("0.06")


def test_assess_has_no_side_effects(assessor):
    """Assessing the same task twice gives equal results."""
    task = Task(type="formatting", estimated_tokens=200)
    assert assessor.assess(task) == assessor.assess(task)


# ------------------------------------------------------------------ #
# Task
# ------------------------------------------------------------------ #


def test_task_from_dict_ignores_unknown_keys():
    task = Task.from_dict(
        {
            "type": "financial_analysis",
            "estimated_tokens": 2000,
            "involves_multiple_sources": 1,
            "requires_reasoning": True,
            "customer": "acme",
        }
    )

    assert task == Task(
        type="financial_analysis",
        estimated_tokens=2000,
        involves_multiple_sources=True,
        requires_reasoning=True,
    )


def test_task_from_dict_defaults():
    task = Task.from_dict({"type": "validation", "priority": None})
    assert task.priority == "normal"
    assert task.estimated_tokens is None
    assert task.involves_multiple_sources is False


def test_task_rejects_non_positive_tokens():
    with pytest.raises(ValueError, match="estimated_tokens must be positive"):
        Task(type="formatting", estimated_tokens=0)


def test_task_is_immutable():
    task = Task(type="formatting")
    with pytest.raises(AttributeError):
        task.type = "classification"  # type: ignore[misc]
