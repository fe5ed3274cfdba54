"""Tests for DashboardGenerator.

Coverage:
  - Summary totals and status thresholds
  - Per-tier stats, budget percentages and statuses
  - Cost breakdown shares
  - Alerts (error / warning / all clear)
  - Malformed and unknown-provider lines
  - JSON output file
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

import pytest

from tier_router.config import Settings
from tier_router.dashboard import (
    STATUS_EXCEEDED,
    STATUS_OK,
    STATUS_WARNING,
    DashboardGenerator,
    budget_status,
)
from tier_router.usage_log import UsageLog

FIXED_NOW = datetime(2026, 10, 19, 18, 0, tzinfo=UTC)


@pytest.fixture
def usage_log(tmp_path: Path) -> UsageLog:
    return UsageLog(tmp_path / "api-calls.log")


@pytest.fixture
def generator(usage_log: UsageLog) -> DashboardGenerator:
    return DashboardGenerator(usage_log, clock=lambda: FIXED_NOW)


def _write(usage_log: UsageLog, *lines: str) -> None:
    usage_log.path.write_text("\n".join(lines) + "\n", encoding="utf-8")


# ------------------------------------------------------------------ #
# budget_status
# ------------------------------------------------------------------ #


@pytest.mark.parametrize(
    ("spent", "expected"),
    [
        ("0", STATUS_OK),
        ("1.59", STATUS_OK),
        ("1.6", STATUS_WARNING),
        ("1.99", STATUS_WARNING),
        ("2.0", STATUS_EXCEEDED),
        ("3.0", STATUS_EXCEEDED),
    ],
)
def test_budget_status_thresholds(spent, expected):
    assert budget_status(Decimal(spent), Decimal("2.0"), Decimal("0.8")) == expected


# ------------------------------------------------------------------ #
# Report
# ------------------------------------------------------------------ #


def test_empty_log_reports_all_clear(generator):
    data = generator.generate()

    assert data["timestamp"] == FIXED_NOW.isoformat()
    assert data["summary"] == {
        "total_requests_today": 0,
        "total_cost_today": 0.0,
        "daily_budget": 4.5,
        "budget_remaining": 4.5,
        "budget_percentage": 0.0,
        "status": STATUS_OK,
    }
    assert data["costs"]["total"] == 0.0
    assert data["costs"]["by_provider"]["Opus 4.5"] == {"cost": 0.0, "percentage": 0}
    assert data["alerts"] == [
        {
            "level": "success",
            "message": "All clear",
            "description": "0 requests processed, $0.0 spent",
        }
    ]


def test_warning_and_exceeded_report(generator, usage_log):
    _write(
        usage_log,
        "[API] anthropic_opus: 50000 tokens, $1.7000",
        "[API] anthropic_sonnet: 30000 tokens, $1.0000",
        "garbage line",
        "[API] anthropic_haiku: 30000 tokens, $1.0000",
    )

    data = generator.generate()

    assert data["summary"] == {
        "total_requests_today": 3,
        "total_cost_today": 3.7,
        "daily_budget": 4.5,
        "budget_remaining": 0.8,
        "budget_percentage": 82.2,
        "status": STATUS_WARNING,
    }
    assert data["providers"]["anthropic_opus"] == {
        "name": "Opus 4.5",
        "requests_today": 1,
        "cost_today": 1.7,
        "daily_budget": 2.0,
        "budget_percentage": 85.0,
        "status": STATUS_WARNING,
    }
    assert data["providers"]["anthropic_sonnet"]["status"] == STATUS_OK
    assert data["providers"]["anthropic_sonnet"]["budget_percentage"] == 66.7
    assert data["providers"]["anthropic_haiku"]["status"] == STATUS_EXCEEDED
    assert data["providers"]["anthropic_haiku"]["budget_percentage"] == 100.0

    assert data["costs"] == {
        "by_provider": {
            "Opus 4.5": {"cost": 1.7, "percentage": 45.9},
            "Sonnet 4.5": {"cost": 1.0, "percentage": 27.0},
            "Haiku 4.5": {"cost": 1.0, "percentage": 27.0},
        },
        "total": 3.7,
    }

    assert [(a["level"], a["message"]) for a in data["alerts"]] == [
        ("warning", "80% of daily budget used"),
        ("warning", "Opus 4.5 at 80% of budget"),
        ("error", "Haiku 4.5 budget exceeded"),
    ]
    assert data["alerts"][0]["description"] == "Spent: $3.7 / Budget: $4.5"


def test_total_budget_exceeded(generator, usage_log):
    _write(
        usage_log,
        "[API] anthropic_opus: 1 tokens, $2.5000",
        "[API] anthropic_sonnet: 1 tokens, $2.0000",
    )

    data = generator.generate()

    assert data["summary"]["status"] == STATUS_EXCEEDED
    assert data["summary"]["budget_remaining"] == 0.0
    assert data["alerts"][0] == {
        "level": "error",
        "message": "Daily budget exceeded",
        "description": "Spent: $4.5 / Budget: $4.5",
    }


def test_unknown_provider_counts_in_summary_only(generator, usage_log):
    _write(
        usage_log,
        "[API] openai_gpt4: 100 tokens, $0.5000",
        "[API] anthropic_haiku: 100 tokens, $0.0030",
    )

    data = generator.generate()

    assert data["summary"]["total_requests_today"] == 2
    assert data["summary"]["total_cost_today"] == 0.503
    assert "openai_gpt4" not in data["providers"]
    assert data["costs"]["total"] == 0.003


def test_undecodable_bytes_are_skipped(generator, usage_log):
    """A corrupt line in the log does not take the whole report down."""
    usage_log.path.write_bytes(
        b"[API] anthropic_haiku: 10 tokens, $0.0003\n"
        b"\xff\xfe garbage\n"
        b"[API] anthropic_sonnet: 20 tokens, $0.0006\n"
    )

    data = generator.generate()

    assert data["summary"]["total_requests_today"] == 2
    assert data["summary"]["total_cost_today"] == 0.0009
    assert data["providers"]["anthropic_haiku"]["requests_today"] == 1
    assert data["providers"]["anthropic_sonnet"]["requests_today"] == 1


def test_custom_budgets(usage_log):
    _write(usage_log, "[API] anthropic_haiku: 100 tokens, $0.6000")
    generator = DashboardGenerator(
        usage_log,
        daily_budget=Decimal("1"),
        tier_budgets={"anthropic_haiku": Decimal("0.5")},
        warning_ratio=Decimal("0.5"),
    )

    data = generator.generate()

    assert list(data["providers"]) == ["anthropic_haiku"]
    assert data["providers"]["anthropic_haiku"]["status"] == STATUS_EXCEEDED
    assert data["summary"]["status"] == STATUS_WARNING
    assert data["alerts"][0]["message"] == "50% of daily budget used"


def test_from_settings(tmp_path: Path):
    log_path = tmp_path / "calls.log"
    log_path.write_text("[API] anthropic_opus: 1 tokens, $1.0000\n", encoding="utf-8")
    settings = Settings(usage_log_path=str(log_path), dashboard_daily_budget=Decimal("2"))

    data = DashboardGenerator.from_settings(settings).generate()

    assert data["summary"]["daily_budget"] == 2.0
    assert data["summary"]["budget_percentage"] == 50.0


def test_write_outputs_json(generator, usage_log, tmp_path: Path):
    _write(usage_log, "[API] anthropic_sonnet: 1500 tokens, $0.0450")
    output = tmp_path / "out" / "dashboard-data.json"

    data = generator.write(output)

    assert json.loads(output.read_text(encoding="utf-8")) == data
    assert data["providers"]["anthropic_sonnet"]["requests_today"] == 1
