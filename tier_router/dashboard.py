"""Dashboard data - spend against budget, per tier and in total.

Reads the usage log (one ``[API] ...`` line per completed call) and
produces a JSON-serializable report with four sections:

- summary: total requests and cost today against the daily budget
- providers: per-tier requests, cost, budget utilisation and status
- costs: cost share of each tier
- alerts: EXCEEDED / WARNING notices, or a single all-clear entry

Status labels:
- EXCEEDED: spend >= budget
- WARNING: spend >= warning_ratio * budget (80% by default)
- OK: otherwise

Unparseable log lines are skipped; they do not count as requests.

Usage:
    generator = DashboardGenerator.from_settings(settings)
    data = generator.generate()
    generator.write("logs/dashboard-data.json")
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from tier_router.routing.providers import ProviderTier
from tier_router.usage_log import UsageLine, UsageLog, parse_usage_line

if TYPE_CHECKING:
    from tier_router.config import Settings

log = structlog.get_logger(__name__)

STATUS_OK = "OK"
STATUS_WARNING = "WARNING"
STATUS_EXCEEDED = "EXCEEDED"

DEFAULT_DAILY_BUDGET = Decimal("4.50")
DEFAULT_TIER_BUDGETS: dict[str, Decimal] = {
    ProviderTier.OPUS.value: Decimal("2.00"),
    ProviderTier.SONNET.value: Decimal("1.50"),
    ProviderTier.HAIKU.value: Decimal("1.00"),
}
DEFAULT_WARNING_RATIO = Decimal("0.8")

DISPLAY_NAMES: dict[str, str] = {
    ProviderTier.OPUS.value: "Opus 4.5",
    ProviderTier.SONNET.value: "Sonnet 4.5",
    ProviderTier.HAIKU.value: "Haiku 4.5",
}


@dataclass
class ProviderStats:
    """Aggregated usage of one tier."""

    key: str
    name: str
    daily_budget: Decimal
    requests_today: int = 0
    cost_today: Decimal = Decimal("0")


def budget_status(spent: Decimal, budget: Decimal, warning_ratio: Decimal) -> str:
    """Classify spend against a budget."""
    if spent >= budget:
        return STATUS_EXCEEDED
    if spent >= budget * warning_ratio:
        return STATUS_WARNING
    return STATUS_OK


def _money(amount: Decimal) -> float:
    return float(amount.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP))


def _percent(part: Decimal, whole: Decimal) -> float:
    if whole <= 0:
        return 0.0
    return float((part / whole * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class DashboardGenerator:
    """Builds dashboard data from the usage log."""

    def __init__(
        self,
        usage_log: UsageLog,
        daily_budget: Decimal = DEFAULT_DAILY_BUDGET,
        tier_budgets: Mapping[str, Decimal] | None = None,
        warning_ratio: Decimal = DEFAULT_WARNING_RATIO,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._usage_log = usage_log
        self._daily_budget = daily_budget
        self._tier_budgets = dict(tier_budgets or DEFAULT_TIER_BUDGETS)
        self._warning_ratio = warning_ratio
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, log_path: str | Path | None = None) -> DashboardGenerator:
        return cls(
            UsageLog(log_path or settings.usage_log_path),
            daily_budget=settings.dashboard_daily_budget,
            tier_budgets=settings.dashboard_tier_budgets,
            warning_ratio=settings.dashboard_warning_ratio,
        )

    def generate(self) -> dict[str, Any]:
        """Generate the full dashboard report."""
        entries = self.read_entries()
        summary = self.generate_summary(entries)
        stats = self._aggregate(entries)

        data = {
            "timestamp": self._clock().isoformat(),
            "summary": summary,
            "providers": self._render_stats(stats),
            "costs": self.generate_cost_breakdown(stats),
            "alerts": self.generate_alerts(summary, stats),
        }

        log.info(
            "dashboard.generated",
            requests=summary["total_requests_today"],
            total_cost=summary["total_cost_today"],
            status=summary["status"],
            alerts=len(data["alerts"]),
        )
        return data

    def write(self, output_path: str | Path) -> dict[str, Any]:
        """Generate the report and write it as JSON."""
        data = self.generate()
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        log.info("dashboard.written", path=str(path))
        return data

    def read_entries(self) -> list[UsageLine]:
        """Parse the usage log, skipping malformed lines."""
        entries: list[UsageLine] = []
        skipped = 0
        for line in self._usage_log.read_lines():
            entry = parse_usage_line(line)
            if entry is None:
                skipped += 1
                continue
            entries.append(entry)

        if skipped:
            log.debug("dashboard.malformed_lines_skipped", count=skipped)
        return entries

    def generate_summary(self, entries: list[UsageLine]) -> dict[str, Any]:
        total = sum((entry.cost for entry in entries), Decimal("0"))
        return {
            "total_requests_today": len(entries),
            "total_cost_today": _money(total),
            "daily_budget": float(self._daily_budget),
            "budget_remaining": _money(self._daily_budget - total),
            "budget_percentage": _percent(total, self._daily_budget),
            "status": budget_status(total, self._daily_budget, self._warning_ratio),
        }

    def generate_provider_stats(self, entries: list[UsageLine]) -> dict[str, dict[str, Any]]:
        return self._render_stats(self._aggregate(entries))

    def generate_cost_breakdown(self, stats: dict[str, ProviderStats]) -> dict[str, Any]:
        # Costs are rounded per tier first so the shares add up to the shown total
        rounded = {s.name: Decimal(str(_money(s.cost_today))) for s in stats.values()}
        total = sum(rounded.values(), Decimal("0"))

        by_provider = {
            name: {"cost": float(cost), "percentage": _percent(cost, total)}
            for name, cost in rounded.items()
        }
        return {"by_provider": by_provider, "total": _money(total)}

    def generate_alerts(
        self, summary: dict[str, Any], stats: dict[str, ProviderStats]
    ) -> list[dict[str, str]]:
        alerts: list[dict[str, str]] = []
        warning_pct = int(self._warning_ratio * 100)

        spent_line = (
            f"Spent: ${summary['total_cost_today']} / Budget: ${summary['daily_budget']}"
        )
        if summary["status"] == STATUS_EXCEEDED:
            alerts.append(
                {"level": "error", "message": "Daily budget exceeded", "description": spent_line}
            )
        elif summary["status"] == STATUS_WARNING:
            alerts.append(
                {
                    "level": "warning",
                    "message": f"{warning_pct}% of daily budget used",
                    "description": spent_line,
                }
            )

        for s in stats.values():
            status = budget_status(s.cost_today, s.daily_budget, self._warning_ratio)
            description = f"Spent: ${_money(s.cost_today)} / Budget: ${float(s.daily_budget)}"
            if status == STATUS_EXCEEDED:
                alerts.append(
                    {
                        "level": "error",
                        "message": f"{s.name} budget exceeded",
                        "description": description,
                    }
                )
            elif status == STATUS_WARNING:
                alerts.append(
                    {
                        "level": "warning",
                        "message": f"{s.name} at {warning_pct}% of budget",
                        "description": description,
                    }
                )

        if not alerts:
            alerts.append(
                {
                    "level": "success",
                    "message": "All clear",
                    "description": (
                        f"{summary['total_requests_today']} requests processed, "
                        f"${summary['total_cost_today']} spent"
                    ),
                }
            )
        return alerts

    def _aggregate(self, entries: list[UsageLine]) -> dict[str, ProviderStats]:
        stats = {
            key: ProviderStats(key=key, name=DISPLAY_NAMES.get(key, key), daily_budget=budget)
            for key, budget in self._tier_budgets.items()
        }
        for entry in entries:
            # Providers without a dashboard budget only count towards the summary
            s = stats.get(entry.provider)
            if s is None:
                continue
            s.requests_today += 1
            s.cost_today += entry.cost
        return stats

    def _render_stats(self, stats: dict[str, ProviderStats]) -> dict[str, dict[str, Any]]:
        return {
            key: {
                "name": s.name,
                "requests_today": s.requests_today,
                "cost_today": _money(s.cost_today),
                "daily_budget": float(s.daily_budget),
                "budget_percentage": _percent(s.cost_today, s.daily_budget),
                "status": budget_status(s.cost_today, s.daily_budget, self._warning_ratio),
            }
            for key, s in stats.items()
        }
