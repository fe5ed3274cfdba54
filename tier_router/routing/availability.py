"""Availability gate: is a provider within its quotas right now?

A provider fails the gate when it has spent its daily budget or used up
its per-minute request allowance. The budget is checked first so that a
provider failing both reports the budget as the reason.

The gate only reads configuration and usage; it never mutates either, so
repeated checks without an intervening record() give the same answer.
Logging of failures is left to the caller (the router turns GateResults
into routing events).
"""

from __future__ import annotations

from dataclasses import dataclass

from tier_router.routing.providers import ProviderTier, RouterConfig
from tier_router.routing.usage import UsageTracker

BUDGET_EXCEEDED = "daily_budget_exceeded"
RATE_LIMITED = "rate_limit_exceeded"


@dataclass(frozen=True)
class GateResult:
    """Outcome of a single gate check.

    Attributes:
        provider: Provider that was checked
        available: True if the provider is within all quotas
        reason: Why the check failed (None when available)
    """

    provider: ProviderTier
    available: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.available


class AvailabilityGate:
    """Checks providers against their daily budget and rate limit."""

    def __init__(self, config: RouterConfig, usage: UsageTracker) -> None:
        self._config = config
        self._usage = usage

    def check(self, key: ProviderTier | str) -> GateResult:
        """Check a provider's current usage against its quotas.

        Raises:
            UnknownProviderError: If the provider is not configured or tracked
        """
        provider = self._config.provider(key)
        usage = self._usage.get(provider.key)
        quotas = provider.quotas

        if usage.daily_spend >= quotas.daily_budget:
            return GateResult(provider.key, False, BUDGET_EXCEEDED)

        if usage.requests_this_minute >= quotas.requests_per_minute:
            return GateResult(provider.key, False, RATE_LIMITED)

        return GateResult(provider.key, True)

    def is_available(self, key: ProviderTier | str) -> bool:
        return self.check(key).available
