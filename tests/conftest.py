"""
Shared test fixtures for pytest.

Provides common configuration and state for all test modules:
- config_data: Plain provider configuration mapping
- router_config: Validated RouterConfig built from config_data
- clock: Controllable UTC clock for reset tests
- tracker: UsageTracker driven by the fake clock
- router: TierRouter wired to tracker
- exhaust_budget / saturate_rate: Helpers that gate a provider
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

import pytest

from tier_router.routing import ProviderTier, RouterConfig, TierRouter, UsageTracker
from tier_router.telemetry import clear_context


# ------------------------------------------------------------------ #
# Fake clock
# ------------------------------------------------------------------ #


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


START = datetime(2026, 10, 19, 12, 0, 30, tzinfo=UTC)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(START)


# ------------------------------------------------------------------ #
# Configuration
# ------------------------------------------------------------------ #


@pytest.fixture
def config_data() -> dict[str, Any]:
    """Provider configuration as the loader would hand it over."""
    return {
        "providers": {
            "anthropic_opus": {
                "name": "Opus 4.5",
                "model": "claude-opus-4-5",
                "quotas": {"daily_budget": 2.0, "requests_per_minute": 5},
            },
            "anthropic_sonnet": {
                "name": "Sonnet 4.5",
                "model": "claude-sonnet-4-5",
                "quotas": {"daily_budget": 1.5, "requests_per_minute": 10},
            },
            "anthropic_haiku": {
                "name": "Haiku 4.5",
                "model": "claude-haiku-4-5",
                "quotas": {"daily_budget": 1.0, "requests_per_minute": 20},
            },
        },
        "routing": {"fallback_chain": ["anthropic_sonnet", "anthropic_haiku"]},
    }


@pytest.fixture
def router_config(config_data: dict[str, Any]) -> RouterConfig:
    return RouterConfig.from_mapping(config_data)


@pytest.fixture
def tracker(router_config: RouterConfig, clock: FakeClock) -> UsageTracker:
    return UsageTracker(router_config.providers, clock=clock)


@pytest.fixture
def router(router_config: RouterConfig, tracker: UsageTracker) -> TierRouter:
    return TierRouter(router_config, usage=tracker)


# ------------------------------------------------------------------ #
# Gating helpers
# ------------------------------------------------------------------ #


@pytest.fixture
def exhaust_budget(router_config: RouterConfig, tracker: UsageTracker):
    """Return a helper that spends a provider's whole daily budget."""

    def _exhaust(tier: ProviderTier) -> None:
        budget = router_config.provider(tier).quotas.daily_budget
        tracker.get(tier).daily_spend = Decimal(budget)

    return _exhaust


@pytest.fixture
def saturate_rate(router_config: RouterConfig, tracker: UsageTracker):
    """Return a helper that uses up a provider's per-minute requests."""

    def _saturate(tier: ProviderTier) -> None:
        rpm = router_config.provider(tier).quotas.requests_per_minute
        tracker.get(tier).requests_this_minute = rpm

    return _saturate


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Keep structlog contextvars from leaking between tests."""
    yield
    clear_context()
