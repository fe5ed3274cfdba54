"""Provider tier routing with quota-aware fallback.

This package selects which LLM provider tier handles a task based on:
- Heuristic task complexity (ComplexityAssessor, 1-10 score)
- Per-provider daily budget and per-minute rate limit (AvailabilityGate)
- An ordered fallback chain when the preferred tier is gated

Usage counters live in an explicitly owned UsageTracker; callers report
completed calls back through TierRouter.log_api_call.
"""

from __future__ import annotations

from tier_router.routing.availability import AvailabilityGate, GateResult
from tier_router.routing.complexity import Assessment, ComplexityAssessor, Task
from tier_router.routing.cost import estimate_cost
from tier_router.routing.providers import (
    ProviderConfig,
    ProviderQuotas,
    ProviderTier,
    RouterConfig,
    RoutingConfig,
)
from tier_router.routing.router import (
    RoutingDecision,
    RoutingEvent,
    RoutingEventKind,
    TierRouter,
    preferred_tier,
)
from tier_router.routing.usage import UsageRecord, UsageTracker

__all__ = [
    "Assessment",
    "AvailabilityGate",
    "ComplexityAssessor",
    "GateResult",
    "ProviderConfig",
    "ProviderQuotas",
    "ProviderTier",
    "RouterConfig",
    "RoutingConfig",
    "RoutingDecision",
    "RoutingEvent",
    "RoutingEventKind",
    "Task",
    "TierRouter",
    "UsageRecord",
    "UsageTracker",
    "estimate_cost",
    "preferred_tier",
]
