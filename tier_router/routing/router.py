"""Provider selector - complexity-driven tier choice with quota fallback.

The router picks a provider tier for a task:

1. Assess the task (ComplexityAssessor)
2. Map complexity to a preferred tier (>=8 opus, >=5 sonnet, else haiku)
3. Use the preferred tier if it passes the availability gate
4. Otherwise walk the configured fallback chain in order
5. If nothing passes, raise NoProviderAvailableError (never return a
   gated provider)

Selection itself is pure: it returns the chosen provider plus a list of
RoutingEvents describing gate failures and fallbacks. route() and
select_provider() then emit those events as log warnings.

Callers report completed calls through log_api_call(), which updates the
UsageTracker and appends a usage-log line. The router never records
usage on its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

import structlog

from tier_router.exceptions import ConfigurationError, NoProviderAvailableError
from tier_router.routing.availability import AvailabilityGate
from tier_router.routing.complexity import Assessment, ComplexityAssessor, Task
from tier_router.routing.providers import ProviderConfig, ProviderTier, RouterConfig
from tier_router.routing.usage import UsageTracker
from tier_router.usage_log import UsageLog, format_usage_line

log = structlog.get_logger(__name__)

OPUS_THRESHOLD = 8
SONNET_THRESHOLD = 5


class RoutingEventKind(str, Enum):
    GATE_FAILED = "gate_failed"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class RoutingEvent:
    """Diagnostic event produced while selecting a provider.

    Attributes:
        kind: What happened
        provider: Provider the event refers to
        detail: Gate failure reason, or the fallback description
    """

    kind: RoutingEventKind
    provider: ProviderTier
    detail: str


@dataclass(frozen=True)
class RoutingDecision:
    """Result of routing a single task.

    assessment is None when selection started from an explicit tier.
    """

    provider: ProviderConfig
    preferred_tier: ProviderTier
    assessment: Assessment | None = None
    events: tuple[RoutingEvent, ...] = ()

    @property
    def fallback_used(self) -> bool:
        return self.provider.key != self.preferred_tier


def preferred_tier(complexity: int) -> ProviderTier:
    """Map a complexity score to the preferred provider tier.

    Thresholds are inclusive lower bounds and cover [1, 10] without gaps.
    """
    if complexity >= OPUS_THRESHOLD:
        return ProviderTier.OPUS
    if complexity >= SONNET_THRESHOLD:
        return ProviderTier.SONNET
    return ProviderTier.HAIKU


class TierRouter:
    """Routes tasks to provider tiers within budget and rate limits."""

    def __init__(
        self,
        config: RouterConfig,
        usage: UsageTracker | None = None,
        assessor: ComplexityAssessor | None = None,
        usage_log: UsageLog | None = None,
    ) -> None:
        """Initialize the router.

        Args:
            config: Validated provider and routing configuration
            usage: Usage tracker to read and update. A new one covering
                every configured provider is created when omitted.
            assessor: Complexity assessor (default rules when omitted)
            usage_log: Optional file that receives one line per logged call

        Raises:
            ConfigurationError: If the tracker does not cover every provider
        """
        self._config = config
        self._usage = usage if usage is not None else UsageTracker(config.providers)
        self._assessor = assessor or ComplexityAssessor()
        self._usage_log = usage_log

        untracked = [tier.value for tier in config.providers if tier not in self._usage.providers]
        if untracked:
            raise ConfigurationError(f"Usage tracker does not cover providers: {untracked}")

        self._gate = AvailabilityGate(config, self._usage)

        log.info(
            "tier_router.initialized",
            providers={tier.value: provider.name for tier, provider in config.providers.items()},
            fallback_chain=[tier.value for tier in config.routing.fallback_chain],
        )

    @property
    def config(self) -> RouterConfig:
        return self._config

    @property
    def usage(self) -> UsageTracker:
        return self._usage

    @property
    def gate(self) -> AvailabilityGate:
        return self._gate

    def assess(self, task: Task) -> Assessment:
        return self._assessor.assess(task)

    def route(self, task: Task) -> RoutingDecision:
        """Select the provider for a task.

        Args:
            task: Task to route

        Returns:
            RoutingDecision with the selected provider and diagnostic events

        Raises:
            NoProviderAvailableError: If every candidate is gated
        """
        assessment = self._assessor.assess(task)
        preferred = preferred_tier(assessment.complexity)

        log.info(
            "tier_router.task_assessed",
            task_type=task.type,
            complexity=assessment.complexity,
            preferred_tier=preferred.value,
        )

        provider, events = self._select_logged(preferred)
        decision = RoutingDecision(
            provider=provider,
            preferred_tier=preferred,
            assessment=assessment,
            events=events,
        )

        log.info(
            "tier_router.route_selected",
            task_type=task.type,
            complexity=assessment.complexity,
            preferred_tier=preferred.value,
            selected=provider.key.value,
            fallback_used=decision.fallback_used,
            estimated_cost=str(assessment.estimated_cost),
        )
        return decision

    def select_provider(self, tier: ProviderTier | str) -> RoutingDecision:
        """Select a provider starting from an explicitly chosen tier.

        Returns:
            RoutingDecision without an assessment, carrying the selection events

        Raises:
            NoProviderAvailableError: If the tier and every fallback are gated
        """
        preferred = ProviderTier(tier)
        provider, events = self._select_logged(preferred)
        return RoutingDecision(provider=provider, preferred_tier=preferred, events=events)

    def select(self, preferred: ProviderTier) -> tuple[ProviderConfig, tuple[RoutingEvent, ...]]:
        """Pure selection: preferred tier first, then the fallback chain.

        Does not log. Gate failures and fallbacks are returned as events.

        Raises:
            NoProviderAvailableError: If every candidate is gated
        """
        events: list[RoutingEvent] = []

        result = self._gate.check(preferred)
        if result.available:
            return self._config.provider(preferred), ()
        events.append(RoutingEvent(RoutingEventKind.GATE_FAILED, preferred, result.reason or ""))
        events.append(
            RoutingEvent(RoutingEventKind.FALLBACK, preferred, "preferred tier unavailable")
        )

        attempted = [preferred]
        for candidate in self._config.routing.fallback_chain:
            if candidate == preferred:
                # Already failed above; the gate is idempotent
                continue
            attempted.append(candidate)
            result = self._gate.check(candidate)
            if result.available:
                return self._config.provider(candidate), tuple(events)
            events.append(
                RoutingEvent(RoutingEventKind.GATE_FAILED, candidate, result.reason or "")
            )

        raise NoProviderAvailableError(preferred, attempted, tuple(events))

    def log_api_call(self, provider: ProviderTier | str, tokens: int, cost: Decimal | float) -> str:
        """Report a completed provider call.

        Updates the usage tracker and, when configured, appends a line to the
        usage log. Call exactly once per completed or billed call.

        Returns:
            The usage-log line for this call
        """
        tier = ProviderTier(provider)
        self._usage.reset_if_elapsed(tier)
        self._usage.record(tier, tokens, cost)

        if self._usage_log is not None:
            line = self._usage_log.append(tier.value, tokens, cost)
        else:
            line = format_usage_line(tier.value, tokens, cost)

        log.info("tier_router.api_call", provider=tier.value, tokens=tokens, line=line)
        return line

    def _select_logged(
        self, preferred: ProviderTier
    ) -> tuple[ProviderConfig, tuple[RoutingEvent, ...]]:
        """Apply lazy resets, select, and emit the resulting events."""
        self._usage.reset_all_if_elapsed()
        try:
            provider, events = self.select(preferred)
        except NoProviderAvailableError as exc:
            self._emit(exc.events)
            log.error(
                "tier_router.no_provider_available",
                preferred_tier=preferred.value,
                attempted=[tier.value for tier in exc.attempted],
            )
            raise

        self._emit(events)
        return provider, events

    def _emit(self, events: tuple[RoutingEvent, ...]) -> None:
        for event in events:
            if event.kind is RoutingEventKind.GATE_FAILED:
                log.warning(
                    "tier_router.provider_unavailable",
                    provider=event.provider.value,
                    reason=event.detail,
                )
            else:
                log.warning(
                    "tier_router.fallback",
                    from_tier=event.provider.value,
                    detail=event.detail,
                )
