"""Per-provider usage accounting.

The UsageTracker holds one UsageRecord per configured provider and is the
only place those counters change. It is an explicitly owned instance:
construct one per process (or per logical session) and pass it to the
router, which makes isolated tests and independent routers trivial.

Counters only ever grow between resets. Resets are lazy: callers invoke
reset_if_elapsed() (the router does so before every routing decision and
before every record) and the tracker compares the clock against the
record's last_reset:

- UTC calendar day changed: zero daily_spend, requests_today, tokens_used
  and requests_this_minute
- UTC wall-clock minute changed: zero requests_this_minute
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from decimal import Decimal

import structlog

from tier_router.exceptions import UnknownProviderError
from tier_router.routing.providers import ProviderTier

log = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class UsageRecord:
    """Usage counters for a single provider.

    Attributes:
        daily_spend: Currency spent since the last day rollover
        requests_this_minute: Requests since the last minute rollover
        requests_today: Requests since the last day rollover
        tokens_used: Tokens consumed since the last day rollover
        last_reset: When counters were last zeroed (UTC)
    """

    daily_spend: Decimal = Decimal("0")
    requests_this_minute: int = 0
    requests_today: int = 0
    tokens_used: int = 0
    last_reset: datetime = field(default_factory=_utcnow)


class UsageTracker:
    """Owns the UsageRecord of every configured provider."""

    def __init__(
        self,
        providers: Iterable[ProviderTier | str],
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize every provider's record to the zero state.

        Args:
            providers: Provider keys to track
            clock: Returns the current UTC time (injectable for tests)
        """
        self._clock = clock
        now = _as_utc(clock())
        self._records: dict[ProviderTier, UsageRecord] = {
            ProviderTier(key): UsageRecord(last_reset=now) for key in providers
        }

        log.info(
            "usage_tracker.initialized",
            providers=[tier.value for tier in self._records],
        )

    @property
    def providers(self) -> list[ProviderTier]:
        return list(self._records)

    def get(self, key: ProviderTier | str) -> UsageRecord:
        """Return the live record for a provider.

        Raises:
            UnknownProviderError: If the provider is not tracked
        """
        try:
            return self._records[ProviderTier(key)]
        except (KeyError, ValueError) as exc:
            raise UnknownProviderError(f"Provider not tracked: {key}") from exc

    def snapshot(self, key: ProviderTier | str) -> UsageRecord:
        """Return a detached copy of a provider's record."""
        return replace(self.get(key))

    def record(self, key: ProviderTier | str, tokens: int, cost: Decimal | float) -> None:
        """Account for one completed provider call.

        Must be called exactly once per completed (or billed) external call.

        Args:
            key: Provider that served the call
            tokens: Tokens consumed by the call
            cost: Currency cost of the call

        Raises:
            UnknownProviderError: If the provider is not tracked
            ValueError: If tokens or cost is negative, or cost is not finite
        """
        cost = _to_decimal(cost)
        if tokens < 0:
            raise ValueError(f"tokens cannot be negative, got {tokens}")
        if cost < 0:
            raise ValueError(f"cost cannot be negative, got {cost}")

        usage = self.get(key)
        usage.daily_spend += cost
        usage.requests_this_minute += 1
        usage.requests_today += 1
        usage.tokens_used += tokens

        log.debug(
            "usage_tracker.usage_recorded",
            provider=ProviderTier(key).value,
            tokens=tokens,
            cost=str(cost),
            daily_spend=str(usage.daily_spend),
            requests_this_minute=usage.requests_this_minute,
            requests_today=usage.requests_today,
        )

    def reset_if_elapsed(self, key: ProviderTier | str, now: datetime | None = None) -> bool:
        """Zero counters whose period has rolled over since last_reset.

        Args:
            key: Provider to check
            now: Current time (defaults to the tracker clock)

        Returns:
            True if any counter was reset

        Raises:
            ValueError: If now is a naive datetime
        """
        now = _as_utc(now or self._clock())
        usage = self.get(key)
        provider = ProviderTier(key).value

        # Clock went backwards; keep counting in the current period
        if now <= usage.last_reset:
            return False

        if now.date() != usage.last_reset.date():
            log.info(
                "usage_tracker.daily_reset",
                provider=provider,
                previous_spend=str(usage.daily_spend),
                previous_requests=usage.requests_today,
            )
            usage.daily_spend = Decimal("0")
            usage.requests_today = 0
            usage.tokens_used = 0
            usage.requests_this_minute = 0
            usage.last_reset = now
            return True

        if _minute_of(now) != _minute_of(usage.last_reset):
            if usage.requests_this_minute:
                log.debug(
                    "usage_tracker.minute_reset",
                    provider=provider,
                    previous_requests=usage.requests_this_minute,
                )
            usage.requests_this_minute = 0
            usage.last_reset = now
            return True

        return False

    def reset_all_if_elapsed(self, now: datetime | None = None) -> list[ProviderTier]:
        """Run reset_if_elapsed for every provider.

        Returns:
            Providers whose counters were reset
        """
        now = _as_utc(now or self._clock())
        return [tier for tier in self._records if self.reset_if_elapsed(tier, now)]


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None or moment.utcoffset() is None:
        raise ValueError(f"timestamp must be timezone-aware, got {moment.isoformat()}")
    return moment.astimezone(UTC)


def _minute_of(moment: datetime) -> datetime:
    return moment.replace(second=0, microsecond=0)


def _to_decimal(value: Decimal | float | int) -> Decimal:
    # str() keeps 0.1 as 0.1 instead of its binary expansion
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    if not amount.is_finite():
        raise ValueError(f"cost must be a finite amount, got {value}")
    return amount
