"""Exception taxonomy for the tier router.

- ConfigurationError: provider/fallback configuration is malformed. Raised
  at construction time and never recovered from inside the router.
- NoProviderAvailableError: every candidate tier failed the availability
  gate. Fatal for that routing request; the caller decides whether to
  queue, degrade or abort.
- UnknownProviderError: a provider key that is not configured was used.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tier_router.routing.providers import ProviderTier


class TierRouterError(Exception):
    """Base exception for all tier router failures."""


class ConfigurationError(TierRouterError):
    """Provider or routing configuration is missing or malformed."""


class UnknownProviderError(TierRouterError, KeyError):
    """A provider key was used that is not part of the configuration."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class NoProviderAvailableError(TierRouterError):
    """All candidate providers are over budget or rate limited."""

    def __init__(
        self,
        preferred_tier: ProviderTier,
        attempted: list[ProviderTier],
        events: tuple[Any, ...] = (),
    ) -> None:
        self.preferred_tier = preferred_tier
        self.attempted = attempted
        self.events = events
        super().__init__(
            f"No provider available: preferred {preferred_tier.value}, "
            f"attempted {[tier.value for tier in attempted]}"
        )
