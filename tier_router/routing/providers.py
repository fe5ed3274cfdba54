"""Provider tiers and the routing configuration contract.

Provider keys form a closed enumeration (ProviderTier). The configuration
maps every tier to its quotas and lists the fallback chain. Validation
happens once, at construction, so the selector never sees a tier it has
no configuration for.

Expected input shape (as produced by the configuration loader)::

    {
        "providers": {
            "anthropic_opus": {
                "name": "Opus 4.5",
                "model": "claude-opus-4-5",
                "quotas": {"daily_budget": 2.0, "requests_per_minute": 50}
            },
            ...
        },
        "routing": {"fallback_chain": ["anthropic_sonnet", "anthropic_haiku"]}
    }
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from tier_router.exceptions import ConfigurationError, UnknownProviderError

log = structlog.get_logger(__name__)


class ProviderTier(str, Enum):
    """Provider quality/cost tiers, most capable first."""

    OPUS = "anthropic_opus"  # Complex reasoning, highest cost
    SONNET = "anthropic_sonnet"  # Balanced default
    HAIKU = "anthropic_haiku"  # Cheap, simple tasks


class ProviderQuotas(BaseModel):
    """Per-provider ceilings on daily spend and request rate."""

    model_config = ConfigDict(frozen=True)

    daily_budget: Decimal = Field(ge=0)
    requests_per_minute: int = Field(gt=0)


class ProviderConfig(BaseModel):
    """Configuration for a single provider tier."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    key: ProviderTier
    name: str
    model: str | None = None
    quotas: ProviderQuotas


class RoutingConfig(BaseModel):
    """Ordered fallback chain tried when the preferred tier is gated."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    fallback_chain: tuple[ProviderTier, ...]


class RouterConfig(BaseModel):
    """Complete, validated provider + routing configuration."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    providers: dict[ProviderTier, ProviderConfig]
    routing: RoutingConfig

    @model_validator(mode="before")
    @classmethod
    def _inject_provider_keys(cls, data: Any) -> Any:
        """Copy each provider's mapping key into its body as ``key``/``name``."""
        if not isinstance(data, Mapping):
            return data
        providers = data.get("providers")
        if not isinstance(providers, Mapping):
            return data

        enriched: dict[Any, Any] = {}
        for key, body in providers.items():
            if isinstance(body, Mapping):
                body = {**body, "key": key}
                body.setdefault("name", getattr(key, "value", key))
            enriched[key] = body
        return {**data, "providers": enriched}

    @model_validator(mode="after")
    def _validate_coverage(self) -> RouterConfig:
        """Every tier and every fallback entry must have a provider config."""
        missing = [tier.value for tier in ProviderTier if tier not in self.providers]
        if missing:
            raise ValueError(f"providers missing configuration for tiers: {missing}")

        unknown = [
            tier.value for tier in self.routing.fallback_chain if tier not in self.providers
        ]
        if unknown:
            raise ValueError(f"fallback_chain references unconfigured providers: {unknown}")
        return self

    @classmethod
    def from_mapping(cls, data: Any) -> RouterConfig:
        """Build a RouterConfig from a plain mapping.

        Raises:
            ConfigurationError: If the structure is malformed or keys are missing
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"Router configuration must be a mapping, got {type(data).__name__}"
            )
        try:
            config = cls.model_validate(data)
        except ValidationError as exc:
            log.error("router_config.invalid", errors=exc.error_count())
            raise ConfigurationError(f"Invalid router configuration: {exc}") from exc

        log.debug(
            "router_config.loaded",
            providers=[tier.value for tier in config.providers],
            fallback_chain=[tier.value for tier in config.routing.fallback_chain],
        )
        return config

    def provider(self, tier: ProviderTier | str) -> ProviderConfig:
        """Look up the configuration for a tier.

        Raises:
            UnknownProviderError: If the tier is not configured
        """
        try:
            return self.providers[ProviderTier(tier)]
        except (KeyError, ValueError) as exc:
            raise UnknownProviderError(f"Unknown provider: {tier}") from exc
