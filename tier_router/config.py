"""
Application configuration via pydantic-settings.

Settings are loaded from environment variables prefixed with
``TIER_ROUTER_`` (or a .env file in dev). Provider quotas and the fallback
chain are NOT settings: they live in the provider configuration file
pointed to by ``providers_config_path`` (see tier_router.loader).
"""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    DEV = "dev"
    PROD = "prod"
    TEST = "test"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TIER_ROUTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Application
    # ------------------------------------------------------------------ #
    environment: Environment = Environment.DEV
    log_level: str = Field(
        default="INFO",
        description="Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=False,
        description="Render logs as JSON. Forced on in production.",
    )

    # ------------------------------------------------------------------ #
    # Files
    # ------------------------------------------------------------------ #
    providers_config_path: str = Field(
        default="config/llm-providers.json",
        description="Provider quotas and fallback chain (.json, .yaml or .yml)",
    )
    usage_log_path: str = Field(
        default="logs/api-calls.log",
        description="Append-only usage log consumed by the dashboard",
    )
    dashboard_output_path: str = Field(
        default="logs/dashboard-data.json",
        description="Where the dashboard command writes its JSON report",
    )

    # ------------------------------------------------------------------ #
    # Dashboard budgets
    # ------------------------------------------------------------------ #
    dashboard_daily_budget: Decimal = Field(
        default=Decimal("4.50"),
        gt=0,
        description="Total daily budget across all tiers",
    )
    dashboard_tier_budgets: dict[str, Decimal] = Field(
        default={
            "anthropic_opus": Decimal("2.00"),
            "anthropic_sonnet": Decimal("1.50"),
            "anthropic_haiku": Decimal("1.00"),
        },
        description="Per-tier daily budgets used for dashboard status",
    )
    dashboard_warning_ratio: Decimal = Field(
        default=Decimal("0.8"),
        gt=0,
        le=1,
        description="Fraction of a budget at which status becomes WARNING",
    )

    # ------------------------------------------------------------------ #
    # Derived / Computed
    # ------------------------------------------------------------------ #
    @model_validator(mode="after")
    def _json_logs_in_prod(self) -> Settings:
        if self.environment == Environment.PROD:
            self.json_logs = True
        return self

    @model_validator(mode="after")
    def _validate_log_level(self) -> Settings:
        level = self.log_level.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {self.log_level}")
        self.log_level = level
        return self

    @property
    def is_dev(self) -> bool:
        return self.environment in (Environment.DEV, Environment.TEST)

    @property
    def is_prod(self) -> bool:
        return self.environment == Environment.PROD


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings singleton.

    Call directly from entry points (CLI, scripts); pass the instance on
    to components rather than calling this from library code.
    """
    return Settings()
