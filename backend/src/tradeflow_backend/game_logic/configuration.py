"""Economic configuration objects for sessions and scenarios."""

from __future__ import annotations

from decimal import Decimal
from functools import cache

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class EconomyDefaults(BaseSettings):
    """Load default economic parameters from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRADEFLOW_ECONOMY_",
        extra="ignore",
    )

    starting_cash: Decimal = Field(default=Decimal(100_000), ge=0)
    loan_debt_ratio_ceiling: Decimal = Field(default=Decimal("0.8"), gt=0)
    disaster_penalty_cap: Decimal = Field(default=Decimal("0.5"), ge=0, le=1)
    base_rate_per_mile: Decimal = Field(default=Decimal("2.5"), ge=0)
    cycle_interval_seconds: int = Field(default=60, ge=1)
    competition_pressure: Decimal = Field(default=Decimal("0.1"), ge=0, le=1)
    base_revenue_multiplier: Decimal = Field(default=Decimal(1), ge=0)
    expense_multiplier: Decimal = Field(default=Decimal(1), ge=0)
    price_history_limit: int = Field(default=100, ge=1)
    cycle_history_limit: int = Field(default=100, ge=1)
    event_buffer_limit: int = Field(default=500, ge=1)
    max_assets_per_route: int = Field(default=5, ge=1)
    asset_resale_ratio: Decimal = Field(default=Decimal("0.5"), ge=0, le=1)
    quote_ttl_seconds: int = Field(default=300, ge=1)

    def to_config(self) -> EconomyConfiguration:
        """Convert defaults into an immutable configuration object."""
        return EconomyConfiguration(**self.model_dump())


class ScenarioOverrides(BaseModel):
    """Optional scenario-specific overrides for economic settings."""

    model_config = ConfigDict(frozen=True)

    starting_cash: Decimal | None = Field(default=None, ge=0)
    loan_debt_ratio_ceiling: Decimal | None = Field(default=None, gt=0)
    disaster_penalty_cap: Decimal | None = Field(default=None, ge=0, le=1)
    base_rate_per_mile: Decimal | None = Field(default=None, ge=0)
    cycle_interval_seconds: int | None = Field(default=None, ge=1)
    competition_pressure: Decimal | None = Field(default=None, ge=0, le=1)
    base_revenue_multiplier: Decimal | None = Field(default=None, ge=0)
    expense_multiplier: Decimal | None = Field(default=None, ge=0)
    max_assets_per_route: int | None = Field(default=None, ge=1)
    quote_ttl_seconds: int | None = Field(default=None, ge=1)

    def apply(self, config: EconomyConfiguration) -> EconomyConfiguration:
        """Return a copy of *config* with overrides applied."""
        updates = self.model_dump(exclude_none=True)
        if not updates:
            return config
        return config.model_copy(update=updates)


class EconomyConfiguration(BaseModel):
    """Immutable representation of the economic parameters for a session."""

    model_config = ConfigDict(frozen=True)

    starting_cash: Decimal = Field(ge=0)
    loan_debt_ratio_ceiling: Decimal = Field(gt=0)
    disaster_penalty_cap: Decimal = Field(ge=0, le=1)
    base_rate_per_mile: Decimal = Field(ge=0)
    cycle_interval_seconds: int = Field(ge=1)
    competition_pressure: Decimal = Field(ge=0, le=1)
    base_revenue_multiplier: Decimal = Field(ge=0)
    expense_multiplier: Decimal = Field(ge=0)
    price_history_limit: int = Field(default=100, ge=1)
    cycle_history_limit: int = Field(default=100, ge=1)
    event_buffer_limit: int = Field(default=500, ge=1)
    max_assets_per_route: int = Field(default=5, ge=1)
    asset_resale_ratio: Decimal = Field(default=Decimal("0.5"), ge=0, le=1)
    quote_ttl_seconds: int = Field(default=300, ge=1)

    def for_scenario(
        self, overrides: ScenarioOverrides | None = None
    ) -> EconomyConfiguration:
        """Create a scenario-specific configuration by applying overrides if provided."""
        if overrides is None:
            return self
        return overrides.apply(self)


@cache
def get_default_economy_configuration() -> EconomyConfiguration:
    """Return the cached default economic configuration."""
    return EconomyDefaults().to_config()


def build_scenario_configuration(
    overrides: ScenarioOverrides | None = None,
) -> EconomyConfiguration:
    """Construct a configuration for a scenario, applying optional overrides."""
    defaults = get_default_economy_configuration()
    if overrides is None:
        return defaults
    return overrides.apply(defaults)


__all__ = [
    "EconomyConfiguration",
    "EconomyDefaults",
    "ScenarioOverrides",
    "build_scenario_configuration",
    "get_default_economy_configuration",
]
