"""Daily-compounding profit projection."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from tradeflow_backend.shared.value_objects import quantize_money

DAYS_PER_YEAR = 365


class GrowthParameters(BaseModel):
    """Inputs to :func:`calculate_compounding_growth`; rates are annual."""

    model_config = ConfigDict(frozen=True)

    current_profit: Decimal
    base_rate: Decimal
    labor_bonuses: Decimal = Decimal(0)
    ai_bonus: Decimal = Decimal(0)
    disaster_penalties: Decimal = Decimal(0)
    loan_interest_rates: Decimal = Decimal(0)
    time_days: int = Field(..., ge=0)

    @property
    def effective_rate(self) -> Decimal:
        """Return the signed annual rate after bonuses and drags."""
        return (
            self.base_rate
            + self.labor_bonuses
            + self.ai_bonus
            - self.disaster_penalties
            - self.loan_interest_rates
        )


def calculate_compounding_growth(parameters: GrowthParameters) -> Decimal:
    """Project profit forward with daily compounding, rounded to cents."""
    daily_factor = 1 + parameters.effective_rate / DAYS_PER_YEAR
    return quantize_money(parameters.current_profit * daily_factor**parameters.time_days)


__all__ = ["DAYS_PER_YEAR", "GrowthParameters", "calculate_compounding_growth"]
