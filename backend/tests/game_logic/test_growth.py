"""Tests for the compounding growth projection."""

from decimal import Decimal

from tradeflow_backend.game_logic.growth import GrowthParameters, calculate_compounding_growth


def test_compounding_growth_matches_reference_value() -> None:
    parameters = GrowthParameters(
        current_profit=Decimal(10_000),
        base_rate=Decimal("0.05"),
        labor_bonuses=Decimal("0.02"),
        ai_bonus=Decimal("0.01"),
        disaster_penalties=Decimal("0.01"),
        loan_interest_rates=Decimal("0.02"),
        time_days=365,
    )

    assert parameters.effective_rate == Decimal("0.05")
    assert calculate_compounding_growth(parameters) == Decimal("10512.67")


def test_zero_days_returns_current_profit() -> None:
    parameters = GrowthParameters(
        current_profit=Decimal("2500.50"), base_rate=Decimal("0.3"), time_days=0
    )

    assert calculate_compounding_growth(parameters) == Decimal("2500.50")


def test_negative_effective_rate_shrinks_profit() -> None:
    parameters = GrowthParameters(
        current_profit=Decimal(10_000),
        base_rate=Decimal("0.01"),
        disaster_penalties=Decimal("0.2"),
        time_days=30,
    )

    assert calculate_compounding_growth(parameters) < Decimal(10_000)
