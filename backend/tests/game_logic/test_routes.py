"""Tests for route valuation helpers."""

from decimal import Decimal

import pytest

from tradeflow_backend.game_logic.catalog import default_catalog
from tradeflow_backend.game_logic.routes import (
    build_segments,
    calculate_route_profit,
    calculate_route_profitability,
    risk_level,
    route_distance,
    travel_hours,
)
from tradeflow_backend.shared.enums import AssetType, MarketCondition
from tradeflow_backend.shared.errors import EconomyValidationError
from tradeflow_backend.shared.value_objects import Position


def test_route_profit_applies_level_and_specialist_bonuses() -> None:
    profit = calculate_route_profit(
        distance=1000,
        base_rate_per_mile=2.5,
        cargo_value_multiplier=1.5,
        asset_level=3,
        specialist_bonus=2,
        market_condition=MarketCondition.NORMAL,
        maintenance_cost_rate=0.1,
    )

    assert profit.base_profit == Decimal(3750)
    assert profit.asset_efficiency_modifier == Decimal("1.4")
    assert profit.total_profit == Decimal(4725)


def test_route_profit_in_boom_market() -> None:
    profit = calculate_route_profit(
        distance=1000,
        base_rate_per_mile=2.5,
        cargo_value_multiplier=1,
        asset_level=0,
        specialist_bonus=0,
        market_condition=MarketCondition.BOOM,
        maintenance_cost_rate=0,
    )

    assert profit.market_condition_modifier == Decimal("1.3")
    assert profit.total_profit == Decimal(3250)


def test_route_profit_is_deterministic() -> None:
    arguments = {
        "distance": 812.37,
        "base_rate_per_mile": 2.5,
        "cargo_value_multiplier": 0.4,
        "asset_level": 2,
        "specialist_bonus": 1,
        "market_condition": MarketCondition.RECESSION,
        "maintenance_cost_rate": 0.05,
        "disaster_penalty": 0.2,
    }

    assert calculate_route_profit(**arguments) == calculate_route_profit(**arguments)


def test_route_profit_orders_market_conditions() -> None:
    totals = [
        calculate_route_profit(
            distance=500,
            base_rate_per_mile=2,
            cargo_value_multiplier=1,
            asset_level=1,
            specialist_bonus=0,
            market_condition=condition,
            maintenance_cost_rate=0,
        ).total_profit
        for condition in (
            MarketCondition.CRISIS,
            MarketCondition.RECESSION,
            MarketCondition.NORMAL,
            MarketCondition.BOOM,
        )
    ]

    assert totals == sorted(totals)
    assert len(set(totals)) == 4


def test_route_profit_applies_disaster_penalty() -> None:
    profit = calculate_route_profit(
        distance=1000,
        base_rate_per_mile=2.5,
        cargo_value_multiplier=1,
        asset_level=0,
        specialist_bonus=0,
        market_condition=MarketCondition.NORMAL,
        maintenance_cost_rate=0,
        disaster_penalty=0.5,
    )

    assert profit.total_profit == Decimal(1250)


@pytest.mark.parametrize(
    "overrides",
    [
        {"distance": -1},
        {"maintenance_cost_rate": 1.5},
        {"disaster_penalty": -0.1},
    ],
)
def test_route_profit_rejects_out_of_range_input(overrides: dict[str, float]) -> None:
    arguments: dict[str, object] = {
        "distance": 100,
        "base_rate_per_mile": 2.5,
        "cargo_value_multiplier": 1,
        "asset_level": 0,
        "specialist_bonus": 0,
        "market_condition": MarketCondition.NORMAL,
        "maintenance_cost_rate": 0,
    }
    arguments.update(overrides)

    with pytest.raises(EconomyValidationError):
        calculate_route_profit(**arguments)


def test_route_distance_sums_legs() -> None:
    positions = [Position(x=0, y=0), Position(x=3, y=4), Position(x=3, y=10)]

    assert route_distance(positions) == pytest.approx(11.0)
    assert route_distance([Position(x=1, y=1)]) == 0


def test_travel_hours_adds_port_time() -> None:
    assert travel_hours(200, 20, AssetType.SHIP) == pytest.approx(16)
    assert travel_hours(900, 450, AssetType.PLANE) == pytest.approx(4)

    with pytest.raises(EconomyValidationError):
        travel_hours(100, 10, AssetType.WAREHOUSE)
    with pytest.raises(EconomyValidationError):
        travel_hours(100, 0, AssetType.SHIP)


def test_risk_level_penalizes_cross_region_legs() -> None:
    catalog = default_catalog()
    shanghai = catalog.location("port-shanghai")
    singapore = catalog.location("port-singapore")
    santos = catalog.location("port-santos")

    local = risk_level(shanghai, singapore, 100)
    distant = risk_level(shanghai, santos, 100)

    assert local == pytest.approx(1)
    assert distant > local


def test_route_profitability_breaks_down_costs() -> None:
    catalog = default_catalog()
    stops = [catalog.location("port-shanghai"), catalog.location("port-rotterdam")]
    segments = build_segments(
        stops, speed=20, fuel_efficiency=4, asset_type=AssetType.SHIP
    )

    result = calculate_route_profitability(
        segments,
        capacity=2000,
        maintenance_cost_per_hour=50,
        asset_type=AssetType.SHIP,
    )

    assert len(segments) == 1
    assert result.costs.port_fees == Decimal(1000)
    assert result.costs.insurance == pytest.approx(
        result.revenue * Decimal("0.05"), abs=Decimal("0.01")
    )
    assert result.net_profit == result.revenue - result.costs.total
    assert result.revenue > 0


def test_route_profitability_charges_more_to_planes() -> None:
    catalog = default_catalog()
    stops = [catalog.location("port-shanghai"), catalog.location("port-rotterdam")]

    ship = calculate_route_profitability(
        build_segments(stops, speed=100, fuel_efficiency=4, asset_type=AssetType.SHIP),
        capacity=400,
        maintenance_cost_per_hour=50,
        asset_type=AssetType.SHIP,
    )
    plane = calculate_route_profitability(
        build_segments(stops, speed=100, fuel_efficiency=4, asset_type=AssetType.PLANE),
        capacity=400,
        maintenance_cost_per_hour=50,
        asset_type=AssetType.PLANE,
    )

    assert plane.costs.fuel > ship.costs.fuel


def test_route_profitability_requires_segments() -> None:
    with pytest.raises(EconomyValidationError):
        calculate_route_profitability(
            (), capacity=100, maintenance_cost_per_hour=1, asset_type=AssetType.SHIP
        )
