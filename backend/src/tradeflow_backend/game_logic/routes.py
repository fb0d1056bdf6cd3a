"""Route valuation: the profit calculator plus route geometry and costing."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence  # noqa: TC003
from decimal import Decimal

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from tradeflow_backend.game_logic.catalog import Location  # noqa: TC001
from tradeflow_backend.shared.enums import AssetType, MarketCondition
from tradeflow_backend.shared.errors import EconomyValidationError
from tradeflow_backend.shared.value_objects import (
    Numeric,
    Position,
    quantize_money,
    to_decimal,
)

ASSET_LEVEL_STEP = Decimal("0.1")
SPECIALIST_STEP = Decimal("0.05")

CONDITION_PROFIT_MODIFIERS: Mapping[MarketCondition, Decimal] = {
    MarketCondition.CRISIS: Decimal("0.5"),
    MarketCondition.RECESSION: Decimal("0.7"),
    MarketCondition.NORMAL: Decimal(1),
    MarketCondition.BOOM: Decimal("1.3"),
}

FUEL_COST_PER_UNIT = Decimal("2.5")
PORT_FEE_BASE = Decimal(500)
CREW_COST_PER_HOUR = Decimal(100)
INSURANCE_RATE = Decimal("0.05")
CARGO_VALUE_PER_UNIT = Decimal(10)
DISTANCE_BONUS_RATE = Decimal("0.001")
PLANE_FUEL_MULTIPLIER = Decimal("1.5")
PLANE_OPERATIONAL_MULTIPLIER = Decimal("1.3")
PORT_HOURS: Mapping[AssetType, float] = {AssetType.SHIP: 6, AssetType.PLANE: 2}

MAX_DISTANCE_RISK = 20.0
CROSS_REGION_RISK = 15.0
SMALL_PORT_RISK = 10.0
MEDIUM_PORT_RISK = 5.0
MAX_RISK = 50.0


def market_condition_profit_modifier(condition: MarketCondition) -> Decimal:
    """Return the route profit multiplier for a market condition."""
    return CONDITION_PROFIT_MODIFIERS[condition]


class RouteProfit(BaseModel):
    """Breakdown returned by :func:`calculate_route_profit`."""

    model_config = ConfigDict(frozen=True)

    base_profit: Decimal
    asset_efficiency_modifier: Decimal
    market_condition_modifier: Decimal
    maintenance_cost_modifier: Decimal
    total_profit: Decimal


def _require_fraction(value: Decimal, label: str) -> None:
    if not Decimal(0) <= value <= Decimal(1):
        msg = f"{label} must be between 0 and 1, got {value}."
        raise EconomyValidationError(msg)


def _require_non_negative(value: Decimal, label: str) -> None:
    if value < 0:
        msg = f"{label} must not be negative, got {value}."
        raise EconomyValidationError(msg)


def calculate_route_profit(
    distance: Numeric,
    base_rate_per_mile: Numeric,
    cargo_value_multiplier: Numeric,
    asset_level: int,
    specialist_bonus: Numeric,
    market_condition: MarketCondition,
    maintenance_cost_rate: Numeric,
    disaster_penalty: Numeric = 0,
) -> RouteProfit:
    """Value a single trip along a route.

    ``total = distance * rate * cargo * efficiency * condition
    * (1 - maintenance) * (1 - disaster)`` where efficiency is
    ``1 + level * 0.1 + specialist * 0.05``. The function is pure.
    """
    distance_value = to_decimal(distance)
    rate = to_decimal(base_rate_per_mile)
    cargo = to_decimal(cargo_value_multiplier)
    specialist = to_decimal(specialist_bonus)
    maintenance = to_decimal(maintenance_cost_rate)
    penalty = to_decimal(disaster_penalty)

    _require_non_negative(distance_value, "Distance")
    _require_non_negative(rate, "Base rate per mile")
    _require_non_negative(cargo, "Cargo value multiplier")
    _require_non_negative(Decimal(asset_level), "Asset level")
    _require_fraction(maintenance, "Maintenance cost rate")
    _require_fraction(penalty, "Disaster penalty")

    base_profit = distance_value * rate * cargo
    efficiency = 1 + asset_level * ASSET_LEVEL_STEP + specialist * SPECIALIST_STEP
    condition = market_condition_profit_modifier(market_condition)
    maintenance_modifier = 1 - maintenance
    total = base_profit * efficiency * condition * maintenance_modifier * (1 - penalty)
    return RouteProfit(
        base_profit=base_profit,
        asset_efficiency_modifier=efficiency,
        market_condition_modifier=condition,
        maintenance_cost_modifier=maintenance_modifier,
        total_profit=quantize_money(total),
    )


def route_distance(positions: Iterable[Position]) -> float:
    """Return the length of the polyline through *positions*."""
    total = 0.0
    previous: Position | None = None
    for position in positions:
        if previous is not None:
            total += previous.distance_to(position)
        previous = position
    return total


def _port_hours(asset_type: AssetType) -> float:
    try:
        return PORT_HOURS[asset_type]
    except KeyError:
        msg = f"Asset type {asset_type} cannot travel routes."
        raise EconomyValidationError(msg) from None


def travel_hours(distance: float, speed: float, asset_type: AssetType) -> float:
    """Return sailing or flight time plus loading time at port."""
    if speed <= 0:
        msg = "Speed must be positive to compute travel time."
        raise EconomyValidationError(msg)
    return distance / speed + _port_hours(asset_type)


def fuel_cost(distance: float, fuel_efficiency: float, asset_type: AssetType) -> Decimal:
    """Return the fuel bill for covering *distance*."""
    if fuel_efficiency <= 0:
        msg = "Fuel efficiency must be positive to compute fuel cost."
        raise EconomyValidationError(msg)
    _port_hours(asset_type)
    units = to_decimal(distance) / to_decimal(fuel_efficiency)
    if asset_type is AssetType.PLANE:
        units *= PLANE_FUEL_MULTIPLIER
    return units * FUEL_COST_PER_UNIT


def risk_level(origin: Location, destination: Location, distance: float) -> float:
    """Return the percentage risk of a leg between two locations."""
    risk = min(distance / 100, MAX_DISTANCE_RISK)
    if origin.region != destination.region:
        risk += CROSS_REGION_RISK
    average_capacity = (origin.capacity + destination.capacity) / 2
    if average_capacity < 1000:
        risk += SMALL_PORT_RISK
    elif average_capacity < 5000:
        risk += MEDIUM_PORT_RISK
    return min(risk, MAX_RISK)


class RouteSegment(BaseModel):
    """Single leg between two consecutive stops."""

    model_config = ConfigDict(frozen=True)

    origin_id: str
    destination_id: str
    distance: float = Field(..., ge=0)
    estimated_hours: float = Field(..., ge=0)
    fuel_cost: Decimal
    risk_level: float = Field(..., ge=0, le=MAX_RISK)


def calculate_route_segment(
    origin: Location,
    destination: Location,
    *,
    speed: float,
    fuel_efficiency: float,
    asset_type: AssetType,
) -> RouteSegment:
    """Compute distance, time, fuel and risk for one leg."""
    distance = origin.position.distance_to(destination.position)
    return RouteSegment(
        origin_id=origin.identifier,
        destination_id=destination.identifier,
        distance=distance,
        estimated_hours=travel_hours(distance, speed, asset_type),
        fuel_cost=fuel_cost(distance, fuel_efficiency, asset_type),
        risk_level=risk_level(origin, destination, distance),
    )


def build_segments(
    stops: Sequence[Location],
    *,
    speed: float,
    fuel_efficiency: float,
    asset_type: AssetType,
) -> tuple[RouteSegment, ...]:
    """Compute a segment for every consecutive pair of *stops*."""
    return tuple(
        calculate_route_segment(
            origin,
            destination,
            speed=speed,
            fuel_efficiency=fuel_efficiency,
            asset_type=asset_type,
        )
        for origin, destination in zip(stops, stops[1:], strict=False)
    )


class RouteCosts(BaseModel):
    """Cost breakdown of a full route run."""

    model_config = ConfigDict(frozen=True)

    fuel: Decimal
    maintenance: Decimal
    port_fees: Decimal
    crew: Decimal
    insurance: Decimal

    @property
    def total(self) -> Decimal:
        """Return the sum of every cost line."""
        return self.fuel + self.maintenance + self.port_fees + self.crew + self.insurance


class RouteProfitability(BaseModel):
    """Revenue, costs and derived returns of a full route run."""

    model_config = ConfigDict(frozen=True)

    revenue: Decimal
    costs: RouteCosts
    net_profit: Decimal
    profit_margin: Decimal
    roi: Decimal
    profit_per_day: Decimal


def calculate_route_profitability(
    segments: Sequence[RouteSegment],
    *,
    capacity: int,
    maintenance_cost_per_hour: Numeric,
    asset_type: AssetType,
) -> RouteProfitability:
    """Value a complete run over *segments* for an asset of *capacity*."""
    if not segments:
        msg = "A route needs at least one segment to be valued."
        raise EconomyValidationError(msg)
    if capacity < 0:
        msg = "Capacity must not be negative."
        raise EconomyValidationError(msg)
    _port_hours(asset_type)

    total_distance = to_decimal(sum(segment.distance for segment in segments))
    total_hours = to_decimal(sum(segment.estimated_hours for segment in segments))
    max_risk = to_decimal(max(segment.risk_level for segment in segments))

    base_revenue = capacity * CARGO_VALUE_PER_UNIT
    distance_bonus = total_distance * DISTANCE_BONUS_RATE
    risk_multiplier = 1 + max_risk / 100
    revenue = base_revenue * (1 + distance_bonus) * risk_multiplier

    operational = PLANE_OPERATIONAL_MULTIPLIER if asset_type is AssetType.PLANE else Decimal(1)
    costs = RouteCosts(
        fuel=quantize_money(sum((segment.fuel_cost for segment in segments), Decimal(0))),
        maintenance=quantize_money(
            to_decimal(maintenance_cost_per_hour) * total_hours * operational
        ),
        port_fees=quantize_money(PORT_FEE_BASE * (len(segments) + 1)),
        crew=quantize_money(CREW_COST_PER_HOUR * total_hours * operational),
        insurance=quantize_money(revenue * INSURANCE_RATE),
    )
    revenue = quantize_money(revenue)
    net_profit = revenue - costs.total
    margin = net_profit / revenue * 100 if revenue > 0 else Decimal(0)
    roi = net_profit / costs.total * 100 if costs.total > 0 else Decimal(0)
    per_day = net_profit / total_hours * 24 if total_hours > 0 else Decimal(0)
    return RouteProfitability(
        revenue=revenue,
        costs=costs,
        net_profit=net_profit,
        profit_margin=margin.quantize(Decimal("0.01")),
        roi=roi.quantize(Decimal("0.01")),
        profit_per_day=quantize_money(per_day),
    )


__all__ = [
    "CONDITION_PROFIT_MODIFIERS",
    "RouteCosts",
    "RouteProfit",
    "RouteProfitability",
    "RouteSegment",
    "build_segments",
    "calculate_route_profit",
    "calculate_route_profitability",
    "calculate_route_segment",
    "fuel_cost",
    "market_condition_profit_modifier",
    "risk_level",
    "route_distance",
    "travel_hours",
]
