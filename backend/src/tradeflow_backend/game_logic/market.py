"""Market pricing engine and the atomically published market board."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping  # noqa: TC003
from datetime import UTC, datetime
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict

from tradeflow_backend.game_logic.catalog import (  # noqa: TC001
    MINIMUM_BASE_PRICE,
    Catalog,
    Location,
)
from tradeflow_backend.game_logic.disasters import (
    Disaster,
    TimeEventEffects,
    regional_disaster_multiplier,
)
from tradeflow_backend.game_logic.state import EconomyModifiers
from tradeflow_backend.shared.enums import GoodsCategory, MarketCondition, TradeSide
from tradeflow_backend.shared.errors import ConcurrencyConflictError
from tradeflow_backend.shared.rng import DeterministicRandomService  # noqa: TC001
from tradeflow_backend.shared.value_objects import Numeric, clamp, quantize_money, to_decimal

logger = logging.getLogger(__name__)

PRICE_FLOOR_RATIO = Decimal("0.3")
PRICE_CEILING_RATIO = Decimal(3)
MIN_PRICE_MODIFIER = Decimal("0.4")
MAX_PRICE_MODIFIER = Decimal("2.0")
COST_TO_VOLATILITY_RATIO = Decimal("0.5")
VOLATILITY_RANGE = 0.4

_CENT = Decimal("0.01")

CONDITION_PRICE_MULTIPLIERS: Mapping[MarketCondition, Decimal] = {
    MarketCondition.CRISIS: Decimal("0.6"),
    MarketCondition.RECESSION: Decimal("0.8"),
    MarketCondition.NORMAL: Decimal(1),
    MarketCondition.BOOM: Decimal("1.2"),
}


def condition_price_multiplier(condition: MarketCondition) -> Decimal:
    """Return the price multiplier associated with a market condition."""
    return CONDITION_PRICE_MULTIPLIERS[condition]


def bounded_price(raw: Decimal, base_price: Decimal) -> Decimal:
    """Clamp *raw* to the permitted band around *base_price* and round to cents.

    Rounding never leaves the band: a floor that is not a whole cent is
    rounded up and a ceiling is rounded down.
    """
    lower = base_price * PRICE_FLOOR_RATIO
    upper = base_price * PRICE_CEILING_RATIO
    price = quantize_money(clamp(raw, lower, upper))
    if price < lower:
        return lower.quantize(_CENT, rounding=ROUND_CEILING)
    if price > upper:
        return upper.quantize(_CENT, rounding=ROUND_FLOOR)
    return price


class PricePoint(BaseModel):
    """Historical price observation."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    price: Decimal
    volume: Decimal = Decimal(0)


class Good(BaseModel):
    """Runtime market state for a tradeable commodity."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category: GoodsCategory
    base_price: Decimal = Field(..., ge=MINIMUM_BASE_PRICE)
    current_price: Decimal
    total_supply: Decimal = Field(..., ge=0)
    total_demand: Decimal = Field(..., ge=0)
    volatility: Decimal = Field(default=Decimal(0), ge=0, le=1)
    price_history: tuple[PricePoint, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _validate_price_band(self) -> Good:
        """Ensure the current price stays within the permitted band."""
        lower = self.base_price * PRICE_FLOOR_RATIO
        upper = self.base_price * PRICE_CEILING_RATIO
        if not lower <= self.current_price <= upper:
            msg = (
                f"Price {self.current_price} for {self.identifier} is outside "
                f"[{lower}, {upper}]."
            )
            raise ValueError(msg)
        return self


class MarketState(BaseModel):
    """Global market conditions shared by every good."""

    model_config = ConfigDict(frozen=True)

    condition: MarketCondition = MarketCondition.NORMAL
    volatility_factor: Decimal = Field(default=Decimal(1), ge=0)
    global_demand_modifier: Decimal = Field(default=Decimal(1), ge=0)
    global_supply_modifier: Decimal = Field(default=Decimal(1), ge=0)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))


class MarketDynamics(BaseModel):
    """Optional drift applied to supply and demand on every price update."""

    model_config = ConfigDict(frozen=True)

    supply_growth_rate: Decimal = Decimal(0)
    demand_volatility: Decimal = Field(default=Decimal(0), ge=0)


def goods_from_catalog(catalog: Catalog, *, now: datetime | None = None) -> dict[str, Good]:
    """Create the opening market state for every catalog good."""
    timestamp = now or datetime.now(tz=UTC)
    return {
        definition.identifier: Good(
            identifier=definition.identifier,
            name=definition.name,
            category=definition.category,
            base_price=definition.base_price,
            current_price=quantize_money(definition.base_price),
            total_supply=definition.initial_supply,
            total_demand=definition.initial_demand,
            volatility=definition.volatility,
            price_history=(
                PricePoint(timestamp=timestamp, price=quantize_money(definition.base_price)),
            ),
        )
        for definition in catalog.goods
    }


def _supply_demand_modifier(good: Good, market_state: MarketState) -> Decimal:
    demand = max(good.total_demand * market_state.global_demand_modifier, Decimal(1))
    supply = max(good.total_supply * market_state.global_supply_modifier, Decimal(1))
    return clamp((demand / supply).sqrt(), MIN_PRICE_MODIFIER, MAX_PRICE_MODIFIER)


def update_prices(
    goods: Mapping[str, Good],
    market_state: MarketState,
    modifiers: EconomyModifiers,
    *,
    regional_modifier: Numeric = 1,
    rng: DeterministicRandomService | None = None,
    dynamics: MarketDynamics | None = None,
    now: datetime | None = None,
    history_limit: int = 100,
) -> dict[str, Good]:
    """Return repriced copies of *goods*; the input mapping is not modified."""
    timestamp = now or datetime.now(tz=UTC)
    regional = to_decimal(regional_modifier)
    condition = condition_price_multiplier(market_state.condition)
    updated: dict[str, Good] = {}
    for good_id, good in goods.items():
        supply = good.total_supply
        demand = good.total_demand
        if dynamics is not None:
            supply = max(Decimal(0), supply * (1 + dynamics.supply_growth_rate))
            if rng is not None and dynamics.demand_volatility:
                drift = to_decimal(rng.centered(1.0)) * dynamics.demand_volatility
                demand = max(Decimal(0), demand * (1 + drift))
        working = good.model_copy(update={"total_supply": supply, "total_demand": demand})

        jitter = Decimal(0)
        if rng is not None:
            jitter = (
                to_decimal(rng.centered(VOLATILITY_RANGE))
                * good.volatility
                * market_state.volatility_factor
            )
        volatility_term = 1 + jitter + modifiers.market_volatility

        raw = (
            good.base_price
            * regional
            * _supply_demand_modifier(working, market_state)
            * condition
            * volatility_term
        )
        price = bounded_price(raw, good.base_price)
        history = (*good.price_history, PricePoint(timestamp=timestamp, price=price))
        updated[good_id] = working.model_copy(
            update={"current_price": price, "price_history": history[-history_limit:]}
        )
    return updated


def price_at_location(
    good: Good,
    location: Location,
    *,
    exporting: bool,
    disasters: Iterable[Disaster] = (),
    now: datetime | None = None,
) -> Decimal:
    """Return the local price of *good* at *location*."""
    moment = now or datetime.now(tz=UTC)
    raw = (
        good.current_price
        * location.regional_modifier(good.identifier, exporting=exporting)
        * regional_disaster_multiplier(location.region, disasters, moment)
    )
    return bounded_price(raw, good.base_price)


def apply_time_event_effects(
    goods: Mapping[str, Good],
    effects: TimeEventEffects,
    modifiers: EconomyModifiers,
) -> tuple[dict[str, Good], EconomyModifiers]:
    """Scale demand and prices by the event multipliers.

    A cost multiplier is folded into ``market_volatility`` at half strength.
    """
    updated: dict[str, Good] = {}
    for good_id, good in goods.items():
        changes: dict[str, Decimal] = {}
        if effects.demand_multiplier is not None:
            changes["total_demand"] = good.total_demand * effects.demand_multiplier
        if effects.price_multiplier is not None:
            changes["current_price"] = bounded_price(
                good.current_price * effects.price_multiplier, good.base_price
            )
        updated[good_id] = good.model_copy(update=changes) if changes else good
    if effects.cost_multiplier is not None:
        volatility = (effects.cost_multiplier - 1) * COST_TO_VOLATILITY_RATIO
        modifiers = modifiers.model_copy(update={"market_volatility": volatility})
    return updated, modifiers


def remove_time_event_effects(modifiers: EconomyModifiers) -> EconomyModifiers:
    """Reset the volatility contributed by time events."""
    return modifiers.model_copy(update={"market_volatility": Decimal(0)})


def apply_trade_pressure(good: Good, quantity: int, side: TradeSide) -> Good:
    """Return *good* with supply and demand nudged by a confirmed trade."""
    units = Decimal(quantity)
    if side is TradeSide.BUY:
        supply = max(Decimal(0), good.total_supply - units)
        demand = good.total_demand + units
    else:
        supply = good.total_supply + units
        demand = max(Decimal(0), good.total_demand - units)
    return good.model_copy(update={"total_supply": supply, "total_demand": demand})


class MarketSnapshot(BaseModel):
    """Consistent, versioned view of every good plus the market state."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(..., ge=0)
    goods: Mapping[str, Good]
    state: MarketState
    modifiers: EconomyModifiers = Field(default_factory=EconomyModifiers)

    def good(self, good_id: str) -> Good | None:
        """Return the good registered under *good_id*, if any."""
        return self.goods.get(good_id)


class MarketBoard:
    """Holder of the published market snapshot.

    Readers take :attr:`current` without locking; writers replace the whole
    snapshot in one reference assignment under the board lock.
    """

    def __init__(
        self,
        goods: Mapping[str, Good],
        state: MarketState | None = None,
        modifiers: EconomyModifiers | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._snapshot = MarketSnapshot(
            version=0,
            goods=dict(goods),
            state=state or MarketState(),
            modifiers=modifiers or EconomyModifiers(),
        )

    @property
    def current(self) -> MarketSnapshot:
        """Return the most recently published snapshot."""
        return self._snapshot

    def publish(
        self,
        goods: Mapping[str, Good] | None = None,
        *,
        state: MarketState | None = None,
        modifiers: EconomyModifiers | None = None,
        expected_version: int | None = None,
    ) -> MarketSnapshot:
        """Swap in a new snapshot, optionally guarded by *expected_version*."""
        with self._lock:
            previous = self._snapshot
            if expected_version is not None and expected_version != previous.version:
                msg = (
                    f"Market moved from version {expected_version} to "
                    f"{previous.version}; resubmit the request."
                )
                raise ConcurrencyConflictError(msg)
            snapshot = MarketSnapshot(
                version=previous.version + 1,
                goods=dict(goods) if goods is not None else previous.goods,
                state=state or previous.state,
                modifiers=modifiers or previous.modifiers,
            )
            self._snapshot = snapshot
        logger.debug("Published market snapshot version %s", snapshot.version)
        return snapshot


__all__ = [
    "CONDITION_PRICE_MULTIPLIERS",
    "VOLATILITY_RANGE",
    "Good",
    "MarketBoard",
    "MarketDynamics",
    "MarketSnapshot",
    "MarketState",
    "PricePoint",
    "apply_time_event_effects",
    "apply_trade_pressure",
    "bounded_price",
    "condition_price_multiplier",
    "goods_from_catalog",
    "price_at_location",
    "remove_time_event_effects",
    "update_prices",
]
