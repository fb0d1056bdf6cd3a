"""Tests for the market pricing engine and market board."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from tradeflow_backend.game_logic.catalog import default_catalog
from tradeflow_backend.game_logic.disasters import Disaster, TimeEventEffects
from tradeflow_backend.game_logic.market import (
    Good,
    MarketBoard,
    MarketDynamics,
    MarketState,
    apply_time_event_effects,
    apply_trade_pressure,
    bounded_price,
    goods_from_catalog,
    price_at_location,
    remove_time_event_effects,
    update_prices,
)
from tradeflow_backend.game_logic.state import EconomyModifiers
from tradeflow_backend.shared.enums import (
    DisasterKind,
    GoodsCategory,
    MarketCondition,
    TradeSide,
)
from tradeflow_backend.shared.errors import ConcurrencyConflictError
from tradeflow_backend.shared.rng import DeterministicRandomService

NOW = datetime(2024, 3, 1, tzinfo=UTC)


def make_good(
    *,
    supply: Decimal | int = 1000,
    demand: Decimal | int = 1000,
    base_price: Decimal | int = 100,
    volatility: Decimal | str = "0",
) -> Good:
    """Factory for a single good priced at its base."""
    return Good(
        identifier="widgets",
        name="Widgets",
        category=GoodsCategory.MANUFACTURED_GOODS,
        base_price=Decimal(base_price),
        current_price=Decimal(base_price),
        total_supply=Decimal(supply),
        total_demand=Decimal(demand),
        volatility=Decimal(volatility),
    )


def reprice(good: Good, **kwargs: object) -> Good:
    state = kwargs.pop("state", MarketState(updated_at=NOW))
    return update_prices(
        {good.identifier: good}, state, EconomyModifiers(), now=NOW, **kwargs
    )[good.identifier]


def test_balanced_market_keeps_base_price() -> None:
    assert reprice(make_good()).current_price == Decimal("100.00")


def test_excess_demand_raises_price_by_square_root() -> None:
    updated = reprice(make_good(supply=1000, demand=2250))

    assert updated.current_price == Decimal("150.00")


def test_modifier_is_clamped_for_extreme_ratios() -> None:
    scarce = reprice(make_good(supply=0, demand=1_000_000))
    glut = reprice(make_good(supply=1_000_000, demand=0))

    assert scarce.current_price == Decimal("200.00")
    assert glut.current_price == Decimal("40.00")


@pytest.mark.parametrize(
    ("condition", "expected"),
    [
        (MarketCondition.BOOM, Decimal("120.00")),
        (MarketCondition.NORMAL, Decimal("100.00")),
        (MarketCondition.RECESSION, Decimal("80.00")),
        (MarketCondition.CRISIS, Decimal("60.00")),
    ],
)
def test_market_condition_scales_prices(condition: MarketCondition, expected: Decimal) -> None:
    state = MarketState(condition=condition, updated_at=NOW)

    assert reprice(make_good(), state=state).current_price == expected


def test_prices_stay_within_band_for_any_update() -> None:
    rng = DeterministicRandomService(seed=7)
    goods = goods_from_catalog(default_catalog(), now=NOW)
    state = MarketState(condition=MarketCondition.BOOM, volatility_factor=Decimal(5))
    modifiers = EconomyModifiers(market_volatility=Decimal("0.9"))
    dynamics = MarketDynamics(supply_growth_rate=Decimal("-0.3"), demand_volatility=Decimal(2))

    for _ in range(25):
        goods = update_prices(
            goods,
            state,
            modifiers,
            regional_modifier=3,
            rng=rng,
            dynamics=dynamics,
            now=NOW,
        )
        for good in goods.values():
            assert good.base_price * Decimal("0.3") <= good.current_price
            assert good.current_price <= good.base_price * 3


def test_update_prices_leaves_input_untouched_and_bounds_history() -> None:
    good = make_good(demand=4000)
    goods = {good.identifier: good}

    for _ in range(5):
        goods = update_prices(
            goods, MarketState(), EconomyModifiers(), now=NOW, history_limit=3
        )

    assert good.current_price == Decimal(100)
    assert len(goods["widgets"].price_history) == 3


def test_seeded_updates_are_reproducible() -> None:
    good = make_good(volatility="0.5")

    first = reprice(good, rng=DeterministicRandomService(seed=42))
    second = reprice(good, rng=DeterministicRandomService(seed=42))

    assert first.current_price == second.current_price


def test_volatility_jitter_moves_price_at_most_twenty_percent() -> None:
    good = make_good(volatility="1")
    rng = DeterministicRandomService(seed=3)

    prices = [reprice(good, rng=rng).current_price for _ in range(50)]

    assert all(Decimal(80) <= price <= Decimal(120) for price in prices)
    assert len(set(prices)) > 1


def test_good_rejects_sub_cent_base_price() -> None:
    with pytest.raises(ValueError, match="base_price"):
        make_good(base_price=Decimal("0.001"))


def test_bounded_price_rounds_inside_band() -> None:
    base = Decimal("0.07")

    assert bounded_price(Decimal(0), base) == Decimal("0.03")
    assert bounded_price(Decimal(10), base) == Decimal("0.21")


def test_price_at_location_applies_regional_and_disaster_modifiers() -> None:
    catalog = default_catalog()
    goods = goods_from_catalog(catalog, now=NOW)
    shanghai = catalog.location("port-shanghai")
    storm = Disaster(
        kind=DisasterKind.STORM,
        affected_regions=("asia",),
        severity=3,
        started_at=NOW - timedelta(hours=1),
        duration_hours=24,
    )

    calm = price_at_location(goods["electronics"], shanghai, exporting=True, now=NOW)
    stormy = price_at_location(
        goods["electronics"], shanghai, exporting=True, disasters=[storm], now=NOW
    )

    assert calm == Decimal("102.00")
    assert stormy == Decimal("122.40")


def test_time_event_effects_round_trip() -> None:
    good = make_good()
    effects = TimeEventEffects(
        demand_multiplier=Decimal(2),
        price_multiplier=Decimal("1.5"),
        cost_multiplier=Decimal("1.2"),
    )

    goods, modifiers = apply_time_event_effects({"widgets": good}, effects, EconomyModifiers())

    assert goods["widgets"].total_demand == Decimal(2000)
    assert goods["widgets"].current_price == Decimal("150.00")
    assert modifiers.market_volatility == Decimal("0.1")
    assert remove_time_event_effects(modifiers).market_volatility == 0


def test_trade_pressure_moves_supply_and_demand() -> None:
    good = make_good(supply=10, demand=10)

    bought = apply_trade_pressure(good, 25, TradeSide.BUY)
    sold = apply_trade_pressure(good, 25, TradeSide.SELL)

    assert (bought.total_supply, bought.total_demand) == (0, 35)
    assert (sold.total_supply, sold.total_demand) == (35, 0)


def test_good_rejects_price_outside_band() -> None:
    with pytest.raises(ValueError, match="outside"):
        Good(
            identifier="widgets",
            name="Widgets",
            category=GoodsCategory.RAW_MATERIALS,
            base_price=Decimal(10),
            current_price=Decimal(31),
            total_supply=Decimal(1),
            total_demand=Decimal(1),
        )


def test_market_board_publishes_versioned_snapshots() -> None:
    board = MarketBoard({"widgets": make_good()})
    initial = board.current

    updated = board.publish(state=MarketState(condition=MarketCondition.BOOM))

    assert initial.version == 0
    assert updated.version == 1
    assert board.current is updated
    assert initial.state.condition is MarketCondition.NORMAL


def test_market_board_rejects_stale_publication() -> None:
    board = MarketBoard({"widgets": make_good()})
    stale_version = board.current.version
    board.publish(expected_version=stale_version)

    with pytest.raises(ConcurrencyConflictError) as exc_info:
        board.publish(expected_version=stale_version)

    assert exc_info.value.retryable
    assert board.current.version == 1
