"""Tests for spatial effects and storage rules."""

from decimal import Decimal

import pytest

from tradeflow_backend.game_logic.catalog import default_catalog
from tradeflow_backend.game_logic.effects import (
    EffectTarget,
    apply_port_efficiency_boost,
    calculate_area_effects,
    calculate_storage_network_bonus,
    calculate_utilization_penalty,
    can_store_cargo_type,
    get_cumulative_effects,
)
from tradeflow_backend.game_logic.state import PlacedAsset
from tradeflow_backend.shared.enums import EffectType, TargetType
from tradeflow_backend.shared.value_objects import Position

DEFINITIONS = default_catalog().definitions_by_id()


def make_asset(
    identifier: str,
    definition_id: str,
    *,
    x: float = 0,
    y: float = 0,
) -> PlacedAsset:
    """Factory for placed assets owned by a single test player."""
    return PlacedAsset(
        identifier=identifier,
        definition_id=definition_id,
        owner_id="player-1",
        position=Position(x=x, y=y),
    )


def make_port(identifier: str, x: float, y: float = 0) -> EffectTarget:
    return EffectTarget(
        identifier=identifier, target_type=TargetType.PORT, position=Position(x=x, y=y)
    )


def test_area_effect_includes_target_on_radius_boundary() -> None:
    crane = make_asset("crane", "port-crane")
    targets = [make_port("edge", 120), make_port("beyond", 121)]

    effects = calculate_area_effects([crane], DEFINITIONS, targets)

    reached = [effect.target_id for effect in effects["crane"]]
    assert reached == ["edge"]
    assert effects["crane"][0].distance == pytest.approx(120)
    assert effects["crane"][0].effect_type is EffectType.PORT_EFFICIENCY


def test_assets_without_area_effects_are_skipped() -> None:
    vessel = make_asset("vessel", "container-vessel")

    assert calculate_area_effects([vessel], DEFINITIONS, [make_port("near", 1)]) == {}


def test_port_efficiency_never_targets_assets_or_self() -> None:
    crane = make_asset("crane", "port-crane")
    neighbour = make_asset("neighbour", "container-vessel", x=10)
    targets = [
        EffectTarget(identifier="crane", target_type=TargetType.ASSET, position=crane.position),
        EffectTarget(
            identifier="neighbour", target_type=TargetType.ASSET, position=neighbour.position
        ),
    ]

    assert calculate_area_effects([crane, neighbour], DEFINITIONS, targets) == {}


def test_cumulative_effects_stack_additively() -> None:
    cranes = [make_asset("crane-a", "port-crane"), make_asset("crane-b", "port-crane", x=50)]
    hub = make_asset("hub", "warehouse-mega", x=-100)
    targets = [make_port("port-x", 20)]

    effects = calculate_area_effects([*cranes, hub], DEFINITIONS, targets)
    totals = get_cumulative_effects("port-x", TargetType.PORT, effects)

    assert totals == {EffectType.PORT_EFFICIENCY: Decimal("0.20")}
    assert get_cumulative_effects("elsewhere", TargetType.PORT, effects) == {}


def test_port_efficiency_boost_scales_base() -> None:
    assert apply_port_efficiency_boost(Decimal("0.8"), Decimal("0.25")) == Decimal("1.000")


def test_storage_network_bonus_for_mixed_warehouses() -> None:
    warehouses = [
        make_asset("w1", "warehouse-small"),
        make_asset("w2", "warehouse-medium"),
        make_asset("w3", "warehouse-large"),
    ]

    assert calculate_storage_network_bonus(warehouses, DEFINITIONS) == Decimal("0.09")


def test_storage_network_bonus_is_capped() -> None:
    warehouses = [make_asset(f"w{index}", "warehouse-mega") for index in range(15)]

    assert calculate_storage_network_bonus(warehouses, DEFINITIONS) == Decimal("0.30")


def test_storage_network_bonus_ignores_non_warehouses() -> None:
    assets = [make_asset("v", "container-vessel"), make_asset("c", "port-crane")]

    assert calculate_storage_network_bonus(assets, DEFINITIONS) == Decimal(0)
    assert calculate_storage_network_bonus([], DEFINITIONS) == Decimal(0)


@pytest.mark.parametrize(
    ("utilization", "penalty"),
    [
        ("0.70", "0"),
        ("0.80", "0.05"),
        ("0.85", "0.05"),
        ("0.90", "0.10"),
        ("0.92", "0.10"),
        ("0.95", "0.20"),
        ("0.98", "0.20"),
    ],
)
def test_utilization_penalty_tiers(utilization: str, penalty: str) -> None:
    assert calculate_utilization_penalty(Decimal(utilization)) == Decimal(penalty)


def test_cargo_whitelists_by_storage_class() -> None:
    standard = DEFINITIONS["warehouse-small"]
    specialized = DEFINITIONS["warehouse-specialized"]

    assert can_store_cargo_type(standard, "general")
    assert not can_store_cargo_type(standard, "perishable")
    assert can_store_cargo_type(specialized, "temperature-controlled")
    assert not can_store_cargo_type(specialized, "general")
    for definition in (standard, specialized):
        assert not can_store_cargo_type(definition, "hazardous")
        assert not can_store_cargo_type(definition, "oversized")
        assert not can_store_cargo_type(definition, "plutonium")


def test_non_storage_assets_store_nothing() -> None:
    assert not can_store_cargo_type(DEFINITIONS["container-vessel"], "general")
