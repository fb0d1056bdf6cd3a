"""Spatial effects granted by placed infrastructure to nearby targets."""

from __future__ import annotations

from collections.abc import Iterable, Mapping  # noqa: TC003
from decimal import Decimal

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from tradeflow_backend.game_logic.catalog import AssetDefinition, Location  # noqa: TC001
from tradeflow_backend.game_logic.state import PlacedAsset  # noqa: TC001
from tradeflow_backend.shared.enums import CargoType, EffectType, StorageClass, TargetType
from tradeflow_backend.shared.value_objects import Numeric, Position, to_decimal

NETWORK_BONUS_PER_WAREHOUSE = Decimal("0.02")
NETWORK_BONUS_CAP = Decimal("0.20")
SCALE_BONUS_STEP_CAPACITY = 10_000
SCALE_BONUS_PER_STEP = Decimal("0.01")
SCALE_BONUS_CAP = Decimal("0.10")

UTILIZATION_PENALTY_TIERS: tuple[tuple[Decimal, Decimal], ...] = (
    (Decimal("0.80"), Decimal(0)),
    (Decimal("0.90"), Decimal("0.05")),
    (Decimal("0.95"), Decimal("0.10")),
)
MAX_UTILIZATION_PENALTY = Decimal("0.20")

STORABLE_CARGO: Mapping[StorageClass, frozenset[CargoType]] = {
    StorageClass.SPECIALIZED: frozenset(
        {CargoType.PERISHABLE, CargoType.SENSITIVE, CargoType.TEMPERATURE_CONTROLLED}
    ),
    StorageClass.STANDARD: frozenset(
        {
            CargoType.GENERAL,
            CargoType.STANDARD,
            CargoType.ELECTRONICS,
            CargoType.MANUFACTURED,
            CargoType.RAW_MATERIALS,
            CargoType.LUXURY,
        }
    ),
}


class EffectTarget(BaseModel):
    """Location or placed asset that may receive an area effect."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., min_length=1)
    target_type: TargetType
    position: Position


class AreaEffectResult(BaseModel):
    """Single effect applied by one asset to one target."""

    model_config = ConfigDict(frozen=True)

    target_id: str
    target_type: TargetType
    effect_type: EffectType
    effect_value: Decimal
    distance: float = Field(..., ge=0)


def effect_targets(
    locations: Iterable[Location], placed_assets: Iterable[PlacedAsset]
) -> tuple[EffectTarget, ...]:
    """Build the target list from ports and other placed assets."""
    ports = (
        EffectTarget(
            identifier=location.identifier,
            target_type=TargetType.PORT,
            position=location.position,
        )
        for location in locations
    )
    assets = (
        EffectTarget(
            identifier=asset.identifier,
            target_type=TargetType.ASSET,
            position=asset.position,
        )
        for asset in placed_assets
    )
    return (*ports, *assets)


def calculate_area_effects(
    placed_assets: Iterable[PlacedAsset],
    definitions: Mapping[str, AssetDefinition],
    targets: Iterable[EffectTarget],
) -> dict[str, list[AreaEffectResult]]:
    """Return the effects each asset grants, keyed by asset identifier.

    A target is included when its distance is within the radius, boundary
    included. Assets never affect themselves, and port efficiency effects only
    reach ports. Assets with no effects in range are omitted.
    """
    candidates = tuple(targets)
    effects_by_asset: dict[str, list[AreaEffectResult]] = {}
    for asset in placed_assets:
        definition = definitions.get(asset.definition_id)
        if definition is None or definition.area_effect is None:
            continue
        area = definition.area_effect
        results: list[AreaEffectResult] = []
        for target in candidates:
            if target.target_type is TargetType.ASSET and target.identifier == asset.identifier:
                continue
            if area.effect_type is EffectType.PORT_EFFICIENCY and (
                target.target_type is not TargetType.PORT
            ):
                continue
            distance = asset.position.distance_to(target.position)
            if distance > area.radius:
                continue
            results.append(
                AreaEffectResult(
                    target_id=target.identifier,
                    target_type=target.target_type,
                    effect_type=area.effect_type,
                    effect_value=area.value,
                    distance=distance,
                )
            )
        if results:
            effects_by_asset[asset.identifier] = results
    return effects_by_asset


def get_cumulative_effects(
    target_id: str,
    target_type: TargetType,
    effects_by_asset: Mapping[str, Iterable[AreaEffectResult]],
) -> dict[EffectType, Decimal]:
    """Sum every effect reaching the target, grouped by effect type."""
    totals: dict[EffectType, Decimal] = {}
    for effects in effects_by_asset.values():
        for effect in effects:
            if effect.target_id == target_id and effect.target_type is target_type:
                totals[effect.effect_type] = (
                    totals.get(effect.effect_type, Decimal(0)) + effect.effect_value
                )
    return totals


def apply_port_efficiency_boost(base_efficiency: Numeric, boost: Numeric) -> Decimal:
    """Return *base_efficiency* raised by the fractional *boost*."""
    return to_decimal(base_efficiency) * (1 + to_decimal(boost))


def calculate_storage_network_bonus(
    warehouses: Iterable[PlacedAsset],
    definitions: Mapping[str, AssetDefinition],
) -> Decimal:
    """Return the combined network-size and capacity bonus of a warehouse set."""
    count = 0
    total_capacity = 0
    for warehouse in warehouses:
        definition = definitions.get(warehouse.definition_id)
        if definition is None or not definition.is_warehouse:
            continue
        count += 1
        total_capacity += definition.storage_capacity
    network = min(NETWORK_BONUS_CAP, max(0, count - 1) * NETWORK_BONUS_PER_WAREHOUSE)
    scale = min(
        SCALE_BONUS_CAP,
        (total_capacity // SCALE_BONUS_STEP_CAPACITY) * SCALE_BONUS_PER_STEP,
    )
    return network + scale


def calculate_utilization_penalty(utilization: Numeric) -> Decimal:
    """Return the efficiency penalty for a facility running at *utilization*."""
    rate = to_decimal(utilization)
    for threshold, penalty in UTILIZATION_PENALTY_TIERS:
        if rate < threshold:
            return penalty
    return MAX_UTILIZATION_PENALTY


def can_store_cargo_type(definition: AssetDefinition, cargo_type: str) -> bool:
    """Return whether a storage asset accepts *cargo_type*."""
    if definition.storage_class is None:
        return False
    try:
        cargo = CargoType(cargo_type)
    except ValueError:
        return False
    return cargo in STORABLE_CARGO[definition.storage_class]


__all__ = [
    "AreaEffectResult",
    "EffectTarget",
    "apply_port_efficiency_boost",
    "calculate_area_effects",
    "calculate_storage_network_bonus",
    "calculate_utilization_penalty",
    "can_store_cargo_type",
    "effect_targets",
    "get_cumulative_effects",
]
