"""Immutable reference data: goods, locations and asset definitions.

The catalog is validated once when it is loaded. Unknown fields, duplicate
identifiers and dangling references are rejected immediately rather than
surfacing later as missing attributes.
"""

from __future__ import annotations

from collections.abc import Mapping  # noqa: TC003
from decimal import Decimal
from functools import cache
from typing import Any

from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic.config import ConfigDict

from tradeflow_backend.shared.enums import (
    AssetCategory,
    AssetType,
    EffectType,
    GoodsCategory,
    StorageClass,
)
from tradeflow_backend.shared.errors import CatalogError, EconomyValidationError
from tradeflow_backend.shared.value_objects import Position

_STRICT = ConfigDict(frozen=True, extra="forbid")
MINIMUM_BASE_PRICE = Decimal("0.01")


class GoodDefinition(BaseModel):
    """Reference definition for a tradeable commodity."""

    model_config = _STRICT

    identifier: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category: GoodsCategory
    base_price: Decimal = Field(..., ge=MINIMUM_BASE_PRICE)
    initial_supply: Decimal = Field(..., ge=0)
    initial_demand: Decimal = Field(..., ge=0)
    volatility: Decimal = Field(default=Decimal(0), ge=0, le=1)
    requires_refrigeration: bool = False


class Location(BaseModel):
    """Market node of the trade network."""

    model_config = _STRICT

    identifier: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    position: Position
    region: str = Field(..., min_length=1)
    capacity: int = Field(..., ge=0)
    utilization: Decimal = Field(default=Decimal(0), ge=0, le=1)
    export_modifiers: dict[str, Decimal] = Field(default_factory=dict)
    import_modifiers: dict[str, Decimal] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_modifiers(self) -> Location:
        """Ensure every local modifier is strictly positive."""
        for good_id, value in (*self.export_modifiers.items(), *self.import_modifiers.items()):
            if value <= 0:
                msg = f"Location {self.identifier} has non-positive modifier for {good_id}."
                raise ValueError(msg)
        return self

    def regional_modifier(self, good_id: str, *, exporting: bool) -> Decimal:
        """Return the local price modifier applied to *good_id*."""
        modifiers = self.export_modifiers if exporting else self.import_modifiers
        return modifiers.get(good_id, Decimal(1))


class AreaEffect(BaseModel):
    """Radius-bounded bonus granted by a placed asset."""

    model_config = _STRICT

    radius: float = Field(..., ge=0)
    effect_type: EffectType
    value: Decimal


class AssetBonuses(BaseModel):
    """Static bonuses an asset contributes while it is operating."""

    model_config = _STRICT

    efficiency: Decimal = Decimal(0)
    speed: Decimal = Decimal(0)
    capacity: int = 0
    risk_reduction: Decimal = Decimal(0)


class AssetDefinition(BaseModel):
    """Purchasable vehicle or facility blueprint."""

    model_config = _STRICT

    identifier: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    asset_type: AssetType
    category: AssetCategory
    cost: Decimal = Field(..., ge=0)
    maintenance_cost: Decimal = Field(default=Decimal(0), ge=0)
    capacity: int = Field(default=0, ge=0)
    storage_capacity: int = Field(default=0, ge=0)
    speed: float = Field(default=0, ge=0)
    fuel_efficiency: float = Field(default=0, ge=0)
    crew_required: int = Field(default=0, ge=0)
    level: int = Field(default=0, ge=0)
    efficiency: Decimal = Field(default=Decimal(1), ge=0)
    storage_class: StorageClass | None = None
    bonuses: AssetBonuses = Field(default_factory=AssetBonuses)
    area_effect: AreaEffect | None = None

    @model_validator(mode="after")
    def _validate_storage(self) -> AssetDefinition:
        """Ensure storage metadata is only declared on storage assets."""
        if self.storage_class is not None and self.category is not AssetCategory.STORAGE:
            msg = f"Asset {self.identifier} declares a storage class but is not storage."
            raise ValueError(msg)
        return self

    @property
    def is_transport(self) -> bool:
        """Return whether the asset can service routes."""
        return self.category is AssetCategory.TRANSPORT

    @property
    def is_warehouse(self) -> bool:
        """Return whether the asset is a warehouse facility."""
        return self.asset_type is AssetType.WAREHOUSE


class Catalog(BaseModel):
    """Validated, immutable bundle of all reference data."""

    model_config = _STRICT

    goods: tuple[GoodDefinition, ...] = Field(default_factory=tuple)
    locations: tuple[Location, ...] = Field(default_factory=tuple)
    asset_definitions: tuple[AssetDefinition, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _validate_references(self) -> Catalog:
        """Reject duplicate identifiers and modifiers for unknown goods."""
        for label, items in (
            ("good", self.goods),
            ("location", self.locations),
            ("asset definition", self.asset_definitions),
        ):
            identifiers = [item.identifier for item in items]
            if len(identifiers) != len(set(identifiers)):
                msg = f"Duplicate {label} identifiers in catalog."
                raise ValueError(msg)
        good_ids = {good.identifier for good in self.goods}
        for location in self.locations:
            unknown = (
                set(location.export_modifiers) | set(location.import_modifiers)
            ) - good_ids
            if unknown:
                listing = ", ".join(sorted(unknown))
                msg = f"Location {location.identifier} references unknown goods: {listing}"
                raise ValueError(msg)
        return self

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Catalog:
        """Validate raw catalog data, raising :class:`CatalogError` on mismatch."""
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            msg = f"Catalog failed validation: {exc}"
            raise CatalogError(msg) from exc

    def good(self, good_id: str) -> GoodDefinition:
        """Return the good definition registered under *good_id*."""
        return _lookup(self.goods, good_id, "good")

    def location(self, location_id: str) -> Location:
        """Return the location registered under *location_id*."""
        return _lookup(self.locations, location_id, "location")

    def asset_definition(self, definition_id: str) -> AssetDefinition:
        """Return the asset definition registered under *definition_id*."""
        return _lookup(self.asset_definitions, definition_id, "asset definition")

    def definitions_by_id(self) -> dict[str, AssetDefinition]:
        """Return asset definitions keyed by identifier."""
        return {definition.identifier: definition for definition in self.asset_definitions}


def _lookup(items: tuple[Any, ...], identifier: str, label: str) -> Any:
    for item in items:
        if item.identifier == identifier:
            return item
    msg = f"Unknown {label} '{identifier}'."
    raise EconomyValidationError(msg)


def _warehouse(
    identifier: str,
    name: str,
    *,
    cost: int,
    storage_capacity: int,
    storage_class: StorageClass = StorageClass.STANDARD,
    area_effect: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "identifier": identifier,
        "name": name,
        "asset_type": AssetType.WAREHOUSE,
        "category": AssetCategory.STORAGE,
        "cost": cost,
        "maintenance_cost": cost // 100,
        "capacity": storage_capacity,
        "storage_capacity": storage_capacity,
        "storage_class": storage_class,
        "area_effect": area_effect,
    }


_DEFAULT_PAYLOAD: dict[str, Any] = {
    "goods": [
        {
            "identifier": "electronics",
            "name": "Electronics",
            "category": GoodsCategory.MANUFACTURED_GOODS,
            "base_price": 120,
            "initial_supply": 1200,
            "initial_demand": 1500,
            "volatility": "0.02",
        },
        {
            "identifier": "coffee",
            "name": "Coffee",
            "category": GoodsCategory.RAW_MATERIALS,
            "base_price": 30,
            "initial_supply": 2200,
            "initial_demand": 2000,
            "volatility": "0.015",
        },
        {
            "identifier": "luxury-watches",
            "name": "Luxury Watches",
            "category": GoodsCategory.LUXURY_GOODS,
            "base_price": 500,
            "initial_supply": 250,
            "initial_demand": 300,
            "volatility": "0.05",
        },
        {
            "identifier": "fresh-fruit",
            "name": "Fresh Fruit",
            "category": GoodsCategory.PERISHABLE_GOODS,
            "base_price": 15,
            "initial_supply": 2800,
            "initial_demand": 3000,
            "volatility": "0.03",
            "requires_refrigeration": True,
        },
    ],
    "locations": [
        {
            "identifier": "port-shanghai",
            "name": "Shanghai",
            "position": {"x": 820, "y": 310},
            "region": "asia",
            "capacity": 12000,
            "utilization": "0.65",
            "export_modifiers": {"electronics": "0.85"},
            "import_modifiers": {"coffee": "1.15"},
        },
        {
            "identifier": "port-singapore",
            "name": "Singapore",
            "position": {"x": 780, "y": 420},
            "region": "asia",
            "capacity": 10000,
            "utilization": "0.72",
        },
        {
            "identifier": "port-rotterdam",
            "name": "Rotterdam",
            "position": {"x": 480, "y": 200},
            "region": "europe",
            "capacity": 9000,
            "utilization": "0.58",
            "import_modifiers": {"electronics": "1.2", "fresh-fruit": "1.1"},
        },
        {
            "identifier": "port-los-angeles",
            "name": "Los Angeles",
            "position": {"x": 150, "y": 290},
            "region": "north-america",
            "capacity": 8000,
            "utilization": "0.61",
            "import_modifiers": {"luxury-watches": "1.25"},
        },
        {
            "identifier": "port-santos",
            "name": "Santos",
            "position": {"x": 320, "y": 520},
            "region": "south-america",
            "capacity": 4000,
            "utilization": "0.44",
            "export_modifiers": {"coffee": "0.8", "fresh-fruit": "0.9"},
        },
    ],
    "asset_definitions": [
        _warehouse("warehouse-small", "Small Warehouse", cost=250_000, storage_capacity=5000),
        _warehouse("warehouse-medium", "Medium Storage Facility", cost=500_000, storage_capacity=15000),
        _warehouse("warehouse-large", "Large Distribution Center", cost=1_000_000, storage_capacity=30000),
        _warehouse(
            "warehouse-mega",
            "Mega Distribution Hub",
            cost=2_000_000,
            storage_capacity=50000,
            area_effect={
                "radius": 200,
                "effect_type": EffectType.PORT_EFFICIENCY,
                "value": "0.10",
            },
        ),
        _warehouse(
            "warehouse-specialized",
            "Specialized Storage",
            cost=750_000,
            storage_capacity=10000,
            storage_class=StorageClass.SPECIALIZED,
        ),
        {
            "identifier": "container-vessel",
            "name": "Container Vessel",
            "asset_type": AssetType.SHIP,
            "category": AssetCategory.TRANSPORT,
            "cost": 60_000,
            "maintenance_cost": 1_200,
            "capacity": 2000,
            "speed": 20,
            "fuel_efficiency": 4,
            "crew_required": 2,
            "level": 1,
            "efficiency": "0.9",
        },
        {
            "identifier": "cargo-aircraft",
            "name": "Cargo Aircraft",
            "asset_type": AssetType.PLANE,
            "category": AssetCategory.TRANSPORT,
            "cost": 90_000,
            "maintenance_cost": 2_400,
            "capacity": 400,
            "speed": 450,
            "fuel_efficiency": 2,
            "crew_required": 3,
            "level": 2,
            "efficiency": "0.95",
        },
        {
            "identifier": "port-crane",
            "name": "Automated Port Crane",
            "asset_type": AssetType.INFRASTRUCTURE,
            "category": AssetCategory.SUPPORT,
            "cost": 40_000,
            "maintenance_cost": 400,
            "area_effect": {
                "radius": 120,
                "effect_type": EffectType.PORT_EFFICIENCY,
                "value": "0.05",
            },
        },
    ],
}


@cache
def default_catalog() -> Catalog:
    """Return the cached starter catalog shipped with the game."""
    return Catalog.from_payload(_DEFAULT_PAYLOAD)


__all__ = [
    "MINIMUM_BASE_PRICE",
    "AreaEffect",
    "AssetBonuses",
    "AssetDefinition",
    "Catalog",
    "GoodDefinition",
    "Location",
    "default_catalog",
]
