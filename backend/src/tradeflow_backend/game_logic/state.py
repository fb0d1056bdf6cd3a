"""Player-centric state containers used by the game logic layer."""

from __future__ import annotations

from collections.abc import Mapping  # noqa: TC003
from datetime import UTC, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict

from tradeflow_backend.shared.enums import AssetStatus
from tradeflow_backend.shared.value_objects import Position  # noqa: TC001


class EconomyModifiers(BaseModel):
    """Scalars applied to a player's economic formulas."""

    model_config = ConfigDict(frozen=True)

    asset_efficiency: Decimal = Decimal(1)
    specialist_bonus: Decimal = Decimal(0)
    market_volatility: Decimal = Decimal(0)
    disaster_penalty: Decimal = Field(default=Decimal(0), ge=0, le=1)
    competition_pressure: Decimal = Decimal(0)
    government_subsidy: Decimal = Decimal(0)


class InventoryLedger(BaseModel):
    """Tracks goods held by a player in an immutable fashion."""

    model_config = ConfigDict(frozen=True)

    holdings: Mapping[str, int] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_non_negative(self) -> InventoryLedger:
        """Ensure no good is held in negative quantity."""
        for good_id, quantity in self.holdings.items():
            if quantity < 0:
                msg = f"Inventory for {good_id} would become negative ({quantity})."
                raise ValueError(msg)
        return self

    def quantity(self, good_id: str) -> int:
        """Return the stored quantity for *good_id* (zero when absent)."""
        return self.holdings.get(good_id, 0)

    def total_units(self) -> int:
        """Return the number of units stored across all goods."""
        return sum(self.holdings.values())

    def apply_delta(self, good_id: str, delta: int) -> InventoryLedger:
        """Return a new ledger with *delta* applied to the given good."""
        holdings = dict(self.holdings)
        updated = holdings.get(good_id, 0) + delta
        if updated:
            holdings[good_id] = updated
        else:
            holdings.pop(good_id, None)
        return InventoryLedger(holdings=holdings)


class PlacedAsset(BaseModel):
    """Asset instance purchased and placed on the map by a player."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., min_length=1)
    definition_id: str = Field(..., min_length=1)
    owner_id: str = Field(..., min_length=1)
    position: Position
    rotation: float = 0
    status: AssetStatus = AssetStatus.ACTIVE
    health: int = Field(default=100, ge=0, le=100)
    route_id: str | None = None
    purchased_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))

    def assign_to(self, route_id: str | None) -> PlacedAsset:
        """Return a copy bound to *route_id*, in transit while assigned."""
        status = AssetStatus.TRANSIT if route_id is not None else AssetStatus.ACTIVE
        return self.model_copy(update={"route_id": route_id, "status": status})


class Route(BaseModel):
    """Scheduled path between two locations serviced by transport assets."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., min_length=1)
    owner_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    origin_id: str = Field(..., min_length=1)
    destination_id: str = Field(..., min_length=1)
    waypoints: tuple[str, ...] = Field(default_factory=tuple)
    distance: float = Field(..., ge=0)
    estimated_hours: float = Field(..., gt=0)
    assigned_assets: tuple[str, ...] = Field(default_factory=tuple)
    is_active: bool = False

    @model_validator(mode="after")
    def _validate_endpoints(self) -> Route:
        """Ensure the route connects two distinct locations."""
        if self.origin_id == self.destination_id:
            msg = "Route origin and destination must differ."
            raise ValueError(msg)
        if len(self.assigned_assets) != len(set(self.assigned_assets)):
            msg = "Route assigned assets must be unique."
            raise ValueError(msg)
        return self

    @property
    def stops(self) -> tuple[str, ...]:
        """Return every location visited, in travel order."""
        return (self.origin_id, *self.waypoints, self.destination_id)

    def with_asset(self, asset_id: str) -> Route:
        """Return a copy with *asset_id* appended to the assigned assets."""
        return self.model_copy(update={"assigned_assets": (*self.assigned_assets, asset_id)})

    def without_asset(self, asset_id: str) -> Route:
        """Return a copy with *asset_id* removed from the assigned assets."""
        remaining = tuple(item for item in self.assigned_assets if item != asset_id)
        return self.model_copy(update={"assigned_assets": remaining})


__all__ = [
    "EconomyModifiers",
    "InventoryLedger",
    "PlacedAsset",
    "Route",
]
