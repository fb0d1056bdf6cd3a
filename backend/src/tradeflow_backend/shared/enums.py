"""Shared enumerations used across the backend."""

from __future__ import annotations

from enum import StrEnum


class GoodsCategory(StrEnum):
    """Broad commodity families traded on the markets."""

    RAW_MATERIALS = "raw-materials"
    MANUFACTURED_GOODS = "manufactured-goods"
    LUXURY_GOODS = "luxury-goods"
    PERISHABLE_GOODS = "perishable-goods"


class MarketCondition(StrEnum):
    """Global market cycle phases."""

    CRISIS = "crisis"
    RECESSION = "recession"
    NORMAL = "normal"
    BOOM = "boom"


class CreditRating(StrEnum):
    """Credit tiers ordered from best to worst."""

    AAA = "AAA"
    AA = "AA"
    A = "A"
    BBB = "BBB"
    BB = "BB"
    B = "B"
    CCC = "CCC"

    @property
    def rank(self) -> int:
        """Return the zero-based position of the tier, 0 being the best."""
        return list(CreditRating).index(self)

    def is_better_than(self, other: CreditRating) -> bool:
        """Return whether this tier ranks strictly above *other*."""
        return self.rank < other.rank


class TransactionType(StrEnum):
    """Direction of a ledger transaction."""

    INCOME = "income"
    EXPENSE = "expense"


class LoanStatus(StrEnum):
    """Lifecycle stages tracked for loans."""

    ACTIVE = "active"
    PAID = "paid"
    DEFAULTED = "defaulted"


class AssetType(StrEnum):
    """Physical kind of a purchasable asset."""

    SHIP = "ship"
    PLANE = "plane"
    WAREHOUSE = "warehouse"
    INFRASTRUCTURE = "infrastructure"


class AssetCategory(StrEnum):
    """Functional grouping of a purchasable asset."""

    TRANSPORT = "transport"
    STORAGE = "storage"
    SUPPORT = "support"
    FINANCIAL = "financial"


class AssetStatus(StrEnum):
    """Operational status of a placed asset."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    TRANSIT = "transit"


class StorageClass(StrEnum):
    """Storage subtype deciding which cargo a facility accepts."""

    STANDARD = "standard"
    SPECIALIZED = "specialized"


class CargoType(StrEnum):
    """Cargo handling classes."""

    GENERAL = "general"
    STANDARD = "standard"
    ELECTRONICS = "electronics"
    MANUFACTURED = "manufactured"
    RAW_MATERIALS = "raw-materials"
    LUXURY = "luxury"
    PERISHABLE = "perishable"
    SENSITIVE = "sensitive"
    TEMPERATURE_CONTROLLED = "temperature-controlled"
    HAZARDOUS = "hazardous"
    OVERSIZED = "oversized"


class EffectType(StrEnum):
    """Kinds of area effects granted by placed assets."""

    PORT_EFFICIENCY = "port_efficiency"
    STORAGE_BONUS = "storage_bonus"
    RISK_REDUCTION = "risk_reduction"
    SPEED_BOOST = "speed_boost"


class TargetType(StrEnum):
    """Entities that can receive an area effect."""

    PORT = "port"
    ASSET = "asset"


class CycleStatus(StrEnum):
    """States of the revenue cycle state machine."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class TradeSide(StrEnum):
    """Direction of a market trade from the player's perspective."""

    BUY = "buy"
    SELL = "sell"


class DisasterKind(StrEnum):
    """Disaster archetypes that disrupt regional trade."""

    STORM = "storm"
    PIRACY = "piracy"
    PORT_STRIKE = "port_strike"
    SUPPLY_SHORTAGE = "supply_shortage"


__all__ = [
    "AssetCategory",
    "AssetStatus",
    "AssetType",
    "CargoType",
    "CreditRating",
    "CycleStatus",
    "DisasterKind",
    "EffectType",
    "GoodsCategory",
    "LoanStatus",
    "MarketCondition",
    "StorageClass",
    "TargetType",
    "TradeSide",
    "TransactionType",
]
