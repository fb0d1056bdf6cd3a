"""Shared utilities, shared models and cross-cutting helpers for the backend."""

from tradeflow_backend.shared.enums import (
    AssetCategory,
    AssetStatus,
    AssetType,
    CargoType,
    CreditRating,
    CycleStatus,
    DisasterKind,
    EffectType,
    GoodsCategory,
    LoanStatus,
    MarketCondition,
    StorageClass,
    TargetType,
    TradeSide,
    TransactionType,
)
from tradeflow_backend.shared.errors import (
    CalculationError,
    CapacityExceededError,
    CatalogError,
    ConcurrencyConflictError,
    EconomyError,
    EconomyValidationError,
    InsufficientFundsError,
)
from tradeflow_backend.shared.events import (
    EventOutbox,
    RevenueEvent,
    RevenueEventType,
)
from tradeflow_backend.shared.rng import DeterministicRandomService
from tradeflow_backend.shared.value_objects import (
    Position,
    clamp,
    quantize_money,
    to_decimal,
)

__all__ = [
    "AssetCategory",
    "AssetStatus",
    "AssetType",
    "CalculationError",
    "CapacityExceededError",
    "CargoType",
    "CatalogError",
    "ConcurrencyConflictError",
    "CreditRating",
    "CycleStatus",
    "DeterministicRandomService",
    "DisasterKind",
    "EconomyError",
    "EconomyValidationError",
    "EffectType",
    "EventOutbox",
    "GoodsCategory",
    "InsufficientFundsError",
    "LoanStatus",
    "MarketCondition",
    "Position",
    "RevenueEvent",
    "RevenueEventType",
    "StorageClass",
    "TargetType",
    "TradeSide",
    "TransactionType",
    "clamp",
    "quantize_money",
    "to_decimal",
]
