"""Pydantic models for the economy HTTP endpoints."""

# ruff: noqa: TC001

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from tradeflow_backend.game_logic.ledger import LoanAccount, PlayerFinancials
from tradeflow_backend.game_logic.revenue import FinancialReport, RevenueCycle
from tradeflow_backend.shared.enums import MarketCondition, TradeSide, TransactionType


class PlayerRegisterRequest(BaseModel):
    """Payload for opening a player ledger."""

    player_id: str = Field(min_length=1, max_length=64)


class TransactionRequest(BaseModel):
    """Manual ledger entry."""

    kind: TransactionType
    category: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    description: str = Field(min_length=1)
    route_id: str | None = None
    asset_id: str | None = None


class LoanRequest(BaseModel):
    amount: Decimal = Field(gt=0)
    term_days: int = Field(gt=0)


class LoanDecisionResponse(BaseModel):
    """Outcome of a loan application with the resulting finances."""

    approved: bool
    financials: PlayerFinancials


class PaymentRequest(BaseModel):
    amount: Decimal = Field(gt=0)


class PaymentResponse(BaseModel):
    loan: LoanAccount
    financials: PlayerFinancials


class AssetPurchaseRequest(BaseModel):
    """Place a catalog asset on the map."""

    definition_id: str = Field(min_length=1)
    x: float
    y: float
    rotation: float = 0


class AssetSaleResponse(BaseModel):
    asset_id: str
    refund: Decimal


class RouteCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    origin_id: str = Field(min_length=1)
    destination_id: str = Field(min_length=1)
    waypoints: list[str] = Field(default_factory=list)


class RouteActivationRequest(BaseModel):
    active: bool


class RouteAssignmentRequest(BaseModel):
    asset_id: str = Field(min_length=1)


class TradeQuoteRequest(BaseModel):
    """Request a tentative price for a trade."""

    good_id: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    side: TradeSide
    location_id: str | None = None


class TradeConfirmRequest(BaseModel):
    """Confirm a quote previously issued by the server.

    Prices are never accepted from the client; any extra field is rejected.
    """

    model_config = ConfigDict(extra="forbid")

    quote_id: str = Field(min_length=1)


class MarketRefreshRequest(BaseModel):
    seed: int | None = None


class MarketConditionRequest(BaseModel):
    condition: MarketCondition


class RouteProfitRequest(BaseModel):
    """Inputs of the single-trip route profit calculator."""

    distance: Decimal = Field(ge=0)
    base_rate_per_mile: Decimal = Field(ge=0)
    cargo_value_multiplier: Decimal = Field(ge=0)
    asset_level: int = Field(ge=0)
    specialist_bonus: Decimal = Decimal(0)
    market_condition: MarketCondition = MarketCondition.NORMAL
    maintenance_cost_rate: Decimal = Field(default=Decimal(0), ge=0, le=1)
    disaster_penalty: Decimal = Field(default=Decimal(0), ge=0, le=1)


class GrowthResponse(BaseModel):
    projected_profit: Decimal


class CycleTickResponse(BaseModel):
    """Result of a manual revenue tick; ``cycle`` is empty when none was due."""

    cycle: RevenueCycle | None


class FinancialReportResponse(BaseModel):
    report: FinancialReport
    recommendations: list[str]


class ErrorResponse(BaseModel):
    """Body returned for rejected commands."""

    detail: str
    error: str
    retryable: bool = False


__all__ = [
    "AssetPurchaseRequest",
    "AssetSaleResponse",
    "CycleTickResponse",
    "ErrorResponse",
    "FinancialReportResponse",
    "GrowthResponse",
    "LoanDecisionResponse",
    "LoanRequest",
    "MarketConditionRequest",
    "MarketRefreshRequest",
    "PaymentRequest",
    "PaymentResponse",
    "PlayerRegisterRequest",
    "RouteActivationRequest",
    "RouteAssignmentRequest",
    "RouteCreateRequest",
    "RouteProfitRequest",
    "TradeConfirmRequest",
    "TradeQuoteRequest",
    "TransactionRequest",
]
