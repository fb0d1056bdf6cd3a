"""Models used for API request and response payloads."""

from tradeflow_backend.api.models.economy import (
    AssetPurchaseRequest,
    AssetSaleResponse,
    CycleTickResponse,
    ErrorResponse,
    FinancialReportResponse,
    GrowthResponse,
    LoanDecisionResponse,
    LoanRequest,
    MarketConditionRequest,
    MarketRefreshRequest,
    PaymentRequest,
    PaymentResponse,
    PlayerRegisterRequest,
    RouteActivationRequest,
    RouteAssignmentRequest,
    RouteCreateRequest,
    RouteProfitRequest,
    TradeConfirmRequest,
    TradeQuoteRequest,
    TransactionRequest,
)

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
