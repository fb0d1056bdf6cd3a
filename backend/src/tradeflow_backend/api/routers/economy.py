"""HTTP endpoints forwarding player commands to the economy core."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from tradeflow_backend.api.dependencies import get_economy_service
from tradeflow_backend.api.models import (
    AssetPurchaseRequest,
    AssetSaleResponse,
    CycleTickResponse,
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
from tradeflow_backend.api.services import EconomyService  # noqa: TC001
from tradeflow_backend.game_logic import (
    FinancialRecord,
    GrowthParameters,
    MarketSnapshot,
    PlacedAsset,
    PlayerFinancials,
    Route,
    RouteProfit,
    TradeQuote,
    calculate_compounding_growth,
    calculate_route_profit,
    recommend,
)
from tradeflow_backend.shared import DeterministicRandomService, Position, RevenueEvent

router = APIRouter(prefix="/economy", tags=["economy"])


@router.post(
    "/players",
    response_model=PlayerFinancials,
    status_code=status.HTTP_201_CREATED,
)
def register_player(
    payload: PlayerRegisterRequest,
    service: EconomyService = Depends(get_economy_service),
) -> PlayerFinancials:
    """Open a ledger for a new player."""

    return service.session.register_player(payload.player_id)


@router.get("/players/{player_id}/financials", response_model=PlayerFinancials)
def read_financials(
    player_id: str,
    service: EconomyService = Depends(get_economy_service),
) -> PlayerFinancials:
    return service.session.ledger(player_id).snapshot()


@router.post(
    "/players/{player_id}/transactions",
    response_model=FinancialRecord,
    status_code=status.HTTP_201_CREATED,
)
def record_transaction(
    player_id: str,
    payload: TransactionRequest,
    service: EconomyService = Depends(get_economy_service),
) -> FinancialRecord:
    """Append a manual journal entry to the player's ledger."""

    return service.session.ledger(player_id).record_transaction(
        payload.kind,
        payload.category,
        payload.amount,
        payload.description,
        route_id=payload.route_id,
        asset_id=payload.asset_id,
    )


@router.post("/players/{player_id}/loans", response_model=LoanDecisionResponse)
def apply_for_loan(
    player_id: str,
    payload: LoanRequest,
    service: EconomyService = Depends(get_economy_service),
) -> LoanDecisionResponse:
    """Apply for a loan; a refusal is reported, not raised."""

    ledger = service.session.ledger(player_id)
    approved = ledger.apply_for_loan(payload.amount, payload.term_days)
    return LoanDecisionResponse(approved=approved, financials=ledger.snapshot())


@router.post(
    "/players/{player_id}/loans/{loan_id}/payments", response_model=PaymentResponse
)
def make_payment(
    player_id: str,
    loan_id: str,
    payload: PaymentRequest,
    service: EconomyService = Depends(get_economy_service),
) -> PaymentResponse:
    ledger = service.session.ledger(player_id)
    loan = ledger.make_payment(loan_id, payload.amount)
    return PaymentResponse(loan=loan, financials=ledger.snapshot())


@router.post(
    "/players/{player_id}/assets",
    response_model=PlacedAsset,
    status_code=status.HTTP_201_CREATED,
)
def purchase_asset(
    player_id: str,
    payload: AssetPurchaseRequest,
    service: EconomyService = Depends(get_economy_service),
) -> PlacedAsset:
    return service.session.purchase_asset(
        player_id,
        payload.definition_id,
        Position(x=payload.x, y=payload.y),
        payload.rotation,
    )


@router.delete("/players/{player_id}/assets/{asset_id}", response_model=AssetSaleResponse)
def sell_asset(
    player_id: str,
    asset_id: str,
    service: EconomyService = Depends(get_economy_service),
) -> AssetSaleResponse:
    refund = service.session.sell_asset(player_id, asset_id)
    return AssetSaleResponse(asset_id=asset_id, refund=refund)


@router.post(
    "/players/{player_id}/routes",
    response_model=Route,
    status_code=status.HTTP_201_CREATED,
)
def create_route(
    player_id: str,
    payload: RouteCreateRequest,
    service: EconomyService = Depends(get_economy_service),
) -> Route:
    return service.session.create_route(
        player_id,
        payload.name,
        payload.origin_id,
        payload.destination_id,
        payload.waypoints,
    )


@router.put("/players/{player_id}/routes/{route_id}/activation", response_model=Route)
def set_route_active(
    player_id: str,
    route_id: str,
    payload: RouteActivationRequest,
    service: EconomyService = Depends(get_economy_service),
) -> Route:
    return service.session.set_route_active(player_id, route_id, active=payload.active)


@router.post("/players/{player_id}/routes/{route_id}/assets", response_model=Route)
def assign_asset(
    player_id: str,
    route_id: str,
    payload: RouteAssignmentRequest,
    service: EconomyService = Depends(get_economy_service),
) -> Route:
    return service.session.assign_asset_to_route(player_id, route_id, payload.asset_id)


@router.post("/players/{player_id}/trades/quote", response_model=TradeQuote)
def quote_trade(
    player_id: str,
    payload: TradeQuoteRequest,
    service: EconomyService = Depends(get_economy_service),
) -> TradeQuote:
    """Price a trade against the current market version."""

    return service.session.quote_trade(
        player_id,
        payload.good_id,
        payload.quantity,
        payload.side,
        location_id=payload.location_id,
    )


@router.post(
    "/players/{player_id}/trades/confirm",
    response_model=FinancialRecord,
    status_code=status.HTTP_201_CREATED,
)
def confirm_trade(
    player_id: str,
    payload: TradeConfirmRequest,
    service: EconomyService = Depends(get_economy_service),
) -> FinancialRecord:
    """Commit a quote issued to the player or reject it as stale."""

    return service.session.confirm_trade(player_id, payload.quote_id)


@router.get("/market", response_model=MarketSnapshot)
def read_market(
    service: EconomyService = Depends(get_economy_service),
) -> MarketSnapshot:
    return service.session.board.current


@router.post("/market/refresh", response_model=MarketSnapshot)
def refresh_market(
    payload: MarketRefreshRequest,
    service: EconomyService = Depends(get_economy_service),
) -> MarketSnapshot:
    rng = DeterministicRandomService(payload.seed) if payload.seed is not None else None
    return service.session.refresh_market(rng)


@router.put("/market/condition", response_model=MarketSnapshot)
def set_market_condition(
    payload: MarketConditionRequest,
    service: EconomyService = Depends(get_economy_service),
) -> MarketSnapshot:
    return service.session.set_market_condition(payload.condition)


@router.post("/calculators/route-profit", response_model=RouteProfit)
def route_profit(payload: RouteProfitRequest) -> RouteProfit:
    """Value a single trip with the pure route profit calculator."""

    return calculate_route_profit(**payload.model_dump())


@router.post("/calculators/growth", response_model=GrowthResponse)
def compounding_growth(payload: GrowthParameters) -> GrowthResponse:
    return GrowthResponse(projected_profit=calculate_compounding_growth(payload))


@router.post("/players/{player_id}/cycles/tick", response_model=CycleTickResponse)
def tick_revenue_cycle(
    player_id: str,
    service: EconomyService = Depends(get_economy_service),
) -> CycleTickResponse:
    """Run the player's revenue cycle when one is due."""

    return CycleTickResponse(cycle=service.orchestrator(player_id).tick())


@router.get("/players/{player_id}/report", response_model=FinancialReportResponse)
def financial_report(
    player_id: str,
    period_days: int = Query(default=30, gt=0, le=365),
    service: EconomyService = Depends(get_economy_service),
) -> FinancialReportResponse:
    report = service.orchestrator(player_id).generate_financial_report(period_days)
    return FinancialReportResponse(report=report, recommendations=recommend(report))


@router.get("/events", response_model=list[RevenueEvent])
def recent_events(
    service: EconomyService = Depends(get_economy_service),
) -> list[RevenueEvent]:
    """Return published revenue events, newest first."""

    return list(service.session.outbox.recent())
