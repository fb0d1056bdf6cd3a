"""Revenue cycle value types, expense estimation and financial reporting."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence  # noqa: TC003
from datetime import datetime, timedelta
from decimal import Decimal
from enum import StrEnum
from uuid import uuid4

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from tradeflow_backend.game_logic.catalog import AssetDefinition  # noqa: TC001
from tradeflow_backend.game_logic.state import Route  # noqa: TC001
from tradeflow_backend.shared.enums import CycleStatus
from tradeflow_backend.shared.value_objects import quantize_money, to_decimal

DEFAULT_FUEL_PER_MILE = Decimal("0.1")
DEFAULT_CREW_COST_PER_HOUR = Decimal(100)
CREW_COST_PER_MEMBER = Decimal(50)
INSURANCE_RATE_PER_DAY = Decimal("0.001")
PORT_FEE_PER_STOP = Decimal(500)
TOP_ROUTES_IN_SUMMARY = 5
REPORT_LIST_LIMIT = 10
SIGNIFICANT_REVENUE = Decimal(1000)
LOW_MARGIN_THRESHOLD = Decimal("0.1")
HIGH_MARGIN_THRESHOLD = Decimal("0.3")


class RevenueSourceType(StrEnum):
    """Origin of a revenue line."""

    ROUTE = "route"
    CONTRACT = "contract"
    MARKET_TRADE = "market-trade"
    SERVICE = "service"


class RevenueModifierType(StrEnum):
    """Factor applied to a revenue line."""

    EFFICIENCY = "efficiency"
    MARKET = "market"
    SPECIALIST = "specialist"
    DISASTER = "disaster"
    COMPETITION = "competition"
    BONUS = "bonus"


class ExpenseType(StrEnum):
    """Cost category of an expense line."""

    MAINTENANCE = "maintenance"
    FUEL = "fuel"
    PORT_FEES = "port-fees"
    CREW = "crew"
    INSURANCE = "insurance"
    LOAN_PAYMENT = "loan-payment"
    UPGRADES = "upgrades"


class RevenueModifier(BaseModel):
    model_config = ConfigDict(frozen=True)

    modifier_type: RevenueModifierType
    value: Decimal
    description: str


class RevenueSource(BaseModel):
    """Revenue earned by one asset during a cycle."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(default_factory=lambda: f"revenue-{uuid4().hex[:12]}")
    source_type: RevenueSourceType = RevenueSourceType.ROUTE
    route_id: str | None = None
    asset_id: str | None = None
    description: str
    base_amount: Decimal = Field(..., ge=0)
    modifiers: tuple[RevenueModifier, ...] = Field(default_factory=tuple)
    final_amount: Decimal = Field(..., ge=0)
    timestamp: datetime


class ExpenseItem(BaseModel):
    """Cost incurred by one asset during a cycle."""

    model_config = ConfigDict(frozen=True)

    expense_type: ExpenseType
    amount: Decimal = Field(..., ge=0)
    description: str
    asset_id: str | None = None
    route_id: str | None = None
    timestamp: datetime


class AssetOperatingCost(BaseModel):
    """Running-cost rates of a transport asset."""

    model_config = ConfigDict(frozen=True)

    definition_id: str
    maintenance_per_hour: Decimal
    fuel_per_mile: Decimal
    crew_cost_per_hour: Decimal
    insurance_per_day: Decimal
    port_fees_per_stop: Decimal

    @classmethod
    def for_definition(cls, definition: AssetDefinition) -> AssetOperatingCost:
        """Derive rates from the catalog definition, with fallbacks for unset stats."""
        fuel = (
            1 / to_decimal(definition.fuel_efficiency)
            if definition.fuel_efficiency
            else DEFAULT_FUEL_PER_MILE
        )
        crew = (
            definition.crew_required * CREW_COST_PER_MEMBER
            if definition.crew_required
            else DEFAULT_CREW_COST_PER_HOUR
        )
        return cls(
            definition_id=definition.identifier,
            maintenance_per_hour=definition.maintenance_cost / 24,
            fuel_per_mile=fuel,
            crew_cost_per_hour=crew,
            insurance_per_day=definition.cost * INSURANCE_RATE_PER_DAY,
            port_fees_per_stop=PORT_FEE_PER_STOP,
        )


class RoutePerformance(BaseModel):
    model_config = ConfigDict(frozen=True)

    route_id: str
    route_name: str
    revenue: Decimal
    expenses: Decimal
    profit: Decimal
    profit_margin: Decimal
    trips: int = Field(..., ge=0)


class RevenueSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_revenue: Decimal = Decimal(0)
    total_expenses: Decimal = Decimal(0)
    net_profit: Decimal = Decimal(0)
    revenue_by_type: dict[str, Decimal] = Field(default_factory=dict)
    expenses_by_category: dict[str, Decimal] = Field(default_factory=dict)
    top_performing_routes: tuple[RoutePerformance, ...] = Field(default_factory=tuple)
    asset_utilization: Decimal = Decimal(0)


class RevenueCycle(BaseModel):
    """One pass of the revenue batch process."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(default_factory=lambda: f"cycle-{uuid4().hex[:12]}")
    player_id: str
    started_at: datetime
    ended_at: datetime
    status: CycleStatus = CycleStatus.PENDING
    revenues: tuple[RevenueSource, ...] = Field(default_factory=tuple)
    expenses: tuple[ExpenseItem, ...] = Field(default_factory=tuple)
    net_income: Decimal = Decimal(0)
    summary: RevenueSummary = Field(default_factory=RevenueSummary)
    error: str | None = None


class FinancialReport(BaseModel):
    """Aggregated cycle results for a reporting period."""

    model_config = ConfigDict(frozen=True)

    period_start: datetime
    period_end: datetime
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    profit_margin: Decimal
    cash_flow: Decimal
    revenue_growth: Decimal
    expense_growth: Decimal
    top_revenue_sources: tuple[RevenueSource, ...]
    major_expenses: tuple[ExpenseItem, ...]
    route_performance: tuple[RoutePerformance, ...]


def estimate_expenses(
    asset_id: str,
    definition: AssetDefinition,
    route: Route,
    *,
    trips: int,
    elapsed_hours: Decimal,
    expense_multiplier: Decimal,
    now: datetime,
) -> list[ExpenseItem]:
    """Estimate the costs of running one asset on *route* for a cycle.

    Maintenance and insurance accrue with elapsed time. Fuel, crew and port
    fees are only charged for trips actually completed.
    """
    rates = AssetOperatingCost.for_definition(definition)
    distance = to_decimal(route.distance)
    route_hours = to_decimal(route.estimated_hours)
    amounts = {
        ExpenseType.MAINTENANCE: rates.maintenance_per_hour * elapsed_hours,
        ExpenseType.INSURANCE: rates.insurance_per_day * elapsed_hours / 24,
        ExpenseType.FUEL: distance * rates.fuel_per_mile * trips,
        ExpenseType.CREW: rates.crew_cost_per_hour * route_hours * trips,
        ExpenseType.PORT_FEES: rates.port_fees_per_stop * len(route.stops) * trips,
    }
    return [
        ExpenseItem(
            expense_type=expense_type,
            amount=quantize_money(amount * expense_multiplier),
            description=f"{expense_type.value} for {definition.name}",
            asset_id=asset_id,
            route_id=route.identifier,
            timestamp=now,
        )
        for expense_type, amount in amounts.items()
        if amount > 0
    ]


def summarize_cycle(
    revenues: Iterable[RevenueSource],
    expenses: Iterable[ExpenseItem],
    route_performance: Iterable[RoutePerformance],
    asset_utilization: Decimal,
) -> RevenueSummary:
    """Aggregate cycle lines into totals and groupings."""
    revenue_by_type: dict[str, Decimal] = defaultdict(Decimal)
    expenses_by_category: dict[str, Decimal] = defaultdict(Decimal)
    total_revenue = Decimal(0)
    total_expenses = Decimal(0)
    for revenue in revenues:
        revenue_by_type[revenue.source_type.value] += revenue.final_amount
        total_revenue += revenue.final_amount
    for expense in expenses:
        expenses_by_category[expense.expense_type.value] += expense.amount
        total_expenses += expense.amount
    ranked = sorted(route_performance, key=lambda perf: perf.profit, reverse=True)
    return RevenueSummary(
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        net_profit=total_revenue - total_expenses,
        revenue_by_type=dict(revenue_by_type),
        expenses_by_category=dict(expenses_by_category),
        top_performing_routes=tuple(ranked[:TOP_ROUTES_IN_SUMMARY]),
        asset_utilization=asset_utilization,
    )


def _growth(current: Decimal, previous: Decimal) -> Decimal:
    if previous <= 0:
        return Decimal(0)
    return ((current - previous) / previous * 100).quantize(Decimal("0.01"))


def generate_financial_report(
    cycles: Sequence[RevenueCycle],
    now: datetime,
    period_days: int,
) -> FinancialReport:
    """Summarize completed cycles ending within the last *period_days*."""
    period = timedelta(days=period_days)
    period_start = now - period
    previous_start = period_start - period
    completed = [cycle for cycle in cycles if cycle.status is CycleStatus.COMPLETED]
    current = [cycle for cycle in completed if cycle.ended_at >= period_start]
    previous = [
        cycle for cycle in completed if previous_start <= cycle.ended_at < period_start
    ]

    total_revenue = sum((cycle.summary.total_revenue for cycle in current), Decimal(0))
    total_expenses = sum((cycle.summary.total_expenses for cycle in current), Decimal(0))
    previous_revenue = sum((cycle.summary.total_revenue for cycle in previous), Decimal(0))
    previous_expenses = sum((cycle.summary.total_expenses for cycle in previous), Decimal(0))

    routes: dict[str, RoutePerformance] = {}
    for cycle in current:
        for perf in cycle.summary.top_performing_routes:
            existing = routes.get(perf.route_id)
            if existing is None:
                routes[perf.route_id] = perf
                continue
            revenue = existing.revenue + perf.revenue
            profit = existing.profit + perf.profit
            routes[perf.route_id] = existing.model_copy(
                update={
                    "revenue": revenue,
                    "expenses": existing.expenses + perf.expenses,
                    "profit": profit,
                    "profit_margin": profit / revenue if revenue > 0 else Decimal(0),
                    "trips": existing.trips + perf.trips,
                }
            )

    sources = sorted(
        (
            source
            for cycle in current
            for source in cycle.revenues
            if source.final_amount > SIGNIFICANT_REVENUE
        ),
        key=lambda source: source.final_amount,
        reverse=True,
    )
    expenses = sorted(
        (expense for cycle in current for expense in cycle.expenses),
        key=lambda expense: expense.amount,
        reverse=True,
    )
    net_profit = total_revenue - total_expenses
    return FinancialReport(
        period_start=period_start,
        period_end=now,
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        net_profit=net_profit,
        profit_margin=net_profit / total_revenue if total_revenue > 0 else Decimal(0),
        cash_flow=net_profit,
        revenue_growth=_growth(total_revenue, previous_revenue),
        expense_growth=_growth(total_expenses, previous_expenses),
        top_revenue_sources=tuple(sources[:REPORT_LIST_LIMIT]),
        major_expenses=tuple(expenses[:REPORT_LIST_LIMIT]),
        route_performance=tuple(
            sorted(routes.values(), key=lambda perf: perf.profit, reverse=True)[
                :REPORT_LIST_LIMIT
            ]
        ),
    )


def recommend(report: FinancialReport) -> list[str]:
    """Produce advisory text for display next to a report."""
    advice: list[str] = []
    if report.profit_margin < LOW_MARGIN_THRESHOLD:
        advice.append("Profit margins are low. Consider optimizing routes or reducing expenses.")
    if report.expense_growth > report.revenue_growth:
        advice.append("Expenses growing faster than revenue. Review operating costs.")
    if report.route_performance and (
        report.route_performance[0].profit_margin > HIGH_MARGIN_THRESHOLD
    ):
        best = report.route_performance[0]
        advice.append(
            f'Route "{best.route_name}" is highly profitable. Consider expanding similar routes.'
        )
    return advice


__all__ = [
    "AssetOperatingCost",
    "ExpenseItem",
    "ExpenseType",
    "FinancialReport",
    "RevenueCycle",
    "RevenueModifier",
    "RevenueModifierType",
    "RevenueSource",
    "RevenueSourceType",
    "RevenueSummary",
    "RoutePerformance",
    "estimate_expenses",
    "generate_financial_report",
    "recommend",
    "summarize_cycle",
]
