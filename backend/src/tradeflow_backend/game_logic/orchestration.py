"""Revenue cycle orchestration: the periodic batch that posts route income.

Each player gets one :class:`RevenueCycleOrchestrator`. A cycle gathers the
player's active routes, values every assigned transport asset, estimates its
running costs and posts the net result to the ledger as a single transaction.
Any failure leaves the ledger untouched; the cycle is retried on the next
tick.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable  # noqa: TC003
from datetime import datetime, timedelta
from decimal import Decimal

from tradeflow_backend.game_logic.persistence import (
    CycleHistoryStore,
    InMemoryCycleHistoryStore,
    LedgerSnapshotStore,
)
from tradeflow_backend.game_logic.revenue import (
    ExpenseItem,
    FinancialReport,
    RevenueCycle,
    RevenueModifier,
    RevenueModifierType,
    RevenueSource,
    RoutePerformance,
    estimate_expenses,
    generate_financial_report,
    summarize_cycle,
)
from tradeflow_backend.game_logic.routes import calculate_route_profit
from tradeflow_backend.game_logic.session import EconomySession, PlayerEmpire  # noqa: TC001
from tradeflow_backend.shared.enums import AssetStatus, CycleStatus, TransactionType
from tradeflow_backend.shared.errors import CalculationError
from tradeflow_backend.shared.events import RevenueEvent, RevenueEventType
from tradeflow_backend.shared.value_objects import Numeric, quantize_money, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_GAME_HOURS_PER_SECOND = Decimal(1)
CARGO_UNITS_PER_MULTIPLIER = 1000
REVENUE_CYCLE_CATEGORY = "revenue-cycle"
OPERATING_COSTS_CATEGORY = "operating-costs"


def _checked(value: Numeric, label: str) -> Decimal:
    amount = to_decimal(value)
    if amount < 0:
        msg = f"{label} must not be negative, got {amount}."
        raise CalculationError(msg)
    return amount


class RevenueCycleOrchestrator:
    """State machine running revenue cycles for one player.

    The orchestrator is ``processing`` while a cycle runs and ``pending``
    otherwise. The terminal state of the most recent cycle, ``completed`` or
    ``failed``, is exposed as :attr:`last_status`. A tick arriving while a
    cycle is processing is dropped, never queued.

    Work done after the ledger posting is best effort. A failing store or
    event publication is logged and never fails a committed cycle.
    """

    def __init__(
        self,
        session: EconomySession,
        player_id: str,
        *,
        history_store: CycleHistoryStore | None = None,
        snapshot_store: LedgerSnapshotStore | None = None,
        game_hours_per_second: Numeric = DEFAULT_GAME_HOURS_PER_SECOND,
        started_at: datetime | None = None,
    ) -> None:
        session.player(player_id)
        self._session = session
        self._player_id = player_id
        self._config = session.config
        self._history = history_store or InMemoryCycleHistoryStore(
            limit=self._config.cycle_history_limit
        )
        self._snapshots = snapshot_store
        self._hours_per_second = to_decimal(game_hours_per_second)
        self._interval = timedelta(seconds=self._config.cycle_interval_seconds)
        self._guard = threading.Lock()
        self._status = CycleStatus.PENDING
        self._last_status: CycleStatus | None = None
        self._last_processed = started_at or session.now()
        self._next_cycle_time = self._last_processed + self._interval
        self._current: RevenueCycle | None = None

    @property
    def player_id(self) -> str:
        return self._player_id

    @property
    def status(self) -> CycleStatus:
        return self._status

    @property
    def last_status(self) -> CycleStatus | None:
        """Terminal status of the latest cycle, ``None`` before the first one."""
        return self._last_status

    @property
    def next_cycle_time(self) -> datetime:
        return self._next_cycle_time

    @property
    def current_cycle(self) -> RevenueCycle | None:
        return self._current

    def history(self) -> tuple[RevenueCycle, ...]:
        """Return stored cycles, oldest first."""
        return self._history.fetch_cycles(self._player_id)

    def tick(self, now: datetime | None = None) -> RevenueCycle | None:
        """Run a cycle when one is due; return it, or ``None`` when skipped."""
        moment = now or self._session.now()
        if moment < self._next_cycle_time:
            return None
        if not self._guard.acquire(blocking=False):
            logger.warning(
                "Dropped revenue tick for %s: a cycle is already processing",
                self._player_id,
            )
            return None
        try:
            return self._run_cycle(moment)
        finally:
            self._status = CycleStatus.PENDING
            self._guard.release()

    def _run_cycle(self, now: datetime) -> RevenueCycle:
        self._status = CycleStatus.PROCESSING
        cycle = RevenueCycle(
            player_id=self._player_id,
            started_at=self._last_processed,
            ended_at=now,
            status=CycleStatus.PROCESSING,
        )
        self._current = cycle
        try:
            empire = self._session.player(self._player_id)
            with empire.ledger.locked():
                cycle = self._process(cycle, empire, now)
        except Exception as exc:
            logger.exception("Revenue cycle %s for %s failed", cycle.identifier, self._player_id)
            cycle = cycle.model_copy(update={"status": CycleStatus.FAILED, "error": str(exc)})
            self._finish(cycle)
            return cycle

        self._last_processed = now
        self._next_cycle_time = now + self._interval
        self._finish(cycle)
        self._after_commit(cycle, empire)
        logger.info(
            "Revenue cycle %s for %s completed: net %s",
            cycle.identifier,
            self._player_id,
            cycle.net_income,
        )
        return cycle

    def _finish(self, cycle: RevenueCycle) -> None:
        self._current = cycle
        self._last_status = cycle.status
        try:
            self._history.append_cycle(self._player_id, cycle)
        except Exception:
            logger.exception(
                "Could not store revenue cycle %s for %s", cycle.identifier, self._player_id
            )

    def _after_commit(self, cycle: RevenueCycle, empire: PlayerEmpire) -> None:
        try:
            self._publish_events(cycle)
        except Exception:
            logger.exception("Could not publish events for revenue cycle %s", cycle.identifier)
        if self._snapshots is None:
            return
        try:
            self._snapshots.save_snapshot(empire.ledger.snapshot())
        except Exception:
            logger.exception("Could not save ledger snapshot for %s", self._player_id)

    def _process(
        self, cycle: RevenueCycle, empire: PlayerEmpire, now: datetime
    ) -> RevenueCycle:
        elapsed_seconds = to_decimal((now - cycle.started_at).total_seconds())
        elapsed_hours = _checked(elapsed_seconds * self._hours_per_second, "Elapsed time")
        modifiers = empire.ledger.modifiers
        condition = self._session.board.current.state.condition
        competition = 1 - self._config.competition_pressure
        bonus = self._config.base_revenue_multiplier

        revenues: list[RevenueSource] = []
        expenses: list[ExpenseItem] = []
        performance: list[RoutePerformance] = []
        for route in empire.active_routes():
            transports = self._session.transport_assets(empire, route.assigned_assets)
            if not transports:
                continue
            trips = int(elapsed_hours // to_decimal(route.estimated_hours))
            route_revenue = Decimal(0)
            route_expenses = Decimal(0)
            for asset, definition in transports:
                if trips > 0:
                    profit = calculate_route_profit(
                        distance=route.distance,
                        base_rate_per_mile=self._config.base_rate_per_mile,
                        cargo_value_multiplier=Decimal(definition.capacity)
                        / CARGO_UNITS_PER_MULTIPLIER,
                        asset_level=definition.level,
                        specialist_bonus=modifiers.specialist_bonus,
                        market_condition=condition,
                        maintenance_cost_rate=0,
                        disaster_penalty=modifiers.disaster_penalty,
                    )
                    final = quantize_money(
                        _checked(profit.total_profit * trips * competition * bonus, "Revenue")
                    )
                    revenues.append(
                        RevenueSource(
                            route_id=route.identifier,
                            asset_id=asset.identifier,
                            description=f"{definition.name} on {route.name}",
                            base_amount=quantize_money(profit.base_profit * trips),
                            modifiers=(
                                RevenueModifier(
                                    modifier_type=RevenueModifierType.EFFICIENCY,
                                    value=profit.asset_efficiency_modifier,
                                    description=f"Level {definition.level} asset efficiency",
                                ),
                                RevenueModifier(
                                    modifier_type=RevenueModifierType.MARKET,
                                    value=profit.market_condition_modifier,
                                    description=f"Market {condition.value}",
                                ),
                                RevenueModifier(
                                    modifier_type=RevenueModifierType.DISASTER,
                                    value=1 - modifiers.disaster_penalty,
                                    description="Disaster penalty",
                                ),
                                RevenueModifier(
                                    modifier_type=RevenueModifierType.COMPETITION,
                                    value=competition,
                                    description="Competition pressure",
                                ),
                                RevenueModifier(
                                    modifier_type=RevenueModifierType.BONUS,
                                    value=bonus,
                                    description="Base revenue multiplier",
                                ),
                            ),
                            final_amount=final,
                            timestamp=now,
                        )
                    )
                    route_revenue += final
                for item in estimate_expenses(
                    asset.identifier,
                    definition,
                    route,
                    trips=trips,
                    elapsed_hours=elapsed_hours,
                    expense_multiplier=self._config.expense_multiplier,
                    now=now,
                ):
                    _checked(item.amount, f"{item.expense_type.value} expense")
                    expenses.append(item)
                    route_expenses += item.amount
            performance.append(
                RoutePerformance(
                    route_id=route.identifier,
                    route_name=route.name,
                    revenue=route_revenue,
                    expenses=route_expenses,
                    profit=route_revenue - route_expenses,
                    profit_margin=(
                        (route_revenue - route_expenses) / route_revenue
                        if route_revenue > 0
                        else Decimal(0)
                    ),
                    trips=trips,
                )
            )

        summary = summarize_cycle(revenues, expenses, performance, self._utilization(empire))
        net = quantize_money(summary.net_profit)
        if net > 0:
            empire.ledger.record_transaction(
                TransactionType.INCOME,
                REVENUE_CYCLE_CATEGORY,
                net,
                f"Revenue cycle {cycle.identifier}: net income from {len(performance)} routes",
            )
        elif net < 0:
            empire.ledger.record_transaction(
                TransactionType.EXPENSE,
                OPERATING_COSTS_CATEGORY,
                -net,
                f"Revenue cycle {cycle.identifier}: net operating loss",
            )
        return cycle.model_copy(
            update={
                "status": CycleStatus.COMPLETED,
                "revenues": tuple(revenues),
                "expenses": tuple(expenses),
                "net_income": net,
                "summary": summary,
            }
        )

    def _utilization(self, empire: PlayerEmpire) -> Decimal:
        transports = self._session.transport_assets(empire, empire.assets)
        if not transports:
            return Decimal(0)
        in_transit = sum(1 for asset, _ in transports if asset.status is AssetStatus.TRANSIT)
        return Decimal(in_transit) / Decimal(len(transports))

    def _publish_events(self, cycle: RevenueCycle) -> None:
        outbox = self._session.outbox
        metadata = {"cycle_id": cycle.identifier, "player_id": self._player_id}
        summary = cycle.summary
        if summary.total_revenue > 0:
            outbox.publish(
                RevenueEvent(
                    event_type=RevenueEventType.REVENUE_GENERATED,
                    amount=summary.total_revenue,
                    description=f"Generated revenue from {len(cycle.revenues)} sources",
                    metadata=metadata,
                    occurred_at=cycle.ended_at,
                )
            )
        if summary.total_expenses > 0:
            outbox.publish(
                RevenueEvent(
                    event_type=RevenueEventType.EXPENSE_INCURRED,
                    amount=summary.total_expenses,
                    description=f"Incurred {len(summary.expenses_by_category)} expense categories",
                    metadata=metadata,
                    occurred_at=cycle.ended_at,
                )
            )
        outbox.publish(
            RevenueEvent(
                event_type=RevenueEventType.CYCLE_COMPLETED,
                amount=cycle.net_income,
                description=f"Revenue cycle {cycle.identifier} completed",
                metadata=metadata,
                occurred_at=cycle.ended_at,
            )
        )

    def generate_financial_report(
        self, period_days: int, now: datetime | None = None
    ) -> FinancialReport:
        """Summarize this player's completed cycles over *period_days*."""
        return generate_financial_report(
            self.history(), now or self._session.now(), period_days
        )


class CycleTimer:
    """Asynchronous fixed-interval loop that drives a tick callback.

    A tick that raises is logged and the loop carries on with the next one.
    """

    def __init__(
        self,
        tick: Callable[[], object],
        *,
        interval_seconds: float,
    ) -> None:
        if interval_seconds <= 0:
            msg = "Timer interval must be positive."
            raise ValueError(msg)
        self._tick = tick
        self._interval = interval_seconds
        self._cancel_event: asyncio.Event | None = None

    @property
    def running(self) -> bool:
        return self._cancel_event is not None

    async def run(self, *, max_ticks: int | None = None) -> int:
        """Call the tick callback every interval until cancelled; return the tick count."""
        cancel_event = asyncio.Event()
        self._cancel_event = cancel_event
        ticks = 0
        try:
            while not cancel_event.is_set():
                if max_ticks is not None and ticks >= max_ticks:
                    break
                try:
                    await asyncio.wait_for(cancel_event.wait(), timeout=self._interval)
                except TimeoutError:
                    self._run_tick()
                    ticks += 1
        finally:
            self._cancel_event = None
        return ticks

    def _run_tick(self) -> None:
        try:
            self._tick()
        except Exception:
            logger.exception("Cycle timer tick failed")

    def cancel(self) -> None:
        """Stop the running loop, if any."""
        if self._cancel_event is not None:
            self._cancel_event.set()


__all__ = [
    "CARGO_UNITS_PER_MULTIPLIER",
    "DEFAULT_GAME_HOURS_PER_SECOND",
    "OPERATING_COSTS_CATEGORY",
    "REVENUE_CYCLE_CATEGORY",
    "CycleTimer",
    "RevenueCycleOrchestrator",
]
