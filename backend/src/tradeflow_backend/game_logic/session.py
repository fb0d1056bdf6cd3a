"""Aggregate root that owns all economy state and exposes its command API."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence  # noqa: TC003
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from tradeflow_backend.game_logic.catalog import AssetDefinition, Catalog, default_catalog
from tradeflow_backend.game_logic.configuration import (
    EconomyConfiguration,
    get_default_economy_configuration,
)
from tradeflow_backend.game_logic.disasters import (
    Disaster,
    TimeEventEffects,
    expire_disasters,
    generate_disaster,
    severity_to_penalty,
)
from tradeflow_backend.game_logic.effects import (
    AreaEffectResult,
    calculate_area_effects,
    calculate_storage_network_bonus,
    effect_targets,
    get_cumulative_effects,
)
from tradeflow_backend.game_logic.ledger import FinancialLedger, FinancialRecord, PlayerFinancials
from tradeflow_backend.game_logic.market import (
    MarketBoard,
    MarketDynamics,
    MarketSnapshot,
    MarketState,
    apply_time_event_effects,
    apply_trade_pressure,
    goods_from_catalog,
    price_at_location,
    remove_time_event_effects,
    update_prices,
)
from tradeflow_backend.game_logic.routes import (
    RouteProfitability,
    build_segments,
    calculate_route_profitability,
    route_distance,
    travel_hours,
)
from tradeflow_backend.game_logic.state import InventoryLedger, PlacedAsset, Route
from tradeflow_backend.shared.enums import (
    AssetType,
    EffectType,
    MarketCondition,
    TargetType,
    TradeSide,
    TransactionType,
)
from tradeflow_backend.shared.errors import (
    CapacityExceededError,
    ConcurrencyConflictError,
    EconomyValidationError,
    InsufficientFundsError,
)
from tradeflow_backend.shared.events import EventOutbox
from tradeflow_backend.shared.rng import DeterministicRandomService  # noqa: TC001
from tradeflow_backend.shared.value_objects import Position, quantize_money

logger = logging.getLogger(__name__)

REFERENCE_ROUTE_SPEED = 20.0
MARKET_PUBLISH_ATTEMPTS = 3
ASSET_PURCHASE_CATEGORY = "asset-purchase"
ASSET_SALE_CATEGORY = "asset-sale"
TRADE_PURCHASE_CATEGORY = "trade-purchase"
TRADE_SALE_CATEGORY = "trade-sale"


class TradeQuote(BaseModel):
    """Tentative trade priced against a specific market version."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(default_factory=lambda: f"quote-{uuid4().hex[:12]}")
    player_id: str
    good_id: str
    side: TradeSide
    quantity: int = Field(..., gt=0)
    unit_price: Decimal
    total: Decimal
    location_id: str | None = None
    market_version: int
    quoted_at: datetime


class PlayerEmpire:
    """Everything one player owns: ledger, placed assets, routes and cargo."""

    def __init__(self, ledger: FinancialLedger) -> None:
        self.ledger = ledger
        self.assets: dict[str, PlacedAsset] = {}
        self.routes: dict[str, Route] = {}
        self.inventory = InventoryLedger()

    @property
    def player_id(self) -> str:
        return self.ledger.player_id

    def asset(self, asset_id: str) -> PlacedAsset:
        try:
            return self.assets[asset_id]
        except KeyError:
            msg = f"Player {self.player_id} owns no asset '{asset_id}'."
            raise EconomyValidationError(msg) from None

    def route(self, route_id: str) -> Route:
        try:
            return self.routes[route_id]
        except KeyError:
            msg = f"Player {self.player_id} has no route '{route_id}'."
            raise EconomyValidationError(msg) from None

    def active_routes(self) -> tuple[Route, ...]:
        return tuple(route for route in self.routes.values() if route.is_active)


class EconomySession:
    """Single owner of the catalog, market board, players and disasters.

    Every mutation goes through a command method that validates its input
    first. Per-player commands are serialized by that player's ledger lock and
    market publication by the board lock.
    """

    def __init__(
        self,
        catalog: Catalog | None = None,
        config: EconomyConfiguration | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        outbox: EventOutbox | None = None,
    ) -> None:
        self._catalog = catalog or default_catalog()
        self._config = config or get_default_economy_configuration()
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._definitions = self._catalog.definitions_by_id()
        self._board = MarketBoard(
            goods_from_catalog(self._catalog, now=self._clock()),
            MarketState(updated_at=self._clock()),
        )
        self._outbox = outbox or EventOutbox(limit=self._config.event_buffer_limit)
        self._players: dict[str, PlayerEmpire] = {}
        self._disasters: tuple[Disaster, ...] = ()
        self._quotes: dict[str, TradeQuote] = {}
        self._lock = threading.Lock()

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def config(self) -> EconomyConfiguration:
        return self._config

    @property
    def board(self) -> MarketBoard:
        return self._board

    @property
    def outbox(self) -> EventOutbox:
        return self._outbox

    @property
    def disasters(self) -> tuple[Disaster, ...]:
        return self._disasters

    def now(self) -> datetime:
        """Return the session clock reading."""
        return self._clock()

    def definition(self, definition_id: str) -> AssetDefinition:
        """Return the catalog definition registered under *definition_id*."""
        return self._catalog.asset_definition(definition_id)

    # Players -------------------------------------------------------------

    def register_player(self, player_id: str) -> PlayerFinancials:
        """Open a ledger funded with the configured starting cash."""
        if not player_id.strip():
            msg = "Player identifier must not be blank."
            raise EconomyValidationError(msg)
        with self._lock:
            if player_id in self._players:
                msg = f"Player '{player_id}' is already registered."
                raise EconomyValidationError(msg)
            ledger = FinancialLedger(player_id, self._config, clock=self._clock)
            self._players[player_id] = PlayerEmpire(ledger)
        logger.info("Registered player %s", player_id)
        return ledger.snapshot()

    def player(self, player_id: str) -> PlayerEmpire:
        """Return the empire owned by *player_id*."""
        try:
            return self._players[player_id]
        except KeyError:
            msg = f"Unknown player '{player_id}'."
            raise EconomyValidationError(msg) from None

    def players(self) -> tuple[PlayerEmpire, ...]:
        """Return every registered player."""
        with self._lock:
            return tuple(self._players.values())

    def ledger(self, player_id: str) -> FinancialLedger:
        """Return the financial ledger of *player_id*."""
        return self.player(player_id).ledger

    # Assets --------------------------------------------------------------

    def purchase_asset(
        self,
        player_id: str,
        definition_id: str,
        position: Position,
        rotation: float = 0,
    ) -> PlacedAsset:
        """Buy an asset and place it on the map."""
        empire = self.player(player_id)
        definition = self.definition(definition_id)
        asset = PlacedAsset(
            identifier=f"asset-{uuid4().hex[:12]}",
            definition_id=definition.identifier,
            owner_id=player_id,
            position=position,
            rotation=rotation,
            purchased_at=self._clock(),
        )
        with empire.ledger.locked() as ledger:
            ledger.spend(
                ASSET_PURCHASE_CATEGORY,
                definition.cost,
                f"Purchased {definition.name}",
                asset_id=asset.identifier,
            )
            ledger.register_asset_value(definition.cost)
            empire.assets[asset.identifier] = asset
        logger.info("Player %s purchased %s (%s)", player_id, definition_id, asset.identifier)
        return asset

    def sell_asset(self, player_id: str, asset_id: str) -> Decimal:
        """Sell an owned asset at the configured resale ratio and return the refund."""
        empire = self.player(player_id)
        with empire.ledger.locked() as ledger:
            asset = empire.asset(asset_id)
            definition = self.definition(asset.definition_id)
            refund = quantize_money(definition.cost * self._config.asset_resale_ratio)
            if asset.route_id is not None:
                route = empire.route(asset.route_id)
                empire.routes[route.identifier] = route.without_asset(asset_id)
            if refund > 0:
                ledger.record_transaction(
                    TransactionType.INCOME,
                    ASSET_SALE_CATEGORY,
                    refund,
                    f"Sold {definition.name}",
                    asset_id=asset_id,
                )
            ledger.register_asset_value(-definition.cost)
            del empire.assets[asset_id]
        logger.info("Player %s sold %s for %s", player_id, asset_id, refund)
        return refund

    # Routes --------------------------------------------------------------

    def create_route(
        self,
        player_id: str,
        name: str,
        origin_id: str,
        destination_id: str,
        waypoints: Sequence[str] = (),
    ) -> Route:
        """Create an inactive route through the given locations."""
        empire = self.player(player_id)
        stops = [self._catalog.location(stop) for stop in (origin_id, *waypoints, destination_id)]
        distance = route_distance(stop.position for stop in stops)
        try:
            route = Route(
                identifier=f"route-{uuid4().hex[:12]}",
                owner_id=player_id,
                name=name,
                origin_id=origin_id,
                destination_id=destination_id,
                waypoints=tuple(waypoints),
                distance=distance,
                estimated_hours=travel_hours(distance, REFERENCE_ROUTE_SPEED, AssetType.SHIP),
            )
        except ValueError as exc:
            raise EconomyValidationError(str(exc)) from exc
        with empire.ledger.locked():
            empire.routes[route.identifier] = route
        return route

    def set_route_active(self, player_id: str, route_id: str, *, active: bool) -> Route:
        """Activate or deactivate a route."""
        empire = self.player(player_id)
        with empire.ledger.locked():
            route = empire.route(route_id).model_copy(update={"is_active": active})
            empire.routes[route_id] = route
        return route

    def assign_asset_to_route(self, player_id: str, route_id: str, asset_id: str) -> Route:
        """Attach an idle transport asset to a route."""
        empire = self.player(player_id)
        with empire.ledger.locked():
            route = empire.route(route_id)
            asset = empire.asset(asset_id)
            if not self.definition(asset.definition_id).is_transport:
                msg = f"Asset '{asset_id}' cannot service routes."
                raise EconomyValidationError(msg)
            if asset.route_id is not None:
                msg = f"Asset '{asset_id}' is already assigned to '{asset.route_id}'."
                raise EconomyValidationError(msg)
            if len(route.assigned_assets) >= self._config.max_assets_per_route:
                msg = (
                    f"Route '{route_id}' already has the maximum of "
                    f"{self._config.max_assets_per_route} assets."
                )
                raise CapacityExceededError(msg)
            route = route.with_asset(asset_id)
            empire.routes[route_id] = route
            empire.assets[asset_id] = asset.assign_to(route_id)
        return route

    def unassign_asset(self, player_id: str, asset_id: str) -> PlacedAsset:
        """Detach an asset from whatever route it services."""
        empire = self.player(player_id)
        with empire.ledger.locked():
            asset = empire.asset(asset_id)
            if asset.route_id is not None:
                route = empire.route(asset.route_id)
                empire.routes[route.identifier] = route.without_asset(asset_id)
            asset = asset.assign_to(None)
            empire.assets[asset_id] = asset
        return asset

    def route_profitability(
        self, player_id: str, route_id: str, asset_id: str
    ) -> RouteProfitability:
        """Value one run of *route_id* performed by *asset_id*."""
        empire = self.player(player_id)
        route = empire.route(route_id)
        definition = self.definition(empire.asset(asset_id).definition_id)
        if not definition.is_transport:
            msg = f"Asset '{asset_id}' cannot service routes."
            raise EconomyValidationError(msg)
        stops = [self._catalog.location(stop) for stop in route.stops]
        segments = build_segments(
            stops,
            speed=definition.speed,
            fuel_efficiency=definition.fuel_efficiency,
            asset_type=definition.asset_type,
        )
        return calculate_route_profitability(
            segments,
            capacity=definition.capacity,
            maintenance_cost_per_hour=definition.maintenance_cost / 24,
            asset_type=definition.asset_type,
        )

    # Trading -------------------------------------------------------------

    def quote_trade(
        self,
        player_id: str,
        good_id: str,
        quantity: int,
        side: TradeSide,
        *,
        location_id: str | None = None,
    ) -> TradeQuote:
        """Price a trade against the current market without committing it.

        The quote is held by the session until it is confirmed once or its
        time to live runs out; clients refer to it by identifier only.
        """
        self.player(player_id)
        if quantity <= 0:
            msg = f"Trade quantity must be positive, got {quantity}."
            raise EconomyValidationError(msg)
        snapshot = self._board.current
        good = snapshot.good(good_id)
        if good is None:
            msg = f"Unknown good '{good_id}'."
            raise EconomyValidationError(msg)
        now = self._clock()
        unit_price = good.current_price
        if location_id is not None:
            unit_price = price_at_location(
                good,
                self._catalog.location(location_id),
                exporting=side is TradeSide.BUY,
                disasters=self._disasters,
                now=now,
            )
        quote = TradeQuote(
            player_id=player_id,
            good_id=good_id,
            side=side,
            quantity=quantity,
            unit_price=unit_price,
            total=quantize_money(unit_price * quantity),
            location_id=location_id,
            market_version=snapshot.version,
            quoted_at=now,
        )
        with self._lock:
            for stale in [key for key, held in self._quotes.items() if self._expired(held, now)]:
                del self._quotes[stale]
            self._quotes[quote.identifier] = quote
        return quote

    def _expired(self, quote: TradeQuote, now: datetime) -> bool:
        return now - quote.quoted_at > timedelta(seconds=self._config.quote_ttl_seconds)

    def _take_quote(self, player_id: str, quote_id: str) -> TradeQuote:
        with self._lock:
            quote = self._quotes.get(quote_id)
            if quote is None or quote.player_id != player_id:
                msg = f"Player '{player_id}' holds no open quote '{quote_id}'."
                raise EconomyValidationError(msg)
            del self._quotes[quote_id]
        if self._expired(quote, self._clock()):
            msg = f"Quote {quote_id} expired; request a new one."
            raise ConcurrencyConflictError(msg)
        return quote

    def storage_capacity(self, player_id: str) -> int:
        """Return the total warehouse capacity owned by *player_id*."""
        empire = self.player(player_id)
        return sum(
            self.definition(asset.definition_id).storage_capacity
            for asset in empire.assets.values()
            if self.definition(asset.definition_id).is_warehouse
        )

    def confirm_trade(self, player_id: str, quote_id: str) -> FinancialRecord:
        """Commit a quote issued by this session, rejecting it when the market has moved.

        A quote is consumed by the first confirmation attempt whatever its
        outcome.
        """
        empire = self.player(player_id)
        quote = self._take_quote(player_id, quote_id)
        with empire.ledger.locked() as ledger:
            snapshot = self._board.current
            if snapshot.version != quote.market_version:
                msg = (
                    f"Quote {quote.identifier} was priced at market version "
                    f"{quote.market_version}, now {snapshot.version}."
                )
                raise ConcurrencyConflictError(msg)
            if quote.side is TradeSide.BUY:
                if quote.total > ledger.cash:
                    msg = f"Cannot pay {quote.total}; only {ledger.cash} available."
                    raise InsufficientFundsError(msg)
                stored = empire.inventory.total_units() + quote.quantity
                capacity = self.storage_capacity(quote.player_id)
                if stored > capacity:
                    msg = f"Storing {stored} units exceeds warehouse capacity {capacity}."
                    raise CapacityExceededError(msg)
                delta = quote.quantity
            else:
                held = empire.inventory.quantity(quote.good_id)
                if held < quote.quantity:
                    msg = f"Cannot sell {quote.quantity} {quote.good_id}; only {held} held."
                    raise EconomyValidationError(msg)
                delta = -quote.quantity

            goods = dict(snapshot.goods)
            goods[quote.good_id] = apply_trade_pressure(
                goods[quote.good_id], quote.quantity, quote.side
            )
            self._board.publish(goods, expected_version=quote.market_version)

            description = f"{quote.side.value.title()} {quote.quantity} {quote.good_id}"
            if quote.side is TradeSide.BUY:
                record = ledger.spend(TRADE_PURCHASE_CATEGORY, quote.total, description)
            else:
                record = ledger.record_transaction(
                    TransactionType.INCOME, TRADE_SALE_CATEGORY, quote.total, description
                )
            empire.inventory = empire.inventory.apply_delta(quote.good_id, delta)
        return record

    # Market --------------------------------------------------------------

    def refresh_market(
        self,
        rng: DeterministicRandomService | None = None,
        dynamics: MarketDynamics | None = None,
    ) -> MarketSnapshot:
        """Reprice every good and publish the result atomically."""
        for _ in range(MARKET_PUBLISH_ATTEMPTS):
            snapshot = self._board.current
            now = self._clock()
            goods = update_prices(
                snapshot.goods,
                snapshot.state,
                snapshot.modifiers,
                rng=rng,
                dynamics=dynamics,
                now=now,
                history_limit=self._config.price_history_limit,
            )
            state = snapshot.state.model_copy(update={"updated_at": now})
            try:
                return self._board.publish(
                    goods, state=state, expected_version=snapshot.version
                )
            except ConcurrencyConflictError:
                logger.debug("Market moved during refresh; recomputing")
        msg = "Market kept moving while it was being repriced."
        raise ConcurrencyConflictError(msg)

    def set_market_condition(self, condition: MarketCondition) -> MarketSnapshot:
        """Change the global market condition."""
        state = self._board.current.state.model_copy(
            update={"condition": condition, "updated_at": self._clock()}
        )
        return self._board.publish(state=state)

    def apply_time_event(self, effects: TimeEventEffects) -> MarketSnapshot:
        """Apply a calendar or scripted event to every good."""
        snapshot = self._board.current
        goods, modifiers = apply_time_event_effects(snapshot.goods, effects, snapshot.modifiers)
        return self._board.publish(
            goods, modifiers=modifiers, expected_version=snapshot.version
        )

    def clear_time_events(self) -> MarketSnapshot:
        """Remove the volatility contributed by time events."""
        snapshot = self._board.current
        return self._board.publish(
            modifiers=remove_time_event_effects(snapshot.modifiers),
            expected_version=snapshot.version,
        )

    # Disasters -----------------------------------------------------------

    def _player_regions(self, empire: PlayerEmpire) -> set[str]:
        return {
            self._catalog.location(stop).region
            for route in empire.routes.values()
            for stop in route.stops
        }

    def _refresh_disaster_penalties(self, active: Sequence[Disaster]) -> None:
        """Set each player's penalty from the worst active disaster on their routes."""
        for empire in self.players():
            regions = self._player_regions(empire)
            severities = [
                disaster.severity
                for disaster in active
                if regions & set(disaster.affected_regions)
            ]
            empire.ledger.apply_disaster_penalty(
                severity_to_penalty(max(severities)) if severities else Decimal(0)
            )

    def trigger_disaster(self, disaster: Disaster) -> Disaster:
        """Record *disaster* and penalize players operating in its regions."""
        now = self._clock()
        with self._lock:
            self._disasters = (*self._disasters, disaster)
            active = tuple(item for item in self._disasters if item.is_active(now))
        self._refresh_disaster_penalties(active)
        logger.info(
            "Disaster %s (%s, severity %s) hit %s",
            disaster.identifier,
            disaster.kind,
            disaster.severity,
            ", ".join(disaster.affected_regions),
        )
        return disaster

    def trigger_random_disaster(self, rng: DeterministicRandomService) -> Disaster:
        """Generate a disaster over the catalog regions and trigger it."""
        regions = sorted({location.region for location in self._catalog.locations})
        return self.trigger_disaster(generate_disaster(rng, regions, self._clock()))

    def expire_disasters(self) -> tuple[Disaster, ...]:
        """Drop finished disasters and lift penalties no longer justified."""
        now = self._clock()
        with self._lock:
            self._disasters = expire_disasters(self._disasters, now)
            active = self._disasters
        self._refresh_disaster_penalties(active)
        return active

    # Spatial effects -----------------------------------------------------

    def placed_assets(self) -> tuple[PlacedAsset, ...]:
        """Return every asset placed by any player."""
        return tuple(asset for empire in self.players() for asset in empire.assets.values())

    def area_effects(self) -> dict[str, list[AreaEffectResult]]:
        """Return the effects every placed asset grants to nearby targets."""
        assets = self.placed_assets()
        return calculate_area_effects(
            assets,
            self._definitions,
            effect_targets(self._catalog.locations, assets),
        )

    def location_bonuses(self, location_id: str) -> dict[EffectType, Decimal]:
        """Return the summed effects reaching *location_id*."""
        self._catalog.location(location_id)
        return get_cumulative_effects(location_id, TargetType.PORT, self.area_effects())

    def storage_network_bonus(self, player_id: str) -> Decimal:
        """Return the warehouse network bonus earned by *player_id*."""
        empire = self.player(player_id)
        return calculate_storage_network_bonus(empire.assets.values(), self._definitions)

    def transport_assets(
        self, empire: PlayerEmpire, asset_ids: Iterable[str]
    ) -> tuple[tuple[PlacedAsset, AssetDefinition], ...]:
        """Return the transport assets among *asset_ids* with their definitions."""
        pairs = []
        for asset_id in asset_ids:
            asset = empire.assets.get(asset_id)
            if asset is None:
                continue
            definition = self.definition(asset.definition_id)
            if definition.is_transport:
                pairs.append((asset, definition))
        return tuple(pairs)


__all__ = ["EconomySession", "PlayerEmpire", "TradeQuote"]
