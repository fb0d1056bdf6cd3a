"""Core rules and mechanics that drive the Tradeflow economy."""

from tradeflow_backend.game_logic.catalog import (
    AssetDefinition,
    Catalog,
    GoodDefinition,
    Location,
    default_catalog,
)
from tradeflow_backend.game_logic.configuration import (
    EconomyConfiguration,
    EconomyDefaults,
    ScenarioOverrides,
    build_scenario_configuration,
    get_default_economy_configuration,
)
from tradeflow_backend.game_logic.disasters import Disaster, TimeEventEffects
from tradeflow_backend.game_logic.effects import (
    AreaEffectResult,
    EffectTarget,
    apply_port_efficiency_boost,
    calculate_area_effects,
    calculate_storage_network_bonus,
    calculate_utilization_penalty,
    can_store_cargo_type,
    get_cumulative_effects,
)
from tradeflow_backend.game_logic.growth import GrowthParameters, calculate_compounding_growth
from tradeflow_backend.game_logic.ledger import (
    FinancialLedger,
    FinancialRecord,
    LoanAccount,
    PlayerFinancials,
)
from tradeflow_backend.game_logic.market import (
    Good,
    MarketBoard,
    MarketSnapshot,
    MarketState,
    update_prices,
)
from tradeflow_backend.game_logic.orchestration import CycleTimer, RevenueCycleOrchestrator
from tradeflow_backend.game_logic.persistence import (
    CycleHistoryStore,
    InMemoryCycleHistoryStore,
    InMemoryLedgerSnapshotStore,
    LedgerSnapshotStore,
)
from tradeflow_backend.game_logic.revenue import (
    FinancialReport,
    RevenueCycle,
    generate_financial_report,
    recommend,
)
from tradeflow_backend.game_logic.routes import (
    RouteProfit,
    RouteProfitability,
    calculate_route_profit,
    calculate_route_profitability,
)
from tradeflow_backend.game_logic.session import EconomySession, PlayerEmpire, TradeQuote
from tradeflow_backend.game_logic.state import (
    EconomyModifiers,
    InventoryLedger,
    PlacedAsset,
    Route,
)

__all__ = [
    "AreaEffectResult",
    "AssetDefinition",
    "Catalog",
    "CycleHistoryStore",
    "CycleTimer",
    "Disaster",
    "EconomyConfiguration",
    "EconomyDefaults",
    "EconomyModifiers",
    "EconomySession",
    "EffectTarget",
    "FinancialLedger",
    "FinancialRecord",
    "FinancialReport",
    "Good",
    "GoodDefinition",
    "GrowthParameters",
    "InMemoryCycleHistoryStore",
    "InMemoryLedgerSnapshotStore",
    "InventoryLedger",
    "LedgerSnapshotStore",
    "LoanAccount",
    "Location",
    "MarketBoard",
    "MarketSnapshot",
    "MarketState",
    "PlacedAsset",
    "PlayerEmpire",
    "PlayerFinancials",
    "RevenueCycle",
    "RevenueCycleOrchestrator",
    "Route",
    "RouteProfit",
    "RouteProfitability",
    "ScenarioOverrides",
    "TimeEventEffects",
    "TradeQuote",
    "apply_port_efficiency_boost",
    "build_scenario_configuration",
    "calculate_area_effects",
    "calculate_compounding_growth",
    "calculate_route_profit",
    "calculate_route_profitability",
    "calculate_storage_network_bonus",
    "calculate_utilization_penalty",
    "can_store_cargo_type",
    "default_catalog",
    "generate_financial_report",
    "get_cumulative_effects",
    "get_default_economy_configuration",
    "recommend",
    "update_prices",
]
