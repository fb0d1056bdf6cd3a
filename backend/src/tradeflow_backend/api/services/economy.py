"""Economy service exposed to the API layer."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from tradeflow_backend.game_logic import (
    EconomySession,
    InMemoryLedgerSnapshotStore,
    RevenueCycleOrchestrator,
    build_scenario_configuration,
    default_catalog,
)

if TYPE_CHECKING:
    from tradeflow_backend.game_logic.configuration import EconomyConfiguration
    from tradeflow_backend.game_logic.revenue import RevenueCycle


class EconomyService:
    """Own one economy session plus a revenue orchestrator per player."""

    def __init__(self, session: EconomySession) -> None:
        self._session = session
        self._snapshots = InMemoryLedgerSnapshotStore()
        self._orchestrators: dict[str, RevenueCycleOrchestrator] = {}
        self._lock = threading.Lock()

    @classmethod
    def create_default(
        cls, config: EconomyConfiguration | None = None
    ) -> EconomyService:
        """Return a service backed by the starter catalog."""
        return cls(
            EconomySession(default_catalog(), config or build_scenario_configuration())
        )

    @property
    def session(self) -> EconomySession:
        return self._session

    @property
    def snapshots(self) -> InMemoryLedgerSnapshotStore:
        return self._snapshots

    def orchestrator(self, player_id: str) -> RevenueCycleOrchestrator:
        """Return the revenue orchestrator of *player_id*, creating it on first use."""
        with self._lock:
            orchestrator = self._orchestrators.get(player_id)
            if orchestrator is None:
                orchestrator = RevenueCycleOrchestrator(
                    self._session, player_id, snapshot_store=self._snapshots
                )
                self._orchestrators[player_id] = orchestrator
            return orchestrator

    def tick_all(self) -> list[RevenueCycle]:
        """Tick the orchestrator of every registered player; return the cycles that ran."""
        cycles = []
        for empire in self._session.players():
            cycle = self.orchestrator(empire.player_id).tick()
            if cycle is not None:
                cycles.append(cycle)
        return cycles


__all__ = ["EconomyService"]
