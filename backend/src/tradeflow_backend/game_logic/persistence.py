"""Persistence abstractions for revenue cycle history and ledger snapshots.

The game logic layer stores completed cycles and ledger snapshots through
these protocols so it never depends on a concrete storage backend. Callers can
provide database-backed adapters; the in-memory ones below serve the API and
tests.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Protocol

from tradeflow_backend.game_logic.ledger import PlayerFinancials  # noqa: TC001
from tradeflow_backend.game_logic.revenue import RevenueCycle  # noqa: TC001


class CycleHistoryStore(Protocol):
    """Protocol describing how finished revenue cycles are persisted."""

    def append_cycle(self, player_id: str, cycle: RevenueCycle) -> None:
        """Persist *cycle* after the existing history of *player_id*."""

    def fetch_cycles(self, player_id: str) -> tuple[RevenueCycle, ...]:
        """Return the stored cycles of *player_id*, oldest first."""


class LedgerSnapshotStore(Protocol):
    """Protocol describing how ledger snapshots are persisted."""

    def save_snapshot(self, snapshot: PlayerFinancials) -> None:
        """Persist *snapshot*, replacing any previous value for the player."""

    def load_snapshot(self, player_id: str) -> PlayerFinancials | None:
        """Return the latest stored snapshot for *player_id* or ``None``."""


class InMemoryCycleHistoryStore:
    """Bounded in-memory implementation of :class:`CycleHistoryStore`."""

    def __init__(self, *, limit: int = 100) -> None:
        if limit < 1:
            msg = "Cycle history limit must be positive."
            raise ValueError(msg)
        self._limit = limit
        self._cycles: dict[str, deque[RevenueCycle]] = {}
        self._lock = threading.Lock()

    def append_cycle(self, player_id: str, cycle: RevenueCycle) -> None:
        """Append *cycle*, evicting the oldest once the limit is reached."""
        with self._lock:
            history = self._cycles.setdefault(player_id, deque(maxlen=self._limit))
            history.append(cycle)

    def fetch_cycles(self, player_id: str) -> tuple[RevenueCycle, ...]:
        """Return all cycles stored for *player_id*."""
        with self._lock:
            return tuple(self._cycles.get(player_id, ()))


class InMemoryLedgerSnapshotStore:
    """Trivial in-memory implementation of :class:`LedgerSnapshotStore`."""

    def __init__(self) -> None:
        self._snapshots: dict[str, PlayerFinancials] = {}

    def save_snapshot(self, snapshot: PlayerFinancials) -> None:
        """Store *snapshot* keyed by its player."""
        self._snapshots[snapshot.player_id] = snapshot

    def load_snapshot(self, player_id: str) -> PlayerFinancials | None:
        """Return the stored snapshot for *player_id* if available."""
        return self._snapshots.get(player_id)


__all__ = [
    "CycleHistoryStore",
    "InMemoryCycleHistoryStore",
    "InMemoryLedgerSnapshotStore",
    "LedgerSnapshotStore",
]
