"""Notification events and the outbox that decouples their delivery."""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

logger = logging.getLogger(__name__)


class RevenueEventType(StrEnum):
    """Notification-worthy occurrences produced by the revenue cycle."""

    REVENUE_GENERATED = "revenue-generated"
    EXPENSE_INCURRED = "expense-incurred"
    CYCLE_COMPLETED = "cycle-completed"
    BONUS_EARNED = "bonus-earned"


class RevenueEvent(BaseModel):
    """Immutable notification handed to external pub/sub listeners."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(default_factory=lambda: f"event-{uuid4().hex[:12]}")
    event_type: RevenueEventType
    amount: Decimal
    description: str = Field(..., min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))


EventListener = Callable[[RevenueEvent], None]


class EventOutbox:
    """Bounded buffer of events awaiting delivery to subscribed listeners.

    Publishing only appends to the buffer, so calculation code never waits on
    a listener. Delivery happens when a collaborator calls :meth:`drain`.
    """

    def __init__(self, *, limit: int = 500) -> None:
        if limit < 1:
            msg = "Outbox limit must be positive."
            raise ValueError(msg)
        self._pending: deque[RevenueEvent] = deque(maxlen=limit)
        self._history: deque[RevenueEvent] = deque(maxlen=limit)
        self._listeners: list[EventListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: EventListener) -> None:
        """Register *listener* for future deliveries."""
        with self._lock:
            self._listeners.append(listener)

    def publish(self, event: RevenueEvent) -> None:
        """Queue *event* for delivery without invoking listeners."""
        with self._lock:
            self._pending.append(event)
            self._history.appendleft(event)

    def drain(self) -> tuple[RevenueEvent, ...]:
        """Deliver every pending event to all listeners and return them."""
        with self._lock:
            batch = tuple(self._pending)
            self._pending.clear()
            listeners = tuple(self._listeners)
        for event in batch:
            for listener in listeners:
                try:
                    listener(event)
                except Exception:
                    logger.exception(
                        "Listener %r failed on event %s", listener, event.identifier
                    )
        return batch

    def recent(self) -> tuple[RevenueEvent, ...]:
        """Return published events, newest first."""
        with self._lock:
            return tuple(self._history)


__all__ = [
    "EventListener",
    "EventOutbox",
    "RevenueEvent",
    "RevenueEventType",
]
