"""Disaster and time-event modifiers layered on top of the market."""

from __future__ import annotations

from collections.abc import Iterable, Sequence  # noqa: TC003
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from tradeflow_backend.shared.enums import DisasterKind
from tradeflow_backend.shared.rng import DeterministicRandomService  # noqa: TC001

REGIONAL_DISASTER_STEP = Decimal("0.2")
SEVERITY_PENALTY_DIVISOR = Decimal(10)
MIN_DURATION_HOURS = 12
MAX_DURATION_HOURS = 60


class Disaster(BaseModel):
    """Time-bounded disruption affecting one or more regions."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(default_factory=lambda: f"disaster-{uuid4().hex[:12]}")
    kind: DisasterKind
    affected_regions: tuple[str, ...] = Field(..., min_length=1)
    severity: int = Field(..., ge=1, le=5)
    started_at: datetime
    duration_hours: int = Field(..., gt=0)

    @property
    def ends_at(self) -> datetime:
        """Return the instant the disaster stops affecting trade."""
        return self.started_at + timedelta(hours=self.duration_hours)

    def is_active(self, now: datetime) -> bool:
        """Return whether the disaster is in effect at *now*."""
        return self.started_at <= now < self.ends_at

    def affects(self, region: str) -> bool:
        """Return whether *region* is hit by the disaster."""
        return region in self.affected_regions


class TimeEventEffects(BaseModel):
    """Temporary multipliers applied by calendar or scripted events."""

    model_config = ConfigDict(frozen=True)

    demand_multiplier: Decimal | None = Field(default=None, gt=0)
    price_multiplier: Decimal | None = Field(default=None, gt=0)
    cost_multiplier: Decimal | None = Field(default=None, gt=0)


def expire_disasters(disasters: Iterable[Disaster], now: datetime) -> tuple[Disaster, ...]:
    """Return only the disasters still active at *now*."""
    return tuple(disaster for disaster in disasters if disaster.is_active(now))


def regional_disaster_multiplier(
    region: str, disasters: Iterable[Disaster], now: datetime
) -> Decimal:
    """Return the price multiplier caused by disasters active in *region*."""
    hits = sum(
        1 for disaster in disasters if disaster.is_active(now) and disaster.affects(region)
    )
    return Decimal(1) + REGIONAL_DISASTER_STEP * hits


def severity_to_penalty(severity: int) -> Decimal:
    """Translate a 1-5 severity into an uncapped profit penalty."""
    return Decimal(severity) / SEVERITY_PENALTY_DIVISOR


def generate_disaster(
    rng: DeterministicRandomService,
    regions: Sequence[str],
    now: datetime,
) -> Disaster:
    """Draw a random disaster hitting one to three distinct *regions*."""
    if not regions:
        msg = "At least one region is required to place a disaster."
        raise ValueError(msg)
    kind = rng.choice(tuple(DisasterKind))
    affected = rng.sample(regions, rng.randint(1, 3))
    return Disaster(
        kind=kind,
        affected_regions=affected,
        severity=rng.randint(1, 5),
        started_at=now,
        duration_hours=rng.randint(MIN_DURATION_HOURS, MAX_DURATION_HOURS),
    )


__all__ = [
    "Disaster",
    "TimeEventEffects",
    "expire_disasters",
    "generate_disaster",
    "regional_disaster_multiplier",
    "severity_to_penalty",
]
