"""Tests for disaster helpers."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from tradeflow_backend.game_logic.disasters import (
    Disaster,
    expire_disasters,
    generate_disaster,
    regional_disaster_multiplier,
    severity_to_penalty,
)
from tradeflow_backend.shared.enums import DisasterKind
from tradeflow_backend.shared.rng import DeterministicRandomService

NOW = datetime(2024, 6, 1, 12, tzinfo=UTC)


def make_disaster(
    *,
    regions: tuple[str, ...] = ("asia",),
    severity: int = 3,
    started_hours_ago: int = 1,
    duration_hours: int = 24,
) -> Disaster:
    return Disaster(
        kind=DisasterKind.PIRACY,
        affected_regions=regions,
        severity=severity,
        started_at=NOW - timedelta(hours=started_hours_ago),
        duration_hours=duration_hours,
    )


def test_disaster_is_active_until_it_ends() -> None:
    disaster = make_disaster(started_hours_ago=24, duration_hours=24)

    assert disaster.ends_at == NOW
    assert not disaster.is_active(NOW)
    assert disaster.is_active(NOW - timedelta(minutes=1))


def test_expire_disasters_drops_finished_ones() -> None:
    ongoing = make_disaster()
    finished = make_disaster(started_hours_ago=30, duration_hours=12)

    assert expire_disasters([ongoing, finished], NOW) == (ongoing,)


def test_regional_multiplier_counts_active_disasters() -> None:
    disasters = [
        make_disaster(),
        make_disaster(regions=("asia", "europe")),
        make_disaster(regions=("europe",), started_hours_ago=48),
    ]

    assert regional_disaster_multiplier("asia", disasters, NOW) == Decimal("1.4")
    assert regional_disaster_multiplier("europe", disasters, NOW) == Decimal("1.2")
    assert regional_disaster_multiplier("africa", disasters, NOW) == 1


def test_severity_maps_to_penalty() -> None:
    assert severity_to_penalty(1) == Decimal("0.1")
    assert severity_to_penalty(5) == Decimal("0.5")


def test_generated_disasters_are_reproducible_and_in_range() -> None:
    regions = ["asia", "europe", "north-america", "south-america"]

    first = generate_disaster(DeterministicRandomService(seed=3), regions, NOW)
    second = generate_disaster(DeterministicRandomService(seed=3), regions, NOW)

    assert first.model_dump(exclude={"identifier"}) == second.model_dump(
        exclude={"identifier"}
    )
    assert 1 <= len(first.affected_regions) <= 3
    assert set(first.affected_regions) <= set(regions)
    assert 1 <= first.severity <= 5
    assert 12 <= first.duration_hours <= 60
