"""Test configuration and fixtures for the backend test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tradeflow_backend.api.dependencies import get_economy_service
from tradeflow_backend.game_logic.configuration import get_default_economy_configuration
from tradeflow_backend.settings import get_settings

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _reset_cached_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Ensure settings and shared services are rebuilt for every test."""
    monkeypatch.setenv("TRADEFLOW_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("TRADEFLOW_REVENUE_TICK_SECONDS", "3600")
    get_settings.cache_clear()
    get_default_economy_configuration.cache_clear()
    get_economy_service.cache_clear()
    yield
    get_settings.cache_clear()
    get_default_economy_configuration.cache_clear()
    get_economy_service.cache_clear()
