"""Dependency providers for FastAPI routers."""

from __future__ import annotations

from functools import cache

from tradeflow_backend.api.services import EconomyService


@cache
def get_economy_service() -> EconomyService:
    """Return the shared :class:`EconomyService` instance."""

    return EconomyService.create_default()


__all__ = ["get_economy_service"]
