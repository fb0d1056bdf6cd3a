"""Service layer for API-specific business logic."""

from tradeflow_backend.api.services.economy import EconomyService

__all__ = ["EconomyService"]
