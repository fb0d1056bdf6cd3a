"""Route definitions for public HTTP endpoints."""

from tradeflow_backend.api.routers.economy import router as economy_router

__all__ = ["economy_router"]
