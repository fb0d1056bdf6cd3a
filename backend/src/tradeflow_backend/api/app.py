"""Factory for constructing the FastAPI application."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tradeflow_backend.api.dependencies import get_economy_service
from tradeflow_backend.api.models import ErrorResponse
from tradeflow_backend.api.routers import economy_router
from tradeflow_backend.game_logic import CycleTimer
from tradeflow_backend.settings import get_settings
from tradeflow_backend.shared.errors import (
    CalculationError,
    CapacityExceededError,
    CatalogError,
    ConcurrencyConflictError,
    EconomyError,
    EconomyValidationError,
    InsufficientFundsError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[type[EconomyError], int] = {
    EconomyValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InsufficientFundsError: status.HTTP_402_PAYMENT_REQUIRED,
    CapacityExceededError: status.HTTP_409_CONFLICT,
    CalculationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConcurrencyConflictError: status.HTTP_409_CONFLICT,
    CatalogError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(error: EconomyError) -> int:
    """Return the HTTP status code that reports *error*."""
    for cls in type(error).__mro__:
        code = ERROR_STATUS_CODES.get(cls)
        if code is not None:
            return code
    return status.HTTP_400_BAD_REQUEST


async def _handle_economy_error(_request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, EconomyError):
        raise exc
    code = status_for(exc)
    logger.info("Rejected command with %s: %s", type(exc).__name__, exc)
    body = ErrorResponse(detail=str(exc), error=type(exc).__name__, retryable=exc.retryable)
    return JSONResponse(status_code=code, content=body.model_dump())


@contextlib.asynccontextmanager
async def _run_revenue_cycles(app: FastAPI) -> AsyncIterator[None]:
    """Tick every player's revenue cycle in the background while the app runs."""
    provider = app.dependency_overrides.get(get_economy_service, get_economy_service)
    service = provider()
    timer = CycleTimer(service.tick_all, interval_seconds=get_settings().revenue_tick_seconds)
    app.state.cycle_timer = timer
    task = asyncio.create_task(timer.run())
    logger.info("Started revenue cycle timer")
    try:
        yield
    finally:
        timer.cancel()
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Stopped revenue cycle timer")


def create_api() -> FastAPI:
    """Instantiate and configure the FastAPI application."""
    app = FastAPI(title="Tradeflow API", lifespan=_run_revenue_cycles)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(EconomyError, _handle_economy_error)
    app.include_router(economy_router)
    return app


app = create_api()
