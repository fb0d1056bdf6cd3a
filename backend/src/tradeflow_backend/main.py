"""Tradeflow API entrypoint."""

from __future__ import annotations

import logging

import uvicorn

from tradeflow_backend.api import create_api
from tradeflow_backend.settings import get_settings

app = create_api()


def configure_logging() -> None:
    """Route module loggers to stderr at the configured level."""
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run_uvicorn(*, reload: bool) -> None:
    """Start uvicorn with a consistent configuration."""
    configure_logging()
    config = get_settings()
    uvicorn.run(
        "tradeflow_backend.main:app",
        host=config.api_host,
        port=config.api_port,
        reload=reload,
        log_level=config.log_level.lower(),
    )


def run_dev() -> None:
    """Run the development ASGI server with auto-reload."""
    _run_uvicorn(reload=True)


def run_prod() -> None:
    """Run the production ASGI server without auto-reload."""
    _run_uvicorn(reload=False)
