"""Tradeflow backend package wiring and entrypoints."""

from tradeflow_backend.main import run_dev, run_prod
from tradeflow_backend.settings import BackendSettings, get_settings

main = run_dev

__all__ = [
    "BackendSettings",
    "get_settings",
    "main",
    "run_dev",
    "run_prod",
]
