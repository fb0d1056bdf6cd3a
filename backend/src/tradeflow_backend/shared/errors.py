"""Error hierarchy raised by the economy core.

Every error here is local and recoverable: callers reject the offending
command and keep the process running.
"""

from __future__ import annotations


class EconomyError(Exception):
    """Base class for all recoverable economy errors."""

    retryable: bool = False


class EconomyValidationError(EconomyError, ValueError):
    """Raised when a command carries malformed or out-of-range input."""


class InsufficientFundsError(EconomyError):
    """Raised when a purchase or payment exceeds the available cash."""


class CapacityExceededError(EconomyError):
    """Raised when an assignment exceeds a declared capacity."""


class CalculationError(EconomyError):
    """Raised when a calculation reaches an unexpected numeric state."""


class ConcurrencyConflictError(EconomyError):
    """Raised when a tentative update was computed against stale state."""

    retryable = True


class CatalogError(EconomyError):
    """Raised when catalog data fails validation at load time."""


__all__ = [
    "CalculationError",
    "CapacityExceededError",
    "CatalogError",
    "ConcurrencyConflictError",
    "EconomyError",
    "EconomyValidationError",
    "InsufficientFundsError",
]
