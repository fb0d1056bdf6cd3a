"""Immutable value objects shared across the domain layer."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from pydantic import BaseModel
from pydantic.config import ConfigDict

from tradeflow_backend.shared.errors import CalculationError

_CURRENCY_QUANTIZE = Decimal("0.01")

Numeric = Decimal | float | int


def to_decimal(value: Numeric) -> Decimal:
    """Convert *value* to :class:`Decimal` without binary float artefacts."""
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            msg = f"Cannot interpret {value!r} as a decimal amount."
            raise CalculationError(msg) from exc
    if not result.is_finite():
        msg = f"Non-finite amount encountered: {value!r}."
        raise CalculationError(msg)
    return result


def quantize_money(value: Numeric) -> Decimal:
    """Round *value* to two decimal places with half-up rounding."""
    return to_decimal(value).quantize(_CURRENCY_QUANTIZE, rounding=ROUND_HALF_UP)


def clamp(value: Decimal, lower: Decimal, upper: Decimal) -> Decimal:
    """Bound *value* to the inclusive ``[lower, upper]`` interval."""
    return max(lower, min(upper, value))


class Position(BaseModel):
    """Point on the 2D world map."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    def distance_to(self, other: Position) -> float:
        """Return the Euclidean distance between two points."""
        return math.hypot(other.x - self.x, other.y - self.y)


__all__ = [
    "Numeric",
    "Position",
    "clamp",
    "quantize_money",
    "to_decimal",
]
