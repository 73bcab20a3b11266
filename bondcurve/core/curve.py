"""
Linear price curve.

    price(supply) = initial_price + floor(slope * supply / scale)

Both prices and supply are scaled integers sharing the same fixed-point unit,
so `slope` is the price increase per whole token of supply.
"""

from __future__ import annotations

from dataclasses import dataclass

from .fixed_point import SCALE, checked_add, checked_mul, floor_div, require_int, require_uint256


@dataclass(frozen=True)
class CurveParameters:
    """Immutable curve parameters."""

    initial_price: int
    slope: int
    scale: int = SCALE

    def __post_init__(self) -> None:
        require_uint256("initial_price", self.initial_price)
        require_uint256("slope", self.slope)
        require_int("scale", self.scale)
        if self.scale <= 0:
            raise ValueError("scale must be positive")
        if self.initial_price == 0 and self.slope == 0:
            raise ValueError("curve must have a positive initial_price or slope")


def price_at(params: CurveParameters, supply: int) -> int:
    """Spot price at *supply*. Raises CurveOverflowError if `slope * supply` wraps."""
    supply = require_uint256("supply", supply)
    increment = floor_div(checked_mul(params.slope, supply), params.scale)
    return checked_add(params.initial_price, increment)


def price_numerator(params: CurveParameters, supply: int) -> int:
    """Untruncated `price(supply) * scale`, a widening intermediate for exact integration."""
    return params.initial_price * params.scale + params.slope * supply
