"""
Exact cost/refund integration over the linear curve.

The area under a linear price curve between two supply points is a trapezoid,
so the integral is evaluated in closed form rather than summed per unit:

    cost   = ceil ((price(S)     + price(S + n)) * n / (2 * scale))
    refund = floor((price(S - n) + price(S))     * n / (2 * scale))

Endpoint prices enter the trapezoid at full precision (as price numerators,
i.e. `price * scale` with no truncation), so the only rounding step is the
final directional division:
- cost rounds up, so a buyer never pays less than the true integral,
- refund rounds down, so the reserve never pays out more than the integral.

Together these give `refund(n, S + n) <= cost(n, S)` for every n and S, i.e.
a mint followed by a burn of the same amount never runs the reserve at a
deficit. The spot prices are still evaluated through `price_at`, so the
uint256 bounds on `slope * supply` apply to both endpoints.

This deliberately differs from integrating the floored `price_at` values,
which can undercharge whenever `slope * S % scale != 0`.
"""

from __future__ import annotations

from .curve import CurveParameters, price_at, price_numerator
from .errors import InvalidAmountError
from .fixed_point import ceil_div, check_range, checked_add, floor_div, require_uint256


def _trapezoid_numerator(params: CurveParameters, lo: int, hi: int) -> int:
    # (price(lo) + price(hi)) * (hi - lo) * scale; divide by 2 * scale**2 for the area.
    price_at(params, lo)
    price_at(params, hi)
    return (price_numerator(params, lo) + price_numerator(params, hi)) * (hi - lo)


def calculate_cost(params: CurveParameters, amount: int, supply_before: int) -> int:
    """
    Payment owed for minting *amount* starting at *supply_before* (ceil).

    Raises:
        InvalidAmountError: amount is zero or negative
        CurveOverflowError: supply_before + amount or the cost exceeds uint256
    """
    amount = require_uint256("amount", amount)
    supply_before = require_uint256("supply_before", supply_before)
    if amount == 0:
        raise InvalidAmountError("amount must be positive")

    supply_after = checked_add(supply_before, amount)
    area = _trapezoid_numerator(params, supply_before, supply_after)
    cost = ceil_div(area, 2 * params.scale * params.scale)
    return check_range(cost, "cost")


def calculate_refund(params: CurveParameters, amount: int, supply_before: int) -> int:
    """
    Value owed for burning *amount* from *supply_before* (floor).

    A zero amount refunds nothing.

    Raises:
        InvalidAmountError: amount is negative or exceeds supply_before
    """
    amount = require_uint256("amount", amount)
    supply_before = require_uint256("supply_before", supply_before)
    if amount > supply_before:
        raise InvalidAmountError(f"cannot burn more than supply: {amount} > {supply_before}")
    if amount == 0:
        return 0

    area = _trapezoid_numerator(params, supply_before - amount, supply_before)
    return floor_div(area, 2 * params.scale * params.scale)
