"""
Inverse solver: payment budget -> largest mintable amount.

Minting n tokens from supply S costs ceil(Q(n)) where, with B = price(S)*scale
(the untruncated price numerator) and k = slope,

    Q(n) = (2*B*n + k*n^2) / (2 * scale^2)

Since the budget C is an integer, ceil(Q(n)) <= C  <=>  Q(n) <= C, i.e.

    k*n^2 + 2*B*n - 2*scale^2*C <= 0

which is the quadratic A*n^2 + B*n - C' with A = k/2. Multiplying through by k
and completing the square gives (k*n + B)^2 <= B^2 + 2*k*scale^2*C =: D, so

    n_max = floor((sqrt_floor(D) - B) / k)

is exact: for integer n, k*n + B <= sqrt(D) iff k*n + B <= sqrt_floor(D).
Both floors only ever round the amount down, so the solver never promises
more tokens than the budget pays for.

With k == 0 the quadratic degenerates to the linear case
`n_max = floor(C * scale / initial_price)`.
"""

from __future__ import annotations

from .curve import CurveParameters, price_at, price_numerator
from .errors import CurveOverflowError, InsufficientPaymentError, InvalidAmountError
from .fixed_point import UINT256_MAX, floor_div, require_uint256, sqrt_floor


def max_affordable_amount(params: CurveParameters, payment: int, supply_before: int) -> int:
    """
    Largest n with `calculate_cost(n, supply_before) <= payment` (may be 0).

    This is the raw solve; `calculate_tokens_for_payment` applies the
    zero-result policy.
    """
    payment = require_uint256("payment", payment)
    supply_before = require_uint256("supply_before", supply_before)
    # Range-check the starting price the same way every pricing call does.
    price_at(params, supply_before)

    scale_sq = params.scale * params.scale
    if params.slope == 0:
        return floor_div(payment * params.scale, params.initial_price)

    b = price_numerator(params, supply_before)
    discriminant = b * b + 2 * params.slope * scale_sq * payment
    root = sqrt_floor(discriminant)
    return floor_div(root - b, params.slope)


def calculate_tokens_for_payment(params: CurveParameters, payment: int, supply_before: int) -> int:
    """
    Maximum token amount purchasable with *payment* at *supply_before*.

    Raises:
        InvalidAmountError: payment is zero or negative
        InsufficientPaymentError: the payment cannot afford a single unit
        CurveOverflowError: the resulting supply would exceed uint256
    """
    payment = require_uint256("payment", payment)
    if payment == 0:
        raise InvalidAmountError("payment must be positive")

    amount = max_affordable_amount(params, payment, supply_before)
    if amount == 0:
        raise InsufficientPaymentError(
            f"payment {payment} cannot afford one unit at supply {supply_before}"
        )
    if amount > UINT256_MAX - supply_before:
        raise CurveOverflowError("purchasable amount would overflow supply")
    return amount
