"""
Fixed-point integer primitives shared by the curve, integrator and solver.

All engine quantities are non-negative integers scaled by a fixed unit
(``SCALE``, 1e18 by default). Results are range-checked against the uint256
domain so a value that would wrap on a 256-bit machine raises instead.

Rounding is always explicit:
- ``floor_div`` / ``mul_div(..., round_up=False)`` round toward zero,
- ``ceil_div`` / ``mul_div(..., round_up=True)`` round away from zero,
- ``sqrt_floor`` returns the largest r with r*r <= n.

``mul_div`` is the widening helper: the product ``a * b`` may exceed 256 bits
(it is a 512-bit intermediate); only the scaled-down result is checked.
"""

from __future__ import annotations

from .errors import CurveOverflowError, InvalidAmountError


UINT256_MAX = (1 << 256) - 1
SCALE = 10**18


def require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def require_uint256(name: str, value: int) -> int:
    """Validate *value* as a uint256 and return it as a plain int."""
    require_int(name, value)
    if value < 0:
        raise InvalidAmountError(f"{name} must be non-negative: {value}")
    if value > UINT256_MAX:
        raise CurveOverflowError(f"{name} exceeds uint256 range")
    return int(value)


def check_range(result: int, what: str) -> int:
    if result > UINT256_MAX:
        raise CurveOverflowError(f"{what} overflows uint256")
    return result


def checked_add(a: int, b: int) -> int:
    return check_range(a + b, "addition")


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise CurveOverflowError(f"subtraction underflows: {a} - {b}")
    return a - b


def checked_mul(a: int, b: int) -> int:
    return check_range(a * b, "multiplication")


def floor_div(numerator: int, denominator: int) -> int:
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    if numerator < 0:
        raise ValueError("numerator must be non-negative")
    return numerator // denominator


def ceil_div(numerator: int, denominator: int) -> int:
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    if numerator < 0:
        raise ValueError("numerator must be non-negative")
    return (numerator + denominator - 1) // denominator


def mul_div(a: int, b: int, denominator: int, *, round_up: bool = False) -> int:
    """
    Compute ``a * b / denominator`` with a widening intermediate.

    Operands must be uint256; the result must fit in uint256.
    """
    if a < 0 or b < 0:
        raise ValueError("operands must be non-negative")
    check_range(a, "mul_div operand")
    check_range(b, "mul_div operand")
    product = a * b
    if round_up:
        result = ceil_div(product, denominator)
    else:
        result = floor_div(product, denominator)
    return check_range(result, "mul_div result")


def sqrt_floor(n: int) -> int:
    """
    Floor integer square root by Newton's method.

    Returns the largest integer r with r*r <= n. Starts from a power of two
    that is >= sqrt(n); the iterates then decrease monotonically and the
    first non-decreasing step marks the floor root.
    """
    require_int("n", n)
    if n < 0:
        raise ValueError("n must be non-negative")
    if n < 2:
        return n
    x = 1 << ((n.bit_length() + 1) // 2)
    while True:
        y = (x + n // x) // 2
        if y >= x:
            return x
        x = y
