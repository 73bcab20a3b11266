"""
Client-side helpers: scaled-integer formatting/parsing and slippage bounds.

Everything here is exact integer/decimal-string arithmetic; floats never
touch a scaled amount.
"""

from __future__ import annotations

import re
from typing import Literal

from .core.fixed_point import mul_div, require_int


BPS_DENOM = 10_000

_DECIMAL_RE = re.compile(r"^(\d*)(?:\.(\d*))?$")


def format_units(value: int, decimals: int = 18, precision: int = 6) -> str:
    """
    Render a scaled integer as a decimal string.

    Trailing zeros are trimmed and the fraction is truncated (not rounded) to
    *precision* digits.
    """
    require_int("value", value)
    if value < 0:
        raise ValueError("value must be non-negative")
    if decimals < 0 or precision < 0:
        raise ValueError("decimals and precision must be non-negative")
    whole, remainder = divmod(value, 10**decimals)
    if remainder == 0:
        return str(whole)
    fraction = str(remainder).rjust(decimals, "0").rstrip("0")
    fraction = fraction[:precision].rstrip("0")
    if not fraction:
        return str(whole)
    return f"{whole}.{fraction}"


def format_ether(value: int, precision: int = 6) -> str:
    return format_units(value, 18, precision)


def parse_units(text: str, decimals: int = 18) -> int:
    """Parse a decimal string into a scaled integer. Excess fractional digits are rejected."""
    if not isinstance(text, str):
        raise TypeError("text must be a string")
    m = _DECIMAL_RE.match(text.strip())
    if m is None or not (m.group(1) or m.group(2)):
        raise ValueError(f"not a non-negative decimal: {text!r}")
    whole = m.group(1) or "0"
    fraction = m.group(2) or ""
    if len(fraction) > decimals:
        raise ValueError(f"too many fractional digits for {decimals} decimals: {text!r}")
    return int(whole) * 10**decimals + int(fraction.ljust(decimals, "0") or "0")


def apply_slippage_bps(quote: int, bps: int, *, direction: Literal["min", "max"]) -> int:
    """
    Turn a quote into a slippage bound.

    `direction="min"` gives a floor-rounded minimum (min tokens / min refund);
    `direction="max"` gives a ceil-rounded maximum (max payment).
    """
    require_int("quote", quote)
    require_int("bps", bps)
    if quote < 0:
        raise ValueError("quote must be non-negative")
    if not (0 <= bps <= BPS_DENOM):
        raise ValueError(f"bps must be in [0, {BPS_DENOM}]")
    if direction == "min":
        return mul_div(quote, BPS_DENOM - bps, BPS_DENOM)
    if direction == "max":
        return mul_div(quote, BPS_DENOM + bps, BPS_DENOM, round_up=True)
    raise ValueError(f"unknown direction: {direction}")
