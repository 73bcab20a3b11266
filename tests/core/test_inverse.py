"""Tests for bondcurve/core/inverse.py: payment -> token amount solver."""

from __future__ import annotations

import itertools

import pytest

from bondcurve.core.curve import CurveParameters
from bondcurve.core.errors import CurveOverflowError, InsufficientPaymentError, InvalidAmountError
from bondcurve.core.fixed_point import UINT256_MAX
from bondcurve.core.integrator import calculate_cost
from bondcurve.core.inverse import calculate_tokens_for_payment, max_affordable_amount


ONE = 10**18
PARAMS = CurveParameters(initial_price=10**13, slope=10**12)


def _brute_max(params: CurveParameters, payment: int, supply: int) -> int:
    n = 0
    while calculate_cost(params, n + 1, supply) <= payment:
        n += 1
    return n


# ---------------------------------------------------------------------------
# Known values
# ---------------------------------------------------------------------------

class TestKnownValues:
    def test_cost_of_one_token_buys_one_token(self):
        assert calculate_tokens_for_payment(PARAMS, 10_500_000_000_000, 0) == ONE

    def test_one_wei_buys_a_sliver(self):
        # 2e31*n + 1e12*n^2 <= 2e36 holds for n = 99_999 but not 100_000.
        assert calculate_tokens_for_payment(PARAMS, 1, 0) == 99_999

    def test_flat_curve(self):
        flat = CurveParameters(initial_price=10**13, slope=0)
        assert calculate_tokens_for_payment(flat, 10**13, 0) == ONE
        assert calculate_tokens_for_payment(flat, 10**13, 123 * ONE) == ONE

    def test_zero_initial_price(self):
        params = CurveParameters(initial_price=0, slope=2 * ONE)
        # cost(n) = ceil(n^2 / 1e18) from supply 0
        assert calculate_tokens_for_payment(params, 1, 0) == 10**9

    def test_max_affordable_can_be_zero(self):
        expensive = CurveParameters(initial_price=2 * ONE, slope=0)
        assert max_affordable_amount(expensive, 1, 0) == 0


# ---------------------------------------------------------------------------
# Error policy
# ---------------------------------------------------------------------------

class TestErrors:
    def test_zero_payment(self):
        with pytest.raises(InvalidAmountError):
            calculate_tokens_for_payment(PARAMS, 0, 0)

    def test_negative_payment(self):
        with pytest.raises(InvalidAmountError):
            calculate_tokens_for_payment(PARAMS, -1, 0)

    def test_cannot_afford_one_unit(self):
        expensive = CurveParameters(initial_price=2 * ONE, slope=0)
        with pytest.raises(InsufficientPaymentError):
            calculate_tokens_for_payment(expensive, 1, 0)

    def test_supply_overflow(self):
        cheap = CurveParameters(initial_price=1, slope=0, scale=1)
        with pytest.raises(CurveOverflowError):
            calculate_tokens_for_payment(cheap, 10, UINT256_MAX - 5)

    def test_starting_price_overflow(self):
        with pytest.raises(CurveOverflowError):
            calculate_tokens_for_payment(PARAMS, 1, UINT256_MAX)


# ---------------------------------------------------------------------------
# Against a linear scan
# ---------------------------------------------------------------------------

class TestAgainstScan:
    SCALE = 100
    PRICES = (0, 1, 3, 50)
    SLOPES = (0, 1, 7, 50)
    SUPPLIES = (0, 1, 99, 250)
    PAYMENTS = (1, 2, 5, 37)

    def test_matches_scan_on_small_grid(self):
        for p0, k in itertools.product(self.PRICES, self.SLOPES):
            if p0 == 0 and k == 0:
                continue
            params = CurveParameters(initial_price=p0, slope=k, scale=self.SCALE)
            for supply, payment in itertools.product(self.SUPPLIES, self.PAYMENTS):
                expected = _brute_max(params, payment, supply)
                assert max_affordable_amount(params, payment, supply) == expected, (p0, k, supply, payment)

    def test_solution_is_affordable_and_maximal(self):
        for supply in (0, ONE, 10**6 * ONE + 7):
            for payment in (10**9, 10**13 + 1, 10**21):
                n = calculate_tokens_for_payment(PARAMS, payment, supply)
                assert calculate_cost(PARAMS, n, supply) <= payment
                assert calculate_cost(PARAMS, n + 1, supply) > payment
