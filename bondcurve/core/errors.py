"""Exception types for the bonding-curve engine.

Every failure carries a stable ``code`` string so callers (and the
non-raising ``SettlementGuard.execute()``) can branch on semantics without
matching on messages.
"""

from __future__ import annotations


class BondingCurveError(Exception):
    """Base class for all engine failures."""

    code: str = "error"


class InvalidAmountError(BondingCurveError, ValueError):
    """Zero, negative or out-of-range input."""

    code = "invalid_amount"


class CurveOverflowError(BondingCurveError, ArithmeticError):
    """An intermediate or result exceeds the uint256 range."""

    code = "overflow"


class InsufficientPaymentError(BondingCurveError):
    """Offered value is below the computed cost, or buys nothing."""

    code = "insufficient_payment"


class SlippageExceededError(BondingCurveError):
    """The caller's bound on cost, refund or amount was violated."""

    code = "slippage_exceeded"


class InsufficientBalanceError(BondingCurveError):
    """Burn amount exceeds the caller's holdings."""

    code = "insufficient_balance"


class InsufficientReserveError(BondingCurveError):
    """The reserve cannot cover a computed refund."""

    code = "insufficient_reserve"


class InsufficientFundsError(BondingCurveError):
    """The payer's wallet cannot cover a collect."""

    code = "insufficient_funds"


class TransferFailedError(BondingCurveError):
    """A payment rail disbursement failed."""

    code = "transfer_failed"


class ReentrantCallError(BondingCurveError, RuntimeError):
    """A mutating operation was re-entered while one is in flight."""

    code = "reentrant_call"
