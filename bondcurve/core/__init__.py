"""
Core pricing and settlement algorithms
"""

from .curve import CurveParameters, price_at
from .errors import (
    BondingCurveError,
    CurveOverflowError,
    InsufficientBalanceError,
    InsufficientFundsError,
    InsufficientPaymentError,
    InsufficientReserveError,
    InvalidAmountError,
    ReentrantCallError,
    SlippageExceededError,
    TransferFailedError,
)
from .fixed_point import SCALE, UINT256_MAX, sqrt_floor
from .integrator import calculate_cost, calculate_refund
from .inverse import calculate_tokens_for_payment, max_affordable_amount
from .settlement import (
    BurnReceipt,
    MintReceipt,
    Phase,
    SettlementCommand,
    SettlementGuard,
    SettlementResult,
)

__all__ = [
    "CurveParameters",
    "price_at",
    "BondingCurveError",
    "CurveOverflowError",
    "InsufficientBalanceError",
    "InsufficientFundsError",
    "InsufficientPaymentError",
    "InsufficientReserveError",
    "InvalidAmountError",
    "ReentrantCallError",
    "SlippageExceededError",
    "TransferFailedError",
    "SCALE",
    "UINT256_MAX",
    "sqrt_floor",
    "calculate_cost",
    "calculate_refund",
    "calculate_tokens_for_payment",
    "max_affordable_amount",
    "BurnReceipt",
    "MintReceipt",
    "Phase",
    "SettlementCommand",
    "SettlementGuard",
    "SettlementResult",
]
