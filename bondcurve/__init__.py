"""
bondcurve: linear bonding-curve pricing and settlement engine.
"""

from .config import EngineConfig, build_guard, load_engine_config
from .core import (
    CurveParameters,
    SettlementGuard,
    calculate_cost,
    calculate_refund,
    calculate_tokens_for_payment,
    price_at,
)

__version__ = "0.1.0"

__all__ = [
    "EngineConfig",
    "build_guard",
    "load_engine_config",
    "CurveParameters",
    "SettlementGuard",
    "calculate_cost",
    "calculate_refund",
    "calculate_tokens_for_payment",
    "price_at",
]
