"""
Engine configuration.

`EngineConfig` is a frozen dataclass; `load_engine_config()` reads it from a
YAML mapping, e.g.

    name: Linear Bonding Token
    symbol: LBT
    decimals: 18
    initial_price: 10000000000000
    slope: 1000000000000
    max_supply: null

Integer fields accept YAML ints or decimal strings (for values too wide for
some YAML tooling). Unknown keys are rejected (fail-closed).
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from .core.curve import CurveParameters
from .core.fixed_point import require_uint256
from .core.settlement import SettlementGuard
from .state.ledger import InMemoryLedger, Ledger
from .state.payment_rail import InMemoryPaymentRail, PaymentRail


MAX_DECIMALS = 36


@dataclass(frozen=True)
class EngineConfig:
    initial_price: int
    slope: int
    name: str = "Linear Bonding Token"
    symbol: str = "LBT"
    decimals: int = 18
    # Optional hard cap on total supply (None = uncapped).
    max_supply: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.decimals, int) or isinstance(self.decimals, bool):
            raise TypeError("decimals must be an int")
        if not (0 <= self.decimals <= MAX_DECIMALS):
            raise ValueError(f"decimals must be in [0, {MAX_DECIMALS}]")
        # Validates the curve fields eagerly.
        self.curve_parameters()
        if self.max_supply is not None:
            require_uint256("max_supply", self.max_supply)

    @property
    def scale(self) -> int:
        return 10**self.decimals

    def curve_parameters(self) -> CurveParameters:
        return CurveParameters(initial_price=self.initial_price, slope=self.slope, scale=self.scale)


def _require_str(value: Any, *, name: str, max_len: int = 256) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    if not value:
        raise ValueError(f"{name} must be non-empty")
    if len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str) -> int:
    if isinstance(value, str):
        text = value.strip().replace("_", "")
        if not text.isdigit():
            raise ValueError(f"{name} must be a decimal integer string")
        return int(text)
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


_INT_FIELDS = ("initial_price", "slope", "decimals")
_STR_FIELDS = ("name", "symbol")


def config_from_mapping(obj: Mapping[str, Any]) -> EngineConfig:
    if not isinstance(obj, Mapping):
        raise TypeError("engine config must be a mapping")
    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(obj) - known)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")
    for required in ("initial_price", "slope"):
        if required not in obj:
            raise ValueError(f"missing config key: {required}")

    kwargs: dict[str, Any] = {}
    for key in _INT_FIELDS:
        if key in obj:
            kwargs[key] = _require_int(obj[key], name=key)
    for key in _STR_FIELDS:
        if key in obj:
            kwargs[key] = _require_str(obj[key], name=key)
    if obj.get("max_supply") is not None:
        kwargs["max_supply"] = _require_int(obj["max_supply"], name="max_supply")
    return EngineConfig(**kwargs)


def load_engine_config(path: Union[str, Path]) -> EngineConfig:
    """Load an `EngineConfig` from a YAML file."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if not isinstance(obj, Mapping):
        raise TypeError("engine config YAML must be a mapping")
    return config_from_mapping(obj)


def build_guard(
    config: EngineConfig,
    *,
    ledger: Optional[Ledger] = None,
    rail: Optional[PaymentRail] = None,
) -> SettlementGuard:
    """Wire a `SettlementGuard` from *config*, defaulting to in-memory collaborators."""
    return SettlementGuard(
        config.curve_parameters(),
        ledger if ledger is not None else InMemoryLedger(),
        rail if rail is not None else InMemoryPaymentRail(),
        max_supply=config.max_supply,
    )
