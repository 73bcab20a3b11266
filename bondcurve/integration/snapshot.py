"""
Curve snapshot encoding.

Goals:
- One read-only view of everything a client displays (token metadata, curve
  parameters, supply, spot price, reserve).
- Deterministic JSON serialization for hashing / distribution.
- Round-trippable into an `InMemoryLedger` when balances are included.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from ..config import EngineConfig
from ..core.curve import price_at
from ..core.settlement import SettlementGuard
from ..state.ledger import InMemoryLedger


CURVE_SNAPSHOT_VERSION = 1
_DOMAIN = b"bondcurve:curve_snapshot:v"


def _reject_floats(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _reject_floats(v)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _reject_floats(item)


def canonical_json_bytes(value: Any) -> bytes:
    """Sorted keys, no whitespace, UTF-8, no NaN, no floats."""
    _reject_floats(value)
    text = json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return text.encode("utf-8")


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


@dataclass(frozen=True)
class CurveSnapshot:
    """
    Deterministic, versioned view of one engine.

    The commitment is not included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    @property
    def total_supply(self) -> int:
        return self.data["total_supply"]

    @property
    def current_price(self) -> int:
        return self.data["current_price"]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_hex(self) -> str:
        prefix = _DOMAIN + str(self.version).encode("ascii") + b"\x00"
        return "0x" + hashlib.sha256(prefix + self.canonical_bytes()).hexdigest()


def snapshot(
    guard: SettlementGuard,
    config: EngineConfig,
    *,
    include_balances: bool = False,
) -> CurveSnapshot:
    """Capture *guard*'s observable state. Reads the supply once."""
    params = guard.params
    supply = guard.ledger.get_supply()
    data: Dict[str, Any] = {
        "version": CURVE_SNAPSHOT_VERSION,
        "name": config.name,
        "symbol": config.symbol,
        "decimals": config.decimals,
        "initial_price": params.initial_price,
        "slope": params.slope,
        "total_supply": supply,
        "current_price": price_at(params, supply),
        "reserve": guard.rail.reserve_balance(),
    }
    if include_balances:
        if not isinstance(guard.ledger, InMemoryLedger):
            raise TypeError("balances can only be snapshotted from an InMemoryLedger")
        entries = [
            {"account": account, "amount": int(amount)}
            for account, amount in guard.ledger.get_all_balances().items()
        ]
        entries.sort(key=lambda e: e["account"])
        data["balances"] = entries
    return CurveSnapshot(version=CURVE_SNAPSHOT_VERSION, data=data)


def ledger_from_snapshot(data: Mapping[str, Any]) -> InMemoryLedger:
    """
    Rebuild an `InMemoryLedger` from snapshot data that includes balances.

    Fails closed if the balances do not sum to the recorded supply.
    """
    if not isinstance(data, Mapping):
        raise TypeError("snapshot data must be a mapping")
    if data.get("version") != CURVE_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {data.get('version')!r}")
    raw_balances = data.get("balances")
    if not isinstance(raw_balances, list):
        raise ValueError("snapshot has no balances")

    ledger = InMemoryLedger(_require_int(data.get("total_supply"), name="total_supply"))
    seen = set()
    for i, entry in enumerate(raw_balances):
        if not isinstance(entry, Mapping):
            raise TypeError(f"balances[{i}] must be an object")
        account = entry.get("account")
        if not isinstance(account, str) or not account:
            raise ValueError(f"balances[{i}].account must be a non-empty string")
        if account in seen:
            raise ValueError(f"duplicate account in balances: {account}")
        seen.add(account)
        ledger.credit(account, _require_int(entry.get("amount"), name=f"balances[{i}].amount"))
    if not ledger.verify_supply_matches_balances():
        raise ValueError("snapshot balances do not sum to total_supply")
    return ledger
