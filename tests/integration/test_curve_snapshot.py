"""Tests for bondcurve/integration/snapshot.py: curve snapshot encoding."""

from __future__ import annotations

import json

import pytest

from bondcurve.config import EngineConfig, build_guard
from bondcurve.integration.snapshot import (
    CURVE_SNAPSHOT_VERSION,
    canonical_json_bytes,
    ledger_from_snapshot,
    snapshot,
)
from bondcurve.state.payment_rail import InMemoryPaymentRail


ONE = 10**18
CONFIG = EngineConfig(initial_price=10**13, slope=10**12)


def _populated_guard():
    rail = InMemoryPaymentRail()
    rail.fund("bob", ONE)
    rail.fund("alice", ONE)
    guard = build_guard(CONFIG, rail=rail)
    guard.mint("bob", ONE, ONE)
    guard.mint("alice", ONE // 2, ONE)
    return guard


# ---------------------------------------------------------------------------
# Canonical JSON
# ---------------------------------------------------------------------------

class TestCanonicalJson:
    def test_sorted_and_compact(self):
        assert canonical_json_bytes({"b": 1, "a": [2, 3]}) == b'{"a":[2,3],"b":1}'

    def test_floats_rejected(self):
        with pytest.raises(TypeError):
            canonical_json_bytes({"price": 1.5})

    def test_non_str_keys_rejected(self):
        with pytest.raises(TypeError):
            canonical_json_bytes({1: "x"})


# ---------------------------------------------------------------------------
# snapshot()
# ---------------------------------------------------------------------------

class TestSnapshot:
    def test_empty_engine(self):
        snap = snapshot(build_guard(CONFIG), CONFIG)
        assert snap.version == CURVE_SNAPSHOT_VERSION
        assert snap.total_supply == 0
        assert snap.current_price == 10**13
        assert snap.data["reserve"] == 0
        assert snap.data["symbol"] == "LBT"
        assert "balances" not in snap.data

    def test_reflects_mints(self):
        guard = _populated_guard()
        snap = snapshot(guard, CONFIG, include_balances=True)
        assert snap.total_supply == ONE + ONE // 2
        assert snap.current_price == guard.get_current_price()
        assert snap.data["reserve"] == guard.rail.reserve_balance()
        assert [e["account"] for e in snap.data["balances"]] == ["alice", "bob"]

    def test_deterministic_bytes_and_commitment(self):
        a = snapshot(_populated_guard(), CONFIG, include_balances=True)
        b = snapshot(_populated_guard(), CONFIG, include_balances=True)
        assert a.canonical_bytes() == b.canonical_bytes()
        assert a.commitment_hex() == b.commitment_hex()
        assert a.commitment_hex().startswith("0x")
        assert len(a.commitment_hex()) == 66

    def test_commitment_changes_with_state(self):
        guard = _populated_guard()
        before = snapshot(guard, CONFIG).commitment_hex()
        guard.burn("bob", 1)
        assert snapshot(guard, CONFIG).commitment_hex() != before


# ---------------------------------------------------------------------------
# ledger_from_snapshot()
# ---------------------------------------------------------------------------

class TestLedgerFromSnapshot:
    def test_round_trip_through_json(self):
        guard = _populated_guard()
        snap = snapshot(guard, CONFIG, include_balances=True)
        ledger = ledger_from_snapshot(json.loads(snap.canonical_bytes()))
        assert ledger.get_supply() == guard.ledger.get_supply()
        assert ledger.get_all_balances() == guard.ledger.get_all_balances()

    def test_requires_balances(self):
        snap = snapshot(_populated_guard(), CONFIG)
        with pytest.raises(ValueError, match="no balances"):
            ledger_from_snapshot(snap.data)

    def test_version_mismatch(self):
        data = dict(snapshot(_populated_guard(), CONFIG, include_balances=True).data)
        data["version"] = 99
        with pytest.raises(ValueError, match="version"):
            ledger_from_snapshot(data)

    def test_duplicate_account(self):
        data = {
            "version": CURVE_SNAPSHOT_VERSION,
            "total_supply": 2,
            "balances": [{"account": "a", "amount": 1}, {"account": "a", "amount": 1}],
        }
        with pytest.raises(ValueError, match="duplicate"):
            ledger_from_snapshot(data)

    def test_balances_must_sum_to_supply(self):
        data = {
            "version": CURVE_SNAPSHOT_VERSION,
            "total_supply": 3,
            "balances": [{"account": "a", "amount": 1}],
        }
        with pytest.raises(ValueError, match="sum"):
            ledger_from_snapshot(data)
