"""Tests for bondcurve/config.py: YAML engine configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from bondcurve.config import EngineConfig, build_guard, config_from_mapping, load_engine_config
from bondcurve.core.errors import InvalidAmountError
from bondcurve.state.ledger import InMemoryLedger
from bondcurve.state.payment_rail import InMemoryPaymentRail


REPO_ROOT = Path(__file__).resolve().parents[1]
SHIPPED = REPO_ROOT / "config" / "linear_bonding_token.yaml"


# ---------------------------------------------------------------------------
# EngineConfig
# ---------------------------------------------------------------------------

class TestEngineConfig:
    def test_defaults(self):
        cfg = EngineConfig(initial_price=10**13, slope=10**12)
        assert cfg.symbol == "LBT"
        assert cfg.scale == 10**18
        assert cfg.max_supply is None

    def test_curve_parameters_follow_decimals(self):
        cfg = EngineConfig(initial_price=5, slope=1, decimals=6)
        params = cfg.curve_parameters()
        assert params.scale == 10**6
        assert params.initial_price == 5

    def test_decimals_bounds(self):
        with pytest.raises(ValueError):
            EngineConfig(initial_price=1, slope=0, decimals=37)

    def test_max_supply_validated_eagerly(self):
        with pytest.raises(InvalidAmountError):
            EngineConfig(initial_price=1, slope=0, max_supply=-1)
        with pytest.raises(TypeError):
            EngineConfig(initial_price=1, slope=0, max_supply=True)

    def test_invalid_curve_rejected_eagerly(self):
        with pytest.raises(ValueError):
            EngineConfig(initial_price=0, slope=0)
        with pytest.raises(InvalidAmountError):
            EngineConfig(initial_price=-1, slope=1)


# ---------------------------------------------------------------------------
# Mapping / YAML loading
# ---------------------------------------------------------------------------

class TestConfigFromMapping:
    def test_decimal_strings_accepted(self):
        cfg = config_from_mapping({"initial_price": "10_000_000_000_000", "slope": "1000000000000"})
        assert cfg.initial_price == 10**13
        assert cfg.slope == 10**12

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="unknown config keys"):
            config_from_mapping({"initial_price": 1, "slope": 1, "fee_bps": 30})

    def test_missing_key(self):
        with pytest.raises(ValueError, match="slope"):
            config_from_mapping({"initial_price": 1})

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            config_from_mapping({"initial_price": True, "slope": 1})

    def test_non_numeric_string(self):
        with pytest.raises(ValueError):
            config_from_mapping({"initial_price": "1e18", "slope": 1})

    def test_empty_symbol(self):
        with pytest.raises(ValueError):
            config_from_mapping({"initial_price": 1, "slope": 1, "symbol": ""})


class TestLoadEngineConfig:
    def test_shipped_config(self):
        cfg = load_engine_config(SHIPPED)
        assert cfg == EngineConfig(
            initial_price=10**13,
            slope=10**12,
            name="Linear Bonding Token",
            symbol="LBT",
            decimals=18,
            max_supply=None,
        )

    def test_tmp_file(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("initial_price: 7\nslope: 0\ndecimals: 0\nmax_supply: 100\n", encoding="utf-8")
        cfg = load_engine_config(path)
        assert cfg.max_supply == 100
        assert cfg.scale == 1

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(TypeError):
            load_engine_config(path)


class TestBuildGuard:
    def test_defaults_to_in_memory(self):
        guard = build_guard(load_engine_config(SHIPPED))
        assert isinstance(guard.ledger, InMemoryLedger)
        assert isinstance(guard.rail, InMemoryPaymentRail)
        assert guard.get_current_price() == 10**13

    def test_max_supply_is_enforced(self):
        rail = InMemoryPaymentRail()
        rail.fund("alice", 10**6)
        guard = build_guard(EngineConfig(initial_price=1, slope=0, decimals=0, max_supply=3), rail=rail)
        guard.mint("alice", 3, 3)
        with pytest.raises(InvalidAmountError):
            guard.mint("alice", 1, 1)
