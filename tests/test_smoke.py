"""Smoke tests for configuration and package wiring.

These tests verify basic functionality without deep validation.
Run these first to catch obvious breakage.
"""

import pytest
import sys
import os

from pydantic import ValidationError

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from stakeledger.config.loader import config_from_dict, load_config
from stakeledger.config.schema import Config
from stakeledger.validation.sanity_checks import LedgerChecker


class TestConfigLoading:
    """Smoke tests for configuration loading."""

    def test_load_default_config(self):
        """Config loads without errors."""
        config = load_config()
        assert config is not None
        assert isinstance(config, Config)

    def test_config_has_required_sections(self):
        """Config contains all expected sections."""
        config = load_config()
        assert hasattr(config, 'pool')
        assert hasattr(config, 'simulation')
        assert config.pool.rewards_duration_seconds == 604_800
        assert config.pool.precision == 10 ** 30
        assert config.pool.rollover_mode == "additive"

    def test_large_integers_survive_yaml(self):
        config = load_config()
        assert config.simulation.initial_stake_balance == 1_000 * 10 ** 18
        assert config.simulation.funding_amount == 20 * 10 ** 18

    def test_config_hash_is_deterministic(self):
        """Same config produces same hash."""
        config1 = load_config()
        config2 = load_config()
        assert config1.compute_hash() == config2.compute_hash()

    def test_hash_changes_with_settings(self):
        base = config_from_dict({})
        other = config_from_dict({'pool': {'rollover_mode': 'multiplicative'}})
        assert base.compute_hash() != other.compute_hash()

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "pool.yaml"
        path.write_text("pool:\n  rewards_duration_seconds: 3600\nsimulation:\n  steps: 10\n")
        config = load_config(str(path))
        assert config.pool.rewards_duration_seconds == 3600
        assert config.simulation.steps == 10
        assert config.simulation.num_accounts == 8

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == config_from_dict({})

    def test_round_trip_dict(self):
        config = load_config()
        assert Config.from_dict(config.to_dict()) == config


class TestConfigValidation:
    """Invalid settings are rejected by the schema."""

    def test_zero_duration(self):
        with pytest.raises(ValidationError):
            config_from_dict({'pool': {'rewards_duration_seconds': 0}})

    def test_unknown_rollover_mode(self):
        with pytest.raises(ValidationError):
            config_from_dict({'pool': {'rollover_mode': 'compound'}})

    def test_precision_bounds(self):
        with pytest.raises(ValidationError):
            config_from_dict({'pool': {'precision_exponent': 6}})

    def test_step_bounds(self):
        with pytest.raises(ValidationError):
            config_from_dict({'simulation': {'min_step_seconds': 100, 'max_step_seconds': 10}})

    def test_all_zero_action_weights(self):
        zeros = {'stake': 0, 'withdraw': 0, 'claim': 0, 'exit': 0, 'idle': 0}
        with pytest.raises(ValidationError):
            config_from_dict({'simulation': {'actions': zeros}})


class TestConfigSanityChecks:
    """Plausibility warnings for valid but risky configurations."""

    def test_defaults_are_clean(self):
        warnings = LedgerChecker(load_config()).check_config_inputs()
        assert [w for w in warnings if w.severity == "error"] == []

    def test_low_precision_warns(self):
        config = config_from_dict({'pool': {'precision_exponent': 18}})
        categories = [w.category for w in LedgerChecker(config).check_config_inputs()]
        assert "precision" in categories

    def test_multiplicative_rollover_warns(self):
        config = config_from_dict({'pool': {'rollover_mode': 'multiplicative'}})
        messages = [w.message for w in LedgerChecker(config).check_config_inputs()]
        assert any("Multiplicative" in m for m in messages)

    def test_rate_rounding_to_zero_is_an_error(self):
        config = config_from_dict({'simulation': {'funding_amount': 1000}})
        warnings = LedgerChecker(config).check_config_inputs()
        assert any(w.severity == "error" for w in warnings)
