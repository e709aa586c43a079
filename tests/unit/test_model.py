"""
Unit tests for model module.

Tests all components:
- State: defaults
- Logger: storage shape
- Model: scenario validation, stage slots, keyword groups, generators
"""

import numpy as np
import pytest

from retireplan.exceptions import ConfigurationError
from retireplan.model import Logger, Model, State
from retireplan.processes import GBM
from retireplan.rates import dynamic_inflation, dynamic_market, fixed_inflation, fixed_market
from retireplan.simulation import default_log, default_net_worth
from retireplan.withdrawal import fixed_withdraw, withdraw


# ---------------------------------------------------------------------------
# State and Logger Tests
# ---------------------------------------------------------------------------

class TestState:
    """Tests for State."""

    def test_defaults(self):
        """Test every field starts at zero."""
        state = State()
        assert state.net_worth == 0.0
        assert state.withdraw_amount == 0.0
        assert state.log_idx == 0


class TestLogger:
    """Tests for Logger."""

    def test_arrays_shape(self):
        """Test one (n_steps, n_reps) array per field."""
        logger = Logger(n_steps=12, n_reps=3)
        for name in ("net_worth", "interest", "inflation", "total_income"):
            arr = getattr(logger, name)
            assert arr.shape == (12, 3)
            assert np.all(arr == 0)
        assert logger.shape == (12, 3)

    def test_invalid_size_raises(self):
        """Test empty loggers are rejected."""
        with pytest.raises(ValueError):
            Logger(n_steps=0, n_reps=3)

    def test_repr(self):
        """Test string representation."""
        assert repr(Logger(5, 2)) == "Logger(n_steps=5, n_reps=2)"


# ---------------------------------------------------------------------------
# Model Tests
# ---------------------------------------------------------------------------

class TestModelCreation:
    """Tests for Model construction."""

    def test_scenario_fields(self):
        """Test scenario fields are exposed as floats."""
        model = Model(dt=1 / 12, duration=35, start_age=30, start_amount=10_000)
        assert model.dt == pytest.approx(1 / 12)
        assert model.duration == 35.0
        assert model.start_age == 30.0
        assert model.start_amount == 10_000.0
        assert model.n_steps == 420
        assert model.log_times is None

    def test_log_steps(self):
        """Test log times are snapped to step indices."""
        model = Model(dt=0.5, duration=5, start_age=60, start_amount=0)
        np.testing.assert_array_equal(model.log_steps, np.arange(10))
        model = Model(dt=0.5, duration=5, start_age=60, start_amount=0,
                      log_times=[60.5, 62.0, 65.0])
        np.testing.assert_array_equal(model.log_steps, [0, 3, 9])

    def test_state_starts_at_start_amount(self):
        """Test the initial state holds the starting net worth."""
        model = Model(dt=1, duration=5, start_age=60, start_amount=500)
        assert model.state.net_worth == 500.0

    def test_missing_fields_raise(self):
        """Test every missing scenario field is named."""
        with pytest.raises(ConfigurationError, match="dt"):
            Model(duration=10, start_age=60, start_amount=1000)
        with pytest.raises(ConfigurationError, match="duration"):
            Model(dt=1 / 12, start_amount=1000)

    def test_invalid_fields_raise(self):
        """Test pydantic validation surfaces as ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Invalid scenario"):
            Model(dt=-1, duration=10, start_age=60, start_amount=1000)
        with pytest.raises(ConfigurationError, match="Invalid scenario"):
            Model(dt=1, duration=10, start_age=60, start_amount=-5)
        with pytest.raises(ConfigurationError, match="Invalid scenario"):
            Model(dt=1, duration=0.5, start_age=60, start_amount=5)

    def test_unknown_group_raises(self):
        """Test misspelled keyword groups are rejected."""
        with pytest.raises(ConfigurationError, match="kw_withdrawal"):
            Model(dt=1, duration=10, start_age=60, start_amount=1000, kw_withdrawal={})

    def test_non_mapping_group_raises(self):
        """Test keyword groups must be mappings."""
        with pytest.raises(ConfigurationError, match="mapping"):
            Model(dt=1, duration=10, start_age=60, start_amount=1000, kw_withdraw=[1, 2])

    def test_non_callable_stage_raises(self):
        """Test stage slots must be callables."""
        with pytest.raises(ConfigurationError, match="withdraw"):
            Model(dt=1, duration=10, start_age=60, start_amount=1000, withdraw=3000)


class TestModelStages:
    """Tests for stage slots and keyword groups."""

    def test_default_stages(self):
        """Test the dynamic rates and transaction stages are installed."""
        model = Model(dt=1, duration=10, start_age=60, start_amount=1000)
        assert model.update_inflation is dynamic_inflation
        assert model.update_market is dynamic_market
        assert model.withdraw is withdraw
        assert model.update_investments is default_net_worth
        assert model.log is default_log

    def test_every_group_present(self):
        """Test absent groups default to empty mappings."""
        model = Model(dt=1, duration=10, start_age=60, start_amount=1000,
                      update_inflation=fixed_inflation, update_market=fixed_market)
        assert set(model.config) == {
            "kw_inflation", "kw_market", "kw_income", "kw_invest",
            "kw_withdraw", "kw_investments", "kw_log",
        }
        assert model.config["kw_withdraw"] == {}

    def test_default_gbm_per_model(self):
        """Test dynamic stages get a fresh default process per model."""
        a = Model(dt=1, duration=10, start_age=60, start_amount=1000)
        b = Model(dt=1, duration=10, start_age=60, start_amount=1000)
        gbm = a.config["kw_market"]["gbm"]
        assert isinstance(gbm, GBM)
        assert gbm.mu == pytest.approx(0.07)
        assert gbm is not b.config["kw_market"]["gbm"]
        assert a.config["kw_inflation"]["gbm"].mu == pytest.approx(0.03)

    def test_explicit_gbm_is_kept(self):
        """Test a supplied process is not replaced."""
        gbm = GBM(mu=0.1, sigma=0.2)
        model = Model(dt=1, duration=10, start_age=60, start_amount=1000, kw_market={"gbm": gbm})
        assert model.config["kw_market"]["gbm"] is gbm

    def test_stage_kwargs(self):
        """Test stage name lookup of keyword groups."""
        model = Model(dt=1, duration=10, start_age=60, start_amount=1000,
                      withdraw=fixed_withdraw, kw_withdraw={"withdraw_amount": 2500})
        assert model.stage_kwargs("withdraw") == {"withdraw_amount": 2500}
        assert model.stage_kwargs("log") == {}


class TestModelRandomness:
    """Tests for generator handling."""

    def test_seed_is_reproducible(self):
        """Test equal seeds give equal streams."""
        a = Model(dt=1, duration=10, start_age=60, start_amount=1000, seed=5)
        b = Model(dt=1, duration=10, start_age=60, start_amount=1000, seed=5)
        assert a.rng.random() == b.rng.random()

    def test_rng_takes_precedence(self):
        """Test an explicit generator is used as is."""
        rng = np.random.default_rng(1)
        model = Model(dt=1, duration=10, start_age=60, start_amount=1000, seed=5, rng=rng)
        assert model.rng is rng


class TestModelConstructors:
    """Tests for from_config and repr."""

    def test_from_config(self):
        """Test building from a plain mapping."""
        model = Model.from_config({"dt": 1, "duration": 10, "start_age": 60, "start_amount": 1e5})
        assert repr(model) == "Model(dt=1.0, duration=10.0, start_age=60.0, start_amount=100000.0)"

    def test_from_config_rejects_non_mapping(self):
        """Test input type validation."""
        with pytest.raises(ConfigurationError, match="mapping"):
            Model.from_config([("dt", 1)])
