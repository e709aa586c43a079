"""
Unit tests for rates module.

Tests inflation and market stages:
- fixed_*: constant rates
- variable_*: per-step draws from a distribution
- dynamic_*: annualized growth of a stochastic process
"""

import numpy as np
import pytest
from scipy.stats import norm

from retireplan.exceptions import ConfigurationError
from retireplan.model import Model
from retireplan.processes import GBM, MvGBM
from retireplan.rates import (
    dynamic_inflation,
    dynamic_market,
    fixed_inflation,
    fixed_market,
    variable_inflation,
    variable_market,
)


@pytest.fixture
def model(seed):
    """Quarterly model starting at 60."""
    return Model(dt=0.25, duration=5, start_age=60, start_amount=1000, seed=seed)


# ---------------------------------------------------------------------------
# Fixed Rates
# ---------------------------------------------------------------------------

class TestFixedRates:
    """Tests for fixed_inflation and fixed_market."""

    def test_defaults(self, model):
        """Test 3% inflation and 7% market by default."""
        fixed_inflation(model, 60.25)
        fixed_market(model, 60.25)
        assert model.state.inflation_rate == 0.03
        assert model.state.interest_rate == 0.07

    def test_custom_rates(self, model):
        """Test keyword overrides."""
        fixed_inflation(model, 60.25, inflation_rate=0.05)
        fixed_market(model, 60.25, interest_rate=0.10)
        assert model.state.inflation_rate == 0.05
        assert model.state.interest_rate == 0.10


# ---------------------------------------------------------------------------
# Variable Rates
# ---------------------------------------------------------------------------

class TestVariableRates:
    """Tests for variable_inflation and variable_market."""

    def test_default_distributions(self, model):
        """Test draws center on the default means."""
        infl, mkt = [], []
        for _ in range(3000):
            variable_inflation(model, 60.25)
            variable_market(model, 60.25)
            infl.append(model.state.inflation_rate)
            mkt.append(model.state.interest_rate)
        assert np.mean(infl) == pytest.approx(0.03, abs=0.002)
        assert np.mean(mkt) == pytest.approx(0.07, abs=0.005)

    def test_custom_distribution(self, model):
        """Test a degenerate distribution returns its location."""
        variable_market(model, 60.25, distribution=norm(0.09, 1e-12))
        assert model.state.interest_rate == pytest.approx(0.09)


# ---------------------------------------------------------------------------
# Dynamic Rates
# ---------------------------------------------------------------------------

class TestDynamicRates:
    """Tests for dynamic_inflation and dynamic_market."""

    def test_noiseless_process_gives_constant_rate(self, model):
        """Test σ = 0 annualizes to (1 + μ·dt)^(1/dt) − 1."""
        gbm = GBM(mu=0.07, sigma=0.0)
        expected = (1 + 0.07 * 0.25) ** 4 - 1
        for k in range(1, 5):
            dynamic_market(model, 60 + 0.25 * k, gbm=gbm)
            assert model.state.interest_rate == pytest.approx(expected)

    def test_first_step_resets_process(self, model):
        """Test the process restarts on the model's first step."""
        gbm = GBM(mu=0.07, sigma=0.0)
        gbm.x = 5.0
        dynamic_inflation(model, 60.25, gbm=gbm)
        assert gbm.x == pytest.approx(1.0 + 0.07 * 0.25)

    def test_recession_changes_rate(self, model):
        """Test recession windows switch to the recession drift."""
        gbm = GBM(mu=0.07, sigma=0.0, mu_r=-0.2, sigma_r=0.0)
        dynamic_market(model, 60.25, gbm=gbm, recessions={60.0: 1.0})
        assert model.state.interest_rate == pytest.approx((1 - 0.2 * 0.25) ** 4 - 1)

    def test_mv_process_with_rebalance(self, model):
        """Test portfolios are annualized on their total."""
        mv = MvGBM(mu=[0.08, 0.04], sigma=[0.0, 0.0], rho=np.eye(2), ratios=[0.5, 0.5])
        dynamic_market(model, 60.25, gbm=mv, rebalance=True)
        growth = 0.5 * (1 + 0.08 * 0.25) + 0.5 * (1 + 0.04 * 0.25)
        assert model.state.interest_rate == pytest.approx(growth ** 4 - 1)
        np.testing.assert_allclose(mv.x / mv.x.sum(), [0.5, 0.5])

    def test_missing_process_raises(self, model):
        """Test a dynamic stage without a process is a configuration error."""
        with pytest.raises(ConfigurationError, match="gbm"):
            dynamic_market(model, 60.25, gbm=None)
