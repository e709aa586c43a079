"""
Unit tests for income and investment modules.

Tests the cash-flow stages that feed a repetition:
- update_income / fixed_income / variable_income
- invest / fixed_investment / variable_investment
"""

import numpy as np
import pytest
from scipy.stats import norm

from retireplan.income import fixed_income, update_income, variable_income
from retireplan.investment import fixed_investment, invest, variable_investment
from retireplan.model import Model
from retireplan.transactions import NominalAmount, Transaction


@pytest.fixture
def model(dt, seed):
    """Monthly model starting at 30."""
    return Model(dt=dt, duration=50, start_age=30, start_amount=0, seed=seed)


# ---------------------------------------------------------------------------
# Income Tests
# ---------------------------------------------------------------------------

class TestUpdateIncome:
    """Tests for transaction-driven income."""

    def test_no_sources(self, model):
        """Test zero income by default."""
        update_income(model, 40.0)
        assert model.state.income_amount == 0.0

    def test_sums_active_sources(self, model):
        """Test social security plus pension after both start."""
        sources = [
            Transaction(start_age=67, amount=2000.0),
            Transaction(start_age=65, amount=NominalAmount(1500.0, adjust=False)),
        ]
        update_income(model, 66.0, income_sources=sources)
        assert model.state.income_amount == pytest.approx(1500.0)
        update_income(model, 70.0, income_sources=sources)
        assert model.state.income_amount == pytest.approx(3500.0)


class TestFixedIncome:
    """Tests for fixed_income."""

    def test_streams_start_independently(self, model):
        """Test each stream waits for its own start age."""
        kw = dict(social_security_income=2000.0, pension_income=800.0,
                  social_security_start_age=67.0, pension_start_age=62.0)
        fixed_income(model, 60.0, **kw)
        assert model.state.income_amount == 0.0
        fixed_income(model, 63.0, **kw)
        assert model.state.income_amount == 800.0
        fixed_income(model, 68.0, **kw)
        assert model.state.income_amount == 2800.0


class TestVariableIncome:
    """Tests for variable_income."""

    def test_zero_before_start(self, model):
        """Test no income before the start age."""
        variable_income(model, 50.0)
        assert model.state.income_amount == 0.0

    def test_draws_after_start(self, model):
        """Test draws center on the distribution mean."""
        draws = []
        for _ in range(2000):
            variable_income(model, 70.0, distribution=norm(1800, 100))
            draws.append(model.state.income_amount)
        assert np.mean(draws) == pytest.approx(1800, rel=0.01)


# ---------------------------------------------------------------------------
# Investment Tests
# ---------------------------------------------------------------------------

class TestInvest:
    """Tests for transaction-driven contributions."""

    def test_no_investments(self, model):
        """Test zero contribution by default."""
        invest(model, 40.0)
        assert model.state.invest_amount == 0.0

    def test_window(self, model):
        """Test contributions stop after end_age."""
        tx = Transaction(start_age=30, end_age=67, amount=1000.0)
        invest(model, 40.0, investments=tx)
        assert model.state.invest_amount == 1000.0
        invest(model, 70.0, investments=tx)
        assert model.state.invest_amount == 0.0


class TestFixedInvestment:
    """Tests for fixed_investment."""

    def test_defaults_start_at_model_start(self, model, dt):
        """Test 1,000 per step from the first step until 67."""
        fixed_investment(model, 30.0 + dt)
        assert model.state.invest_amount == 1000.0
        fixed_investment(model, 67.0)
        assert model.state.invest_amount == 1000.0
        fixed_investment(model, 68.0)
        assert model.state.invest_amount == 0.0

    def test_start_after_end_never_invests(self, model):
        """Test an empty window contributes nothing."""
        fixed_investment(model, 70.0, start_age=70.0, end_age=67.0)
        assert model.state.invest_amount == 0.0


class TestVariableInvestment:
    """Tests for variable_investment."""

    def test_draws_in_window(self, model):
        """Test draws center on the default N(1000, 200)."""
        draws = []
        for _ in range(2000):
            variable_investment(model, 40.0)
            draws.append(model.state.invest_amount)
        assert np.mean(draws) == pytest.approx(1000, rel=0.03)

    def test_zero_after_end(self, model):
        """Test no contribution past end_age."""
        variable_investment(model, 70.0, end_age=65.0)
        assert model.state.invest_amount == 0.0
