"""
Pytest configuration and fixtures for the retireplan test suite.

This module provides reusable fixtures for testing all retireplan components.
Fixtures follow the principle of "arrange-act-assert" with clear separation.
"""

import numpy as np
import pytest

from retireplan.model import Logger, Model
from retireplan.rates import fixed_inflation, fixed_market
from retireplan.simulation import get_times


# ---------------------------------------------------------------------------
# Randomness Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def seed() -> int:
    """Standard random seed for reproducibility."""
    return 42


@pytest.fixture
def rng(seed) -> np.random.Generator:
    """Seeded generator."""
    return np.random.default_rng(seed)


# ---------------------------------------------------------------------------
# Time Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def dt() -> float:
    """Monthly time step."""
    return 1 / 12


# ---------------------------------------------------------------------------
# Model Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def deterministic_model(dt, seed) -> Model:
    """
    Zero-variance scenario: 7% market, 3% inflation, no cash flows.

    Start: age 25 with 10,000
    Horizon: 35 years, monthly steps
    """
    return Model(
        dt=dt,
        duration=35,
        start_age=25,
        start_amount=10_000,
        update_inflation=fixed_inflation,
        update_market=fixed_market,
        seed=seed,
    )


@pytest.fixture
def small_model(seed) -> Model:
    """Short stochastic scenario (2 years, quarterly) for fast engine tests."""
    return Model(dt=0.25, duration=2.0, start_age=60.0, start_amount=100_000.0, seed=seed)


@pytest.fixture
def make_logger():
    """Factory sizing a Logger to a model's logged times."""
    def _make(model: Model, n_reps: int) -> Logger:
        return Logger(n_steps=len(get_times(model)), n_reps=n_reps)
    return _make
