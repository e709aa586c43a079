"""
Inflation and market stages for retireplan.

Purpose
-------
Populate ``state.inflation_rate`` and ``state.interest_rate`` once per
step. Three variants exist for each rate:

- fixed_*    : constant annual rate
- variable_* : one independent draw per step from a frozen distribution
- dynamic_*  : annualized growth of a stochastic process (GBM family)

The dynamic variants reset their process on the model's first step and
report ``(x / x_prev) ** (1 / dt) - 1`` for the increment taken at age t.

Example
-------
>>> from retireplan.processes import VarGBM
>>> kw_market = {"gbm": VarGBM(mu_mean=0.07, mu_std=0.02, sigma_mean=0.05, sigma_std=0.01),
...              "recessions": {65.0: 2.0}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from scipy import stats

from .constants import (
    DEFAULT_INFLATION_MU,
    DEFAULT_INFLATION_SIGMA,
    DEFAULT_MARKET_MU,
    DEFAULT_MARKET_SIGMA,
)
from .exceptions import ConfigurationError
from .processes import AbstractGBM, MvGBM
from .simulation import is_first_step
from .types import RecessionSpec
from .utils import annualize_ratio

if TYPE_CHECKING:
    from .model import Model

__all__ = [
    "fixed_inflation",
    "variable_inflation",
    "dynamic_inflation",
    "fixed_market",
    "variable_market",
    "dynamic_market",
]


def _dynamic_rate(
    model: "Model",
    t: float,
    gbm: Optional[AbstractGBM],
    recessions: RecessionSpec,
    rebalance: bool,
) -> float:
    if gbm is None:
        raise ConfigurationError("dynamic rate stages require a 'gbm' keyword")
    if is_first_step(model, t):
        gbm.reset(model.rng)
    x_prev = gbm.value
    if isinstance(gbm, MvGBM):
        gbm.increment(model.dt, t, recessions, rng=model.rng, rebalance=rebalance)
    else:
        gbm.increment(model.dt, t, recessions, rng=model.rng)
    return annualize_ratio(gbm.value, x_prev, model.dt)


# ---------------------------------------------------------------------------
# Inflation
# ---------------------------------------------------------------------------

def fixed_inflation(model: "Model", t: float, inflation_rate: float = DEFAULT_INFLATION_MU) -> None:
    """Constant annual inflation."""
    model.state.inflation_rate = inflation_rate


def variable_inflation(model: "Model", t: float, distribution=None) -> None:
    """Inflation drawn each step from *distribution* (default N(0.03, 0.01))."""
    if distribution is None:
        distribution = stats.norm(DEFAULT_INFLATION_MU, DEFAULT_INFLATION_SIGMA)
    model.state.inflation_rate = float(distribution.rvs(random_state=model.rng))


def dynamic_inflation(
    model: "Model",
    t: float,
    gbm: Optional[AbstractGBM] = None,
    recessions: RecessionSpec = None,
    rebalance: bool = False,
) -> None:
    """
    Inflation as the annualized growth of a stochastic process.

    Parameters
    ----------
    model : Model
        Current model.
    t : float
        Current age.
    gbm : AbstractGBM
        Process tracking the price level; reset on the first step.
    recessions : RecessionSpec, optional
        Windows in which the process uses its recession parameters.
    rebalance : bool, default False
        Passed to MvGBM.increment.
    """
    model.state.inflation_rate = _dynamic_rate(model, t, gbm, recessions, rebalance)


# ---------------------------------------------------------------------------
# Market
# ---------------------------------------------------------------------------

def fixed_market(model: "Model", t: float, interest_rate: float = DEFAULT_MARKET_MU) -> None:
    """Constant annual market growth."""
    model.state.interest_rate = interest_rate


def variable_market(model: "Model", t: float, distribution=None) -> None:
    """Market growth drawn each step from *distribution* (default N(0.07, 0.05))."""
    if distribution is None:
        distribution = stats.norm(DEFAULT_MARKET_MU, DEFAULT_MARKET_SIGMA)
    model.state.interest_rate = float(distribution.rvs(random_state=model.rng))


def dynamic_market(
    model: "Model",
    t: float,
    gbm: Optional[AbstractGBM] = None,
    recessions: RecessionSpec = None,
    rebalance: bool = False,
) -> None:
    """
    Market growth as the annualized growth of a stochastic process.

    Parameters
    ----------
    model : Model
        Current model.
    t : float
        Current age.
    gbm : AbstractGBM
        Process tracking the portfolio level (GBM, VarGBM, MvGBM, JumpGBM).
    recessions : RecessionSpec, optional
        Windows in which the process uses its recession parameters.
    rebalance : bool, default False
        Rebalance an MvGBM portfolio to its target ratios after each step.
    """
    model.state.interest_rate = _dynamic_rate(model, t, gbm, recessions, rebalance)
