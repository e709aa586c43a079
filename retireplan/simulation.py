"""
Simulation engine for retireplan.

Purpose
-------
Runs the repetition/time loop of a Model. A repetition is a deterministic
state machine over the ages t_i = start_age + i·dt, i = 1..N with
N = duration/dt. Each step calls the model's stages in a fixed order:

    inflation → market → income → invest → withdraw → investments → log

Income precedes withdraw because withdrawals subtract an income
adjustment; market and inflation precede withdraw because adaptive
withdrawals read the step's real growth, and all of them precede the
net-worth update

    net_worth ← (net_worth − withdraw + invest) · (1 + real_growth)^dt

with real_growth = (1 + interest_rate) / (1 + inflation_rate) − 1.

Failure semantics
-----------------
A non-finite net worth, interest rate or inflation rate raises
SimulationError and aborts the whole simulate call. Repetitions are
never skipped or retried.

Example
-------
>>> from retireplan import Model, Logger, simulate, get_times
>>> from retireplan.rates import fixed_inflation, fixed_market
>>> from retireplan.investment import fixed_investment
>>> model = Model(dt=1/12, duration=35, start_age=25, start_amount=10_000,
...               update_inflation=fixed_inflation, update_market=fixed_market,
...               invest=fixed_investment)
>>> logger = Logger(len(get_times(model)), 1)
>>> simulate(model, logger, 1)
>>> logger.net_worth[-1, 0]  # about 919,400: 1,000/month for 35 years at 3.9% real
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import numpy as np

from .constants import STAGE_KW_GROUPS, STAGES
from .exceptions import SimulationError, ValidationError
from .utils import real_growth_rate

if TYPE_CHECKING:
    from .model import Logger, Model, State

__all__ = [
    "get_times",
    "step_times",
    "simulate",
    "update",
    "reset",
    "default_net_worth",
    "default_log",
    "compute_real_growth_rate",
    "is_event_time",
    "is_first_step",
]

_log = logging.getLogger(__name__)

_STATE_CHECKS = ("net_worth", "interest_rate", "inflation_rate")


# ---------------------------------------------------------------------------
# Time grid
# ---------------------------------------------------------------------------

def step_times(model: "Model") -> np.ndarray:
    """All simulated ages: start_age + dt, ..., start_age + duration."""
    n = model.n_steps
    return model.start_age + model.dt * np.arange(1, n + 1)


def get_times(model: "Model") -> np.ndarray:
    """
    Ages recorded by the log stage.

    Equal to ``step_times(model)`` unless the model declares ``log_times``.
    Use ``len(get_times(model))`` to size a Logger.
    """
    if model.log_times is not None:
        return np.asarray(model.log_times, dtype=float)
    return step_times(model)


def is_first_step(model: "Model", t: float) -> bool:
    """True when *t* is the first simulated age (start_age + dt)."""
    return abs(t - (model.start_age + model.dt)) < model.dt / 2


def is_event_time(model: "Model", t: float, rate: float) -> bool:
    """True when *t* falls on a multiple of *rate* years after start_age."""
    r = math.fmod(t - model.start_age, rate)
    return math.isclose(r, 0.0, abs_tol=1e-9) or math.isclose(r, rate, abs_tol=1e-9)


# ---------------------------------------------------------------------------
# Default stages
# ---------------------------------------------------------------------------

def compute_real_growth_rate(state: "State") -> float:
    """Real growth rate of the current step."""
    return real_growth_rate(state.interest_rate, state.inflation_rate)


def default_net_worth(model: "Model", t: float, **kwargs) -> None:
    """Apply flows, then grow net worth by one step of real growth."""
    state = model.state
    growth = compute_real_growth_rate(state)
    state.net_worth = (
        state.net_worth - state.withdraw_amount + state.invest_amount
    ) * (1.0 + growth) ** model.dt


def default_log(model: "Model", logger: "Logger", step: int, rep: int, t: float, **kwargs) -> None:
    """
    Record net worth, interest, inflation and total income.

    Writes to row ``state.log_idx`` when *step* is the next logged step
    (``model.log_steps``) and then advances ``log_idx``.
    """
    state = model.state
    idx = state.log_idx
    if idx >= len(model.log_steps) or step != model.log_steps[idx]:
        return
    logger.net_worth[idx, rep] = state.net_worth
    logger.interest[idx, rep] = state.interest_rate
    logger.inflation[idx, rep] = state.inflation_rate
    logger.total_income[idx, rep] = state.withdraw_amount + state.income_amount
    state.log_idx += 1


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

def reset(model: "Model") -> None:
    """Replace the model's state with a fresh one holding the starting amount."""
    model.state = type(model.state)(net_worth=model.start_amount)


def update(model: "Model", logger: "Logger", step: int, rep: int, t: float) -> None:
    """Run every pipeline stage once for age *t*."""
    config = model.config
    for stage, group in zip(STAGES[:-1], STAGE_KW_GROUPS[:-1]):
        getattr(model, stage)(model, t, **config[group])
    model.log(model, logger, step, rep, t, **config["kw_log"])


def _check_finite(model: "Model", rep: int, t: float) -> None:
    state = model.state
    for name in _STATE_CHECKS:
        value = getattr(state, name)
        if not np.isfinite(value):
            raise SimulationError(
                f"Non-finite {name} ({value}) in repetition {rep} at t={t:.4f}."
            )


def simulate(model: "Model", logger: "Logger", n_reps: int) -> None:
    """
    Run *n_reps* independent repetitions of *model*, writing into *logger*.

    Parameters
    ----------
    model : Model
        Scenario to simulate. Its state is reset at the top of each repetition.
    logger : Logger
        Storage with at least ``len(get_times(model))`` rows and *n_reps* columns.
    n_reps : int
        Number of repetitions.

    Raises
    ------
    ValidationError
        If the logger is too small for the requested run.
    SimulationError
        If any repetition produces a non-finite net worth or rate.
    """
    if n_reps < 1:
        raise ValidationError(f"n_reps must be >= 1, got {n_reps}")
    n_logged = len(get_times(model))
    if logger.n_steps < n_logged or logger.n_reps < n_reps:
        raise ValidationError(
            f"Logger of shape ({logger.n_steps}, {logger.n_reps}) cannot hold "
            f"{n_logged} logged steps x {n_reps} repetitions."
        )
    times = step_times(model)
    _log.debug("Simulating %d repetitions x %d steps", n_reps, len(times))
    for rep in range(n_reps):
        reset(model)
        for step, t in enumerate(times):
            update(model, logger, step, rep, float(t))
            _check_finite(model, rep, float(t))
