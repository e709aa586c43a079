"""
Simulation model, state and logger for retireplan.

Purpose
-------
A Model is the configuration root of one scenario: immutable scenario
fields (dt, duration, start_age, start_amount), one callable per pipeline
stage, a keyword set per stage, the random generator, and exactly one
mutable State that is reset at the top of every repetition.

Key components
--------------
- State  : per-repetition mutable record read and written by every stage
- Logger : (n_steps, n_reps) arrays of net worth, interest, inflation and
           total income
- Model  : scenario fields + stage slots + ``kw_*`` keyword groups

Stage slots (in execution order) and their keyword groups
----------------------------------------------------------
update_inflation   kw_inflation
update_market      kw_market
update_income      kw_income
invest             kw_invest
withdraw           kw_withdraw
update_investments kw_investments
log                kw_log

Example
-------
>>> from scipy.stats import norm
>>> from retireplan import Model, Logger, Transaction, GBM, simulate, get_times
>>> model = Model(
...     dt=1/12, duration=55, start_age=30, start_amount=10_000,
...     kw_market={"gbm": GBM(mu=0.07, sigma=0.05)},
...     kw_invest={"investments": Transaction(30, 67, norm(1000, 100))},
...     kw_withdraw={"withdraws": Transaction(67, amount=2500)},
...     seed=7,
... )
>>> logger = Logger(n_steps=len(get_times(model)), n_reps=500)
>>> simulate(model, logger, 500)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np
import pydantic

from .config import ScenarioConfig
from .constants import (
    DEFAULT_INFLATION_MU,
    DEFAULT_INFLATION_SIGMA,
    DEFAULT_MARKET_MU,
    DEFAULT_MARKET_SIGMA,
    LOG_FIELDS,
    STAGE_KW_GROUPS,
    STAGES,
)
from .exceptions import ConfigurationError
from .income import update_income as _update_income
from .investment import invest as _invest
from .processes import GBM
from .rates import dynamic_inflation, dynamic_market
from .simulation import default_log, default_net_worth
from .types import LogFunction, ScenarioDict, StageFunction
from .utils import as_generator
from .withdrawal import withdraw as _withdraw

__all__ = ["State", "Logger", "Model"]

_REQUIRED = ("duration", "start_age", "start_amount")


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

@dataclass
class State:
    """
    Mutable per-repetition record.

    Attributes
    ----------
    interest_rate : float
        Annualized market growth realized this step.
    inflation_rate : float
        Annualized inflation realized this step.
    income_amount : float
        Income received this step (informational; never added to net worth).
    invest_amount : float
        Contribution added this step.
    withdraw_amount : float
        Amount withdrawn this step (never more than net worth).
    net_worth : float
        Portfolio value; the authoritative balance.
    log_idx : int
        Next row of the logger to write.
    """

    interest_rate: float = 0.0
    inflation_rate: float = 0.0
    income_amount: float = 0.0
    invest_amount: float = 0.0
    withdraw_amount: float = 0.0
    net_worth: float = 0.0
    log_idx: int = 0


# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------

class Logger:
    """
    Per-step, per-repetition storage of simulation output.

    Parameters
    ----------
    n_steps : int
        Number of logged time points (rows).
    n_reps : int
        Number of repetitions (columns).

    Attributes
    ----------
    net_worth, interest, inflation, total_income : np.ndarray
        Arrays of shape (n_steps, n_reps). ``total_income`` is the sum of
        withdrawals and income for the step.
    """

    fields = LOG_FIELDS

    def __init__(self, n_steps: int, n_reps: int):
        if n_steps < 1 or n_reps < 1:
            raise ValueError(f"n_steps and n_reps must be >= 1, got ({n_steps}, {n_reps})")
        self.n_steps = int(n_steps)
        self.n_reps = int(n_reps)
        for name in self.fields:
            setattr(self, name, np.zeros((self.n_steps, self.n_reps)))

    @property
    def shape(self):
        return self.n_steps, self.n_reps

    def __repr__(self) -> str:
        return f"Logger(n_steps={self.n_steps}, n_reps={self.n_reps})"


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------

class Model:
    """
    Scenario configuration and mutable simulation root.

    Parameters
    ----------
    dt : float
        Time step in years.
    duration : float
        Simulated span in years.
    start_age : float
        Age at the start of the simulation.
    start_amount : float
        Net worth at the start of every repetition.
    log_times : sequence of float, optional
        Ages at which the log stage records values, each snapped to the
        nearest step. Defaults to every step.
    update_inflation, update_market, update_income, invest, withdraw,
    update_investments : callable
        Stage functions ``fn(model, t, **kw)``.
    log : callable
        Log function ``fn(model, logger, step, rep, t, **kw)``.
    seed : int, optional
        Seed for the model's own generator.
    rng : numpy.random.Generator, optional
        Generator to use (takes precedence over seed). When neither is
        given the package default generator is used.
    **config :
        Keyword groups ``kw_inflation``, ``kw_market``, ``kw_income``,
        ``kw_invest``, ``kw_withdraw``, ``kw_investments``, ``kw_log``.

    Raises
    ------
    ConfigurationError
        Missing or invalid scenario fields, log times outside the
        simulated span or sharing a step, unknown keyword groups,
        non-callable stages.

    Notes
    -----
    When the dynamic inflation or market stage is installed without a
    ``gbm`` keyword, a fresh default GBM is created for this model.
    """

    def __init__(
        self,
        *,
        dt: Optional[float] = None,
        duration: Optional[float] = None,
        start_age: Optional[float] = None,
        start_amount: Optional[float] = None,
        log_times: Optional[Sequence[float]] = None,
        update_inflation: StageFunction = dynamic_inflation,
        update_market: StageFunction = dynamic_market,
        update_income: StageFunction = _update_income,
        invest: StageFunction = _invest,
        withdraw: StageFunction = _withdraw,
        update_investments: StageFunction = default_net_worth,
        log: LogFunction = default_log,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        **config: Mapping[str, Any],
    ):
        scenario = {"duration": duration, "start_age": start_age, "start_amount": start_amount}
        missing = [k for k in _REQUIRED if scenario[k] is None]
        if dt is None:
            missing.insert(0, "dt")
        if missing:
            raise ConfigurationError(
                f"Model is missing required field(s) {missing}. "
                f"Required fields: dt, duration, start_age, start_amount."
            )
        try:
            self.scenario = ScenarioConfig(
                dt=dt,
                log_times=None if log_times is None else tuple(log_times),
                **scenario,
            )
        except pydantic.ValidationError as e:
            raise ConfigurationError(f"Invalid scenario: {e}") from e
        self.log_steps = self._snap_log_times()

        stages = {
            "update_inflation": update_inflation,
            "update_market": update_market,
            "update_income": update_income,
            "invest": invest,
            "withdraw": withdraw,
            "update_investments": update_investments,
            "log": log,
        }
        for name, fn in stages.items():
            if not callable(fn):
                raise ConfigurationError(f"Stage {name!r} must be callable, got {fn!r}")
            setattr(self, name, fn)

        unknown = sorted(set(config) - set(STAGE_KW_GROUPS))
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration group(s) {unknown}. "
                f"Valid groups: {list(STAGE_KW_GROUPS)}."
            )
        self.config: Dict[str, Dict[str, Any]] = {}
        for group in STAGE_KW_GROUPS:
            kw = config.get(group, {})
            if not isinstance(kw, Mapping):
                raise ConfigurationError(
                    f"{group} must be a mapping of keyword arguments, got {type(kw).__name__}"
                )
            self.config[group] = dict(kw)

        if update_inflation is dynamic_inflation:
            self.config["kw_inflation"].setdefault(
                "gbm", GBM(mu=DEFAULT_INFLATION_MU, sigma=DEFAULT_INFLATION_SIGMA)
            )
        if update_market is dynamic_market:
            self.config["kw_market"].setdefault(
                "gbm", GBM(mu=DEFAULT_MARKET_MU, sigma=DEFAULT_MARKET_SIGMA)
            )

        self.rng = rng if rng is not None else as_generator(seed)
        self.state = State(net_worth=self.start_amount)

    # ---- scenario fields ---------------------------------------------------

    @property
    def dt(self) -> float:
        return self.scenario.dt

    @property
    def duration(self) -> float:
        return self.scenario.duration

    @property
    def start_age(self) -> float:
        return self.scenario.start_age

    @property
    def start_amount(self) -> float:
        return self.scenario.start_amount

    @property
    def log_times(self):
        return self.scenario.log_times

    @property
    def n_steps(self) -> int:
        """Number of simulated steps."""
        return self.scenario.n_steps

    def _snap_log_times(self) -> np.ndarray:
        """
        Step index of every logged age.

        Step ``i`` simulates age ``start_age + (i + 1)·dt``; each log time
        is rounded to the nearest step.

        Raises
        ------
        ConfigurationError
            If a log time lies outside (start_age, start_age + duration] or
            two log times round to the same step.
        """
        n = self.n_steps
        if self.log_times is None:
            return np.arange(n)
        steps = np.array(
            [int(round((t - self.start_age) / self.dt)) - 1 for t in self.log_times]
        )
        outside = [t for t, s in zip(self.log_times, steps) if not 0 <= s < n]
        if outside:
            raise ConfigurationError(
                f"log_times {outside} fall outside the simulated ages "
                f"({self.start_age}, {self.start_age + self.duration}]."
            )
        clashes = np.flatnonzero(np.diff(steps) == 0)
        if clashes.size:
            i = clashes[0]
            raise ConfigurationError(
                f"log_times {self.log_times[i]} and {self.log_times[i + 1]} "
                f"fall on the same step (dt={self.dt})."
            )
        return steps

    # ---- stages ------------------------------------------------------------

    def stage_kwargs(self, stage: str) -> Dict[str, Any]:
        """Keyword set configured for *stage* (e.g. ``"withdraw"``)."""
        return self.config[STAGE_KW_GROUPS[STAGES.index(stage)]]

    @classmethod
    def from_config(cls, config: ScenarioDict) -> "Model":
        """
        Build a Model from a plain mapping.

        Examples
        --------
        >>> Model.from_config({"dt": 1, "duration": 10, "start_age": 60, "start_amount": 1e5})
        Model(dt=1.0, duration=10.0, start_age=60.0, start_amount=100000.0)
        """
        if not isinstance(config, Mapping):
            raise ConfigurationError(f"config must be a mapping, got {type(config).__name__}")
        return cls(**dict(config))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(dt={self.dt}, duration={self.duration}, "
            f"start_age={self.start_age}, start_amount={self.start_amount})"
        )
