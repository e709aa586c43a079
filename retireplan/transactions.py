"""
Transactions and amount resolution for retireplan.

Purpose
-------
A Transaction is one cash-flow rule: an active window [start_age, end_age]
and an amount. The amount is one of a closed set of kinds, each resolved
to a concrete number at simulation time:

- a real number            → returned as is
- a frozen scipy distribution (anything with ``rvs``) → one sample
- NominalAmount            → running value eroded by inflation
- AdaptiveWithdraw         → growth-dependent withdrawal with noise and
                             income adjustment
- AdaptiveInvestment       → contribution compounding with age until a peak

A transaction is active at time t iff ``start_age - dt/2 <= t <= end_age + dt/2``.
The half-step tolerance keeps accumulated floating-point error in the time
grid from skipping a boundary step.

Example
-------
>>> from scipy.stats import norm
>>> from retireplan.transactions import Transaction, AdaptiveWithdraw
>>> salary_saving = Transaction(start_age=30, end_age=67, amount=norm(1000, 100))
>>> retirement = Transaction(
...     start_age=67,
...     amount=AdaptiveWithdraw(min_withdraw=2200, percent_of_real_growth=0.15, volatility=0.05),
... )
"""

from __future__ import annotations

import math
import numbers
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Union

import numpy as np

from .utils import check_non_negative, real_growth_rate, within_half_step

if TYPE_CHECKING:
    from .model import Model

__all__ = [
    "AbstractAmount",
    "NominalAmount",
    "AdaptiveWithdraw",
    "AdaptiveInvestment",
    "AbstractTransaction",
    "Transaction",
    "can_transact",
    "transact",
    "transact_all",
]


# ---------------------------------------------------------------------------
# Amount kinds
# ---------------------------------------------------------------------------

class AbstractAmount(ABC):
    """Path-dependent amount whose value is computed from simulation state."""

    @abstractmethod
    def resolve(self, model: "Model", t: float, transaction: "AbstractTransaction") -> float:
        """Return the amount for the active *transaction* at time *t*."""


@dataclass
class NominalAmount(AbstractAmount):
    """
    Fixed nominal amount whose purchasing power erodes with inflation.

    The running value snaps back to ``amount`` on the first active step
    (never earlier than the model's first step) and, when *adjust* is
    true, is divided by ``(1 + inflation_rate) ** dt`` on every later step.

    Parameters
    ----------
    amount : float
        Nominal amount at the first active step.
    adjust : bool, default True
        Divide by inflation each step after the first.

    Examples
    --------
    >>> pension = Transaction(start_age=67, amount=NominalAmount(1500.0))
    """

    amount: float
    adjust: bool = True
    current: float = field(init=False)

    def __post_init__(self):
        check_non_negative("amount", self.amount)
        self.current = float(self.amount)

    def resolve(self, model, t, transaction):
        dt = model.dt
        first = max(transaction.start_age, model.start_age + dt)
        if -dt / 2 <= t - first < dt / 2:
            self.current = float(self.amount)
        elif self.adjust:
            self.current /= (1.0 + model.state.inflation_rate) ** dt
        return self.current


@dataclass
class AdaptiveWithdraw(AbstractAmount):
    """
    Withdrawal that tracks the portfolio's realized real growth.

    Resolution order (load-bearing):

    1. target = max(min_withdraw, net_worth·((1+g)^dt − 1)·percent_of_real_growth)
       with g the step's real growth rate
    2. perturb by N(0, (target·volatility)²)
    3. subtract income_adjustment × income received this step
    4. floor at zero

    Parameters
    ----------
    min_withdraw : float
        Minimum target per step.
    volatility : float, default 0.0
        Noise scale as a fraction of the target.
    income_adjustment : float, default 0.0
        Fraction of other income deducted (1 = fully offset).
    percent_of_real_growth : float, default 0.0
        Fraction of the step's real gain withdrawn when above the minimum.
    """

    min_withdraw: float
    volatility: float = 0.0
    income_adjustment: float = 0.0
    percent_of_real_growth: float = 0.0

    def __post_init__(self):
        check_non_negative("min_withdraw", self.min_withdraw)
        check_non_negative("volatility", self.volatility)
        check_non_negative("income_adjustment", self.income_adjustment)
        check_non_negative("percent_of_real_growth", self.percent_of_real_growth)

    def resolve(self, model, t, transaction):
        state = model.state
        growth = real_growth_rate(state.interest_rate, state.inflation_rate)
        gain = state.net_worth * ((1.0 + growth) ** model.dt - 1.0)
        target = max(self.min_withdraw, gain * self.percent_of_real_growth)
        if self.volatility > 0 and target > 0:
            amount = model.rng.normal(target, target * self.volatility)
        else:
            amount = target
        amount -= state.income_amount * self.income_adjustment
        return max(float(amount), 0.0)


@dataclass
class AdaptiveInvestment(AbstractAmount):
    """
    Contribution that grows in real terms until a peak age.

    A base amount is drawn from N(mean, std) and scaled by
    ``(1 + real_growth_rate) ** years`` with
    ``years = floor(max(min(t, peak_age) - start_age, 0))``.

    Parameters
    ----------
    start_age : float
        Age at which compounding starts.
    peak_age : float
        Age after which the factor stops increasing.
    real_growth_rate : float
        Annual real growth of contributions.
    mean : float
        Mean base contribution per step.
    std : float, default 0.0
        Standard deviation of the base contribution.
    """

    start_age: float
    peak_age: float
    real_growth_rate: float
    mean: float
    std: float = 0.0

    def __post_init__(self):
        check_non_negative("std", self.std)
        if self.peak_age < self.start_age:
            raise ValueError(
                f"peak_age ({self.peak_age}) must be >= start_age ({self.start_age})"
            )

    def resolve(self, model, t, transaction):
        base = model.rng.normal(self.mean, self.std) if self.std > 0 else self.mean
        years = math.floor(max(min(t, self.peak_age) - self.start_age, 0.0))
        return float(base * (1.0 + self.real_growth_rate) ** years)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

class AbstractTransaction(ABC):
    """Anything with ``start_age``, ``end_age`` and ``amount`` attributes."""

    start_age: float
    end_age: float
    amount: Any


def _is_distribution(amount) -> bool:
    return callable(getattr(amount, "rvs", None))


@dataclass(frozen=True)
class Transaction(AbstractTransaction):
    """
    A cash-flow rule active on [start_age, end_age].

    Parameters
    ----------
    start_age : float, default 0.0
        First age at which the transaction occurs.
    end_age : float, default inf
        Last age (inclusive) at which the transaction occurs.
    amount : number, distribution or AbstractAmount, default 0.0
        Amount per step.

    Raises
    ------
    ValueError
        If end_age < start_age.
    TypeError
        If amount is not a supported kind.

    Examples
    --------
    >>> tx = Transaction(start_age=1.0, end_age=1.0, amount=50.0)
    >>> can_transact(tx, 1.0 + 1/24, dt=1/12)
    True
    """

    start_age: float = 0.0
    end_age: float = math.inf
    amount: Union[float, AbstractAmount, Any] = 0.0

    def __post_init__(self):
        if self.end_age < self.start_age:
            raise ValueError(
                f"end_age ({self.end_age}) must be >= start_age ({self.start_age})"
            )
        amount = self.amount
        valid = (
            (isinstance(amount, numbers.Real) and not isinstance(amount, bool))
            or isinstance(amount, AbstractAmount)
            or _is_distribution(amount)
        )
        if not valid:
            raise TypeError(
                f"Unsupported amount type {type(amount).__name__}. Use a number, "
                f"a frozen scipy distribution, or an AbstractAmount."
            )


def can_transact(transaction: AbstractTransaction, t: float, dt: float) -> bool:
    """True iff ``start_age - dt/2 <= t <= end_age + dt/2``."""
    return within_half_step(t, transaction.start_age, transaction.end_age, dt)


def transact(model: "Model", transaction: AbstractTransaction, t: float) -> float:
    """
    Resolve the amount of *transaction* at time *t* (0.0 when inactive).

    Parameters
    ----------
    model : Model
        Supplies dt, state and the random generator.
    transaction : AbstractTransaction
        Rule to resolve.
    t : float
        Current time (age).
    """
    if not can_transact(transaction, t, model.dt):
        return 0.0
    amount = transaction.amount
    if isinstance(amount, AbstractAmount):
        return float(amount.resolve(model, t, transaction))
    if isinstance(amount, (numbers.Real, np.number)):
        return float(amount)
    if _is_distribution(amount):
        return float(amount.rvs(random_state=model.rng))
    raise TypeError(f"Cannot resolve amount of type {type(amount).__name__}")


def transact_all(
    model: "Model",
    transactions: Union[AbstractTransaction, Iterable[AbstractTransaction]],
    t: float,
) -> float:
    """Sum the resolved amounts of one transaction or a group of them."""
    if isinstance(transactions, AbstractTransaction):
        return transact(model, transactions, t)
    return float(sum(transact(model, tx, t) for tx in transactions))
