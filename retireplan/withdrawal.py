"""
Withdrawal stages for retireplan.

Purpose
-------
Populate ``state.withdraw_amount`` once per step. Whatever the rule, the
realized withdrawal never exceeds current net worth: a request larger
than the available funds withdraws everything, after which net worth is
exactly zero before growth is applied. This is the only place net worth
is bounded; all other degeneracy propagates.

Key components
--------------
- withdraw          : sum of one or more Transactions (any amount kind),
                      clamped to net worth
- fixed_withdraw    : constant amount from a start age, reduced by an
                      income adjustment
- variable_withdraw : one draw per step from a distribution, reduced by an
                      income adjustment

Income adjustment
-----------------
``income_adjustment`` in [0, 1] is the fraction of the step's income
that offsets the withdrawal (1 = income fully replaces withdrawals).
The adjusted amount is floored at zero.

Example
-------
>>> from retireplan.transactions import Transaction, AdaptiveWithdraw
>>> kw_withdraw = {"withdraws": Transaction(
...     start_age=67,
...     amount=AdaptiveWithdraw(min_withdraw=2200, percent_of_real_growth=0.15,
...                             income_adjustment=0.5, volatility=0.05),
... )}
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Iterable, Union

from scipy import stats

from .transactions import AbstractTransaction, transact_all
from .utils import within_half_step

if TYPE_CHECKING:
    from .model import Model

__all__ = ["withdraw", "fixed_withdraw", "variable_withdraw"]


def _bounded(model: "Model", amount: float) -> float:
    return min(amount, max(model.state.net_worth, 0.0))


def withdraw(
    model: "Model",
    t: float,
    withdraws: Union[AbstractTransaction, Iterable[AbstractTransaction]] = (),
) -> None:
    """Withdraw the sum of every active transaction, at most net worth."""
    model.state.withdraw_amount = _bounded(model, transact_all(model, withdraws, t))


def fixed_withdraw(
    model: "Model",
    t: float,
    withdraw_amount: float = 3000.0,
    start_age: float = 67.0,
    income_adjustment: float = 0.0,
) -> None:
    """
    Fixed per-step withdrawal once retirement starts.

    Parameters
    ----------
    withdraw_amount : float, default 3000.0
        Amount per step before income adjustment.
    start_age : float, default 67.0
        Age at which withdrawals begin.
    income_adjustment : float, default 0.0
        Fraction of income subtracted from the withdrawal.
    """
    state = model.state
    state.withdraw_amount = 0.0
    if within_half_step(t, start_age, math.inf, model.dt):
        amount = max(withdraw_amount - state.income_amount * income_adjustment, 0.0)
        state.withdraw_amount = _bounded(model, amount)


def variable_withdraw(
    model: "Model",
    t: float,
    distribution=None,
    start_age: float = 67.0,
    income_adjustment: float = 0.0,
) -> None:
    """
    Per-step withdrawal drawn from *distribution* (default N(2500, 500))
    once retirement starts.
    """
    state = model.state
    state.withdraw_amount = 0.0
    if within_half_step(t, start_age, math.inf, model.dt):
        if distribution is None:
            distribution = stats.norm(2500.0, 500.0)
        amount = float(distribution.rvs(random_state=model.rng))
        amount = max(amount - state.income_amount * income_adjustment, 0.0)
        state.withdraw_amount = _bounded(model, amount)
