"""
Investment stages for retireplan.

Purpose
-------
Populate ``state.invest_amount`` once per step. The contribution is
added to net worth by the investments stage before growth is applied.

Key components
--------------
- invest              : sum of one or more Transactions (any amount kind)
- fixed_investment    : constant contribution until an end age
- variable_investment : one draw per step from a distribution until an end age

Example
-------
>>> from retireplan.transactions import Transaction, AdaptiveInvestment
>>> kw_invest = {"investments": Transaction(
...     start_age=30, end_age=67,
...     amount=AdaptiveInvestment(start_age=30, peak_age=50, real_growth_rate=0.02,
...                               mean=800, std=100),
... )}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional, Union

from scipy import stats

from .transactions import AbstractTransaction, Transaction, transact, transact_all

if TYPE_CHECKING:
    from .model import Model

__all__ = ["invest", "fixed_investment", "variable_investment"]


def invest(
    model: "Model",
    t: float,
    investments: Union[AbstractTransaction, Iterable[AbstractTransaction]] = (),
) -> None:
    """Contribution is the sum of every active investment transaction."""
    model.state.invest_amount = transact_all(model, investments, t)


def fixed_investment(
    model: "Model",
    t: float,
    invest_amount: float = 1000.0,
    start_age: Optional[float] = None,
    end_age: float = 67.0,
) -> None:
    """
    Constant per-step contribution.

    Parameters
    ----------
    invest_amount : float, default 1000.0
        Contribution per step.
    start_age : float, optional
        First contribution age (defaults to the model's start age).
    end_age : float, default 67.0
        Last contribution age.
    """
    start = model.start_age if start_age is None else start_age
    if start > end_age:
        model.state.invest_amount = 0.0
        return
    model.state.invest_amount = transact(model, Transaction(start, end_age, invest_amount), t)


def variable_investment(
    model: "Model",
    t: float,
    distribution=None,
    start_age: Optional[float] = None,
    end_age: float = 67.0,
) -> None:
    """Contribution drawn each step from *distribution* (default N(1000, 200))."""
    if distribution is None:
        distribution = stats.norm(1000.0, 200.0)
    start = model.start_age if start_age is None else start_age
    if start > end_age:
        model.state.invest_amount = 0.0
        return
    model.state.invest_amount = transact(model, Transaction(start, end_age, distribution), t)
