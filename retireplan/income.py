"""
Income stages for retireplan.

Purpose
-------
Populate ``state.income_amount`` once per step. Income (social security,
pensions, annuities, part-time work) is informational: it is never added
to net worth, but withdrawals read it to apply their income adjustment,
and the logger records withdrawals plus income as total income.

Key components
--------------
- update_income   : sum of one or more Transactions (any amount kind)
- fixed_income    : social security and pension with separate start ages
- variable_income : one draw per step from a distribution after a start age

Example
-------
>>> from retireplan.transactions import Transaction, NominalAmount
>>> kw_income = {"income_sources": [
...     Transaction(start_age=67, amount=2000.0),
...     Transaction(start_age=65, amount=NominalAmount(800.0)),
... ]}
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Iterable, Union

from scipy import stats

from .transactions import AbstractTransaction, Transaction, transact, transact_all

if TYPE_CHECKING:
    from .model import Model

__all__ = ["update_income", "fixed_income", "variable_income"]


def update_income(
    model: "Model",
    t: float,
    income_sources: Union[AbstractTransaction, Iterable[AbstractTransaction]] = (),
) -> None:
    """Income is the sum of every active source."""
    model.state.income_amount = transact_all(model, income_sources, t)


def fixed_income(
    model: "Model",
    t: float,
    social_security_income: float = 0.0,
    pension_income: float = 0.0,
    social_security_start_age: float = 67.0,
    pension_start_age: float = 67.0,
) -> None:
    """
    Fixed per-step social security and pension income.

    Parameters
    ----------
    social_security_income : float, default 0.0
        Per-step social security amount.
    pension_income : float, default 0.0
        Per-step pension amount.
    social_security_start_age, pension_start_age : float, default 67.0
        Ages at which each stream begins.
    """
    sources = (
        Transaction(social_security_start_age, math.inf, social_security_income),
        Transaction(pension_start_age, math.inf, pension_income),
    )
    model.state.income_amount = transact_all(model, sources, t)


def variable_income(
    model: "Model",
    t: float,
    distribution=None,
    start_age: float = 67.0,
) -> None:
    """Income drawn each step from *distribution* (default N(2000, 200)) from *start_age*."""
    if distribution is None:
        distribution = stats.norm(2000.0, 200.0)
    model.state.income_amount = transact(model, Transaction(start_age, math.inf, distribution), t)
