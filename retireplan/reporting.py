"""
Reporting helpers for retireplan.

Purpose
-------
Turns simulation output into pandas objects for analysis and plotting.
Consumes only what the engine exposes: a Logger (2-D arrays of
step × repetition per tracked variable) and the list of
``(params, logger)`` pairs returned by grid_search.

Key components
--------------
- to_dataframe         : long-form DataFrame, one row per (time, rep, combination)
- survival_probability : share of repetitions with positive net worth per step
- summarize            : survival and net-worth percentiles indexed by time
- sensitivity_table    : final survival per combination, ready for heatmaps

Example
-------
>>> results = grid_search(Model, Logger, 500, config, seed=3)
>>> df = to_dataframe(model, results)
>>> df.groupby(["withdraw_withdraws", "time"])["net_worth"].median()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .constants import DEFAULT_PERCENTILES
from .exceptions import ValidationError
from .simulation import get_times
from .sweep import SweepResult

if TYPE_CHECKING:
    from .model import Logger, Model

__all__ = [
    "param_column_name",
    "to_dataframe",
    "survival_probability",
    "summarize",
    "sensitivity_table",
]


def param_column_name(key) -> str:
    """
    Column name for a swept parameter: group without ``kw_`` + ``_`` + key.

    >>> param_column_name(("kw_withdraw", "start_age"))
    'withdraw_start_age'
    """
    group, name = key
    group = str(group)
    if group.startswith("kw_"):
        group = group[3:]
    return f"{group}_{name}"


def _param_value(value):
    if isinstance(value, (int, float, np.number, str, bool)) or value is None:
        return value
    return repr(value)


def _logger_frame(times: np.ndarray, logger: "Logger") -> pd.DataFrame:
    n_steps, n_reps = logger.n_steps, logger.n_reps
    if len(times) != n_steps:
        raise ValidationError(
            f"Logger has {n_steps} steps but the model logs {len(times)} times."
        )
    data = {
        "time": np.tile(times, n_reps),
        "rep": np.repeat(np.arange(1, n_reps + 1), n_steps),
    }
    for field in logger.fields:
        # column-major flattening keeps each repetition's steps contiguous
        data[field] = np.asarray(getattr(logger, field)).ravel(order="F")
    return pd.DataFrame(data)


def to_dataframe(
    model: "Model",
    results: Union["Logger", SweepResult, Iterable[SweepResult]],
) -> pd.DataFrame:
    """
    Flatten simulation output into a long-form DataFrame.

    Parameters
    ----------
    model : Model
        Any model sharing the logged time grid of the results.
    results : Logger, SweepResult or iterable of SweepResult
        Output of simulate (a Logger) or grid_search.

    Returns
    -------
    pd.DataFrame
        Columns ``time``, ``rep`` (1-based), one per logged field and one
        per swept parameter (see ``param_column_name``). Non-scalar
        parameter values are stored as their repr.
    """
    times = np.asarray(get_times(model), dtype=float)
    if isinstance(results, SweepResult):
        results = [results]
    elif hasattr(results, "fields") and hasattr(results, "n_steps"):
        return _logger_frame(times, results)

    frames = []
    for params, logger in results:
        df = _logger_frame(times, logger)
        for key, value in params:
            df[param_column_name(key)] = _param_value(value)
        frames.append(df)
    if not frames:
        return pd.DataFrame(columns=["time", "rep"])
    return pd.concat(frames, ignore_index=True)


def survival_probability(logger: "Logger") -> np.ndarray:
    """Fraction of repetitions whose net worth is strictly positive, per step."""
    return np.mean(np.asarray(logger.net_worth) > 0, axis=1)


def summarize(
    model: "Model",
    logger: "Logger",
    percentiles: Sequence[float] = DEFAULT_PERCENTILES,
) -> pd.DataFrame:
    """
    Survival probability and net-worth percentiles per logged time.

    Returns
    -------
    pd.DataFrame
        Indexed by ``time`` with columns ``survival`` and ``p{q}`` per percentile.
    """
    times = np.asarray(get_times(model), dtype=float)
    if len(times) != logger.n_steps:
        raise ValidationError(
            f"Logger has {logger.n_steps} steps but the model logs {len(times)} times."
        )
    out = pd.DataFrame({"survival": survival_probability(logger)}, index=pd.Index(times, name="time"))
    q = np.percentile(logger.net_worth, percentiles, axis=1)
    for p, row in zip(percentiles, q):
        out[f"p{p:g}"] = row
    return out


def sensitivity_table(
    df: pd.DataFrame,
    x: str,
    y: Optional[str] = None,
    at_time: Optional[float] = None,
) -> pd.DataFrame:
    """
    Survival probability at one time for each swept parameter value (pair).

    Parameters
    ----------
    df : pd.DataFrame
        Output of to_dataframe.
    x : str
        Parameter column for the columns of the table.
    y : str, optional
        Parameter column for the rows; a single row when omitted.
    at_time : float, optional
        Time to evaluate (defaults to the last logged time).
    """
    if at_time is None:
        at_time = df["time"].max()
    sub = df[np.isclose(df["time"], at_time)]
    alive = sub.assign(survival=sub["net_worth"] > 0)
    if y is None:
        return alive.groupby(x)["survival"].mean().to_frame().T
    return alive.pivot_table(index=y, columns=x, values="survival", aggfunc="mean")
