"""
Plotting utilities for retireplan.

Purpose
-------
Visualizes engine output with matplotlib. Like reporting, plotting only
consumes logged arrays and DataFrames; it never drives a simulation.

Functions
---------
- plot_gradient    : percentile fan of many paths (net worth, growth process draws)
- plot_survival    : survival probability over time, one line per scenario
- plot_sensitivity : heatmap of final survival across two swept parameters

All functions accept ``figsize``, ``title``, ``save_path`` and
``return_fig_ax``; they return ``(fig, ax)`` only when ``return_fig_ax``
is True.

Example
-------
>>> from retireplan.plotting import plot_gradient
>>> plot_gradient(get_times(model), logger.net_worth.T, ylabel="Net worth",
...               save_path="net_worth.png")
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .constants import (
    DEFAULT_ALPHA_BANDS,
    DEFAULT_CMAP,
    DEFAULT_FIGSIZE,
    DEFAULT_FIGSIZE_WIDE,
    DEFAULT_LINEWIDTH,
    DEFAULT_LINEWIDTH_THICK,
    DEFAULT_PERCENTILES,
)
from .reporting import sensitivity_table, survival_probability
from .utils import thousands_formatter

__all__ = ["plot_gradient", "plot_survival", "plot_sensitivity"]


def _finish(fig, ax, title, save_path, return_fig_ax):
    import matplotlib.pyplot as plt

    if title:
        ax.set_title(title, fontsize=13, fontweight='bold')
    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, bbox_inches='tight', dpi=150)
    if return_fig_ax:
        return fig, ax
    return None


def plot_gradient(
    times: Sequence[float],
    paths: np.ndarray,
    *,
    percentiles: Sequence[float] = DEFAULT_PERCENTILES,
    n_lines: int = 0,
    ylabel: str = "Value",
    xlabel: str = "Age",
    color: str = "C0",
    figsize: Optional[tuple] = None,
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    return_fig_ax: bool = False,
    ax=None,
):
    """
    Percentile fan chart of a set of paths.

    Parameters
    ----------
    times : sequence of float
        x-axis values, length n_steps.
    paths : np.ndarray, shape (n_paths, n_steps)
        One path per row (use ``logger.net_worth.T`` for a Logger).
    percentiles : sequence of float
        Symmetric percentiles; bands are drawn between mirrored pairs and
        the middle value (if any) as a thick line.
    n_lines : int, default 0
        Number of individual sample paths to overlay.
    ax : matplotlib Axes, optional
        Draw into an existing axes.
    """
    import matplotlib.pyplot as plt
    from matplotlib.ticker import FuncFormatter

    times = np.asarray(times, dtype=float)
    paths = np.atleast_2d(np.asarray(paths, dtype=float))
    if paths.shape[1] != times.shape[0]:
        raise ValueError(
            f"paths must have {times.shape[0]} columns to match times, got {paths.shape[1]}"
        )

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize or DEFAULT_FIGSIZE)
    else:
        fig = ax.figure

    pct = sorted(percentiles)
    q = np.percentile(paths, pct, axis=0)
    n_bands = len(pct) // 2
    for i in range(n_bands):
        alpha = DEFAULT_ALPHA_BANDS * (i + 1) / max(n_bands, 1) + 0.1
        ax.fill_between(times, q[i], q[-(i + 1)], color=color, alpha=alpha, linewidth=0,
                        label=f"{pct[i]:g}-{pct[-(i + 1)]:g}th pct")
    if len(pct) % 2 == 1:
        ax.plot(times, q[n_bands], color=color, linewidth=DEFAULT_LINEWIDTH_THICK,
                label=f"{pct[n_bands]:g}th pct")
    for row in paths[:n_lines]:
        ax.plot(times, row, color="gray", alpha=0.4, linewidth=DEFAULT_LINEWIDTH)

    ax.set_xlabel(xlabel, fontsize=11)
    ax.set_ylabel(ylabel, fontsize=11)
    ax.yaxis.set_major_formatter(FuncFormatter(thousands_formatter))
    ax.legend(loc='best', fontsize=9)
    ax.grid(True, alpha=0.3)
    return _finish(fig, ax, title, save_path, return_fig_ax)


def plot_survival(
    times: Sequence[float],
    loggers: Union[object, Mapping[str, object]],
    *,
    figsize: Optional[tuple] = None,
    title: Optional[str] = "Survival probability",
    save_path: Optional[str] = None,
    return_fig_ax: bool = False,
):
    """
    Share of repetitions with positive net worth over time.

    Parameters
    ----------
    times : sequence of float
        Logged ages.
    loggers : Logger or dict[str, Logger]
        One curve per entry; a bare Logger draws a single curve.
    """
    import matplotlib.pyplot as plt

    if not isinstance(loggers, Mapping):
        loggers = {"": loggers}

    fig, ax = plt.subplots(figsize=figsize or DEFAULT_FIGSIZE_WIDE)
    for label, logger in loggers.items():
        ax.plot(times, survival_probability(logger), label=label or None,
                linewidth=DEFAULT_LINEWIDTH_THICK)

    ax.set_xlabel("Age", fontsize=11)
    ax.set_ylabel("P(net worth > 0)", fontsize=11)
    ax.set_ylim(-0.02, 1.02)
    if any(loggers):
        ax.legend(loc='best', fontsize=10)
    ax.grid(True, alpha=0.3)
    return _finish(fig, ax, title, save_path, return_fig_ax)


def plot_sensitivity(
    df: pd.DataFrame,
    x: str,
    y: str,
    *,
    at_time: Optional[float] = None,
    cmap: str = DEFAULT_CMAP,
    figsize: Optional[tuple] = None,
    title: Optional[str] = "Survival probability",
    save_path: Optional[str] = None,
    return_fig_ax: bool = False,
):
    """
    Heatmap of survival probability across two swept parameters.

    Parameters
    ----------
    df : pd.DataFrame
        Output of ``to_dataframe`` for a grid_search.
    x, y : str
        Swept parameter columns (e.g. ``"withdraw_withdraws"``).
    at_time : float, optional
        Time at which survival is evaluated (last logged time by default).
    """
    import matplotlib.pyplot as plt

    table = sensitivity_table(df, x, y, at_time=at_time)
    fig, ax = plt.subplots(figsize=figsize or DEFAULT_FIGSIZE)
    im = ax.imshow(table.values, cmap=cmap, vmin=0.0, vmax=1.0, aspect='auto', origin='lower')
    ax.set_xticks(range(len(table.columns)))
    ax.set_xticklabels([str(c) for c in table.columns], rotation=45, ha='right')
    ax.set_yticks(range(len(table.index)))
    ax.set_yticklabels([str(i) for i in table.index])
    ax.set_xlabel(x, fontsize=11)
    ax.set_ylabel(y, fontsize=11)
    for (i, j), val in np.ndenumerate(table.values):
        ax.text(j, i, f"{val:.2f}", ha='center', va='center', color='white', fontsize=9)
    fig.colorbar(im, ax=ax, label="P(net worth > 0)")
    return _finish(fig, ax, title, save_path, return_fig_ax)
