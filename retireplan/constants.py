"""
Global constants for retireplan.

Purpose
-------
Centralizes default values and magic numbers used throughout the
retireplan codebase: scenario defaults, the stage pipeline order,
the logged fields, and plotting defaults.

Usage
-----
>>> from retireplan.constants import DEFAULT_DT, DEFAULT_FIGSIZE
>>>
>>> model = Model(dt=DEFAULT_DT, duration=55, start_age=30, start_amount=10_000)
>>> fig, ax = plt.subplots(figsize=DEFAULT_FIGSIZE)

Categories
----------
- Simulation: repetition counts, random seeds, step size
- Pipeline: stage order and stage keyword groups
- Market and inflation: default growth parameters
- Plotting: figure sizes, colors, transparency values
"""

from typing import Tuple

__all__ = [
    # Simulation
    "DEFAULT_N_REPS",
    "DEFAULT_SEED",
    "DEFAULT_DT",
    "HALF_STEP_TOLERANCE",
    # Pipeline
    "STAGES",
    "STAGE_KW_GROUPS",
    "LOG_FIELDS",
    # Market / inflation
    "DEFAULT_MARKET_MU",
    "DEFAULT_MARKET_SIGMA",
    "DEFAULT_INFLATION_MU",
    "DEFAULT_INFLATION_SIGMA",
    # Plotting
    "DEFAULT_FIGSIZE",
    "DEFAULT_FIGSIZE_WIDE",
    "DEFAULT_ALPHA_BANDS",
    "DEFAULT_LINEWIDTH",
    "DEFAULT_LINEWIDTH_THICK",
    "DEFAULT_PERCENTILES",
    "DEFAULT_CMAP",
]


# =============================================================================
# Simulation Defaults
# =============================================================================

DEFAULT_N_REPS: int = 1000
"""Default number of Monte Carlo repetitions per scenario."""

DEFAULT_SEED: int = 42
"""Default random seed for reproducibility."""

DEFAULT_DT: float = 1.0 / 12.0
"""Default time step in years (monthly)."""

HALF_STEP_TOLERANCE: float = 0.5
"""Fraction of dt tolerated on either side of a transaction window."""


# =============================================================================
# Pipeline
# =============================================================================

STAGES: Tuple[str, ...] = (
    "update_inflation",
    "update_market",
    "update_income",
    "invest",
    "withdraw",
    "update_investments",
    "log",
)
"""Update stages in execution order.

Income precedes withdraw because withdrawals read the step's income
for their income adjustment. Market and inflation precede withdraw
because adaptive withdrawals read the step's realized real growth.
"""

STAGE_KW_GROUPS: Tuple[str, ...] = (
    "kw_inflation",
    "kw_market",
    "kw_income",
    "kw_invest",
    "kw_withdraw",
    "kw_investments",
    "kw_log",
)
"""Keyword-group names, aligned index by index with STAGES."""

LOG_FIELDS: Tuple[str, ...] = ("net_worth", "interest", "inflation", "total_income")
"""Arrays recorded by the default Logger."""


# =============================================================================
# Market / Inflation Defaults
# =============================================================================

DEFAULT_MARKET_MU: float = 0.07
"""Default annual market drift."""

DEFAULT_MARKET_SIGMA: float = 0.05
"""Default annual market volatility."""

DEFAULT_INFLATION_MU: float = 0.03
"""Default annual inflation drift."""

DEFAULT_INFLATION_SIGMA: float = 0.01
"""Default annual inflation volatility."""


# =============================================================================
# Plotting Defaults
# =============================================================================

DEFAULT_FIGSIZE: Tuple[int, int] = (12, 7)
"""Default figure size (width, height) in inches for standard plots."""

DEFAULT_FIGSIZE_WIDE: Tuple[int, int] = (14, 6)
"""Figure size for wide aspect ratio plots (timeseries)."""

DEFAULT_ALPHA_BANDS: float = 0.2
"""Default alpha for percentile band fills."""

DEFAULT_LINEWIDTH: float = 1.0
"""Default line width for standard plot lines."""

DEFAULT_LINEWIDTH_THICK: float = 2.0
"""Line width for emphasized lines (medians, thresholds)."""

DEFAULT_PERCENTILES: Tuple[float, ...] = (5.0, 25.0, 50.0, 75.0, 95.0)
"""Default percentiles for fan charts and summaries."""

DEFAULT_CMAP: str = "viridis"
"""Default colormap for sensitivity heatmaps."""
