"""General utilities for retireplan

Contents
--------
- Validation helpers
- Random number generation (package default generator, seeding)
- Time helpers (half-step comparisons)
- Rate helpers (real growth, annualized ratios)
- Matplotlib formatters (thousands_formatter, format_currency)
"""

from __future__ import annotations

from typing import Optional, Union

import numpy as np
from numpy.typing import ArrayLike

from .constants import HALF_STEP_TOLERANCE

__all__ = [
    # Validation
    "check_non_negative",
    "check_positive",
    "ensure_1d",
    # Randomness
    "set_random_seed",
    "get_rng",
    "as_generator",
    # Time
    "within_half_step",
    # Rates
    "real_growth_rate",
    "annualize_ratio",
    # Matplotlib formatters
    "thousands_formatter",
    "format_currency",
]

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def check_non_negative(name: str, value: float) -> None:
    """Raise if *value* is negative (strict)."""
    if value < 0:
        raise ValueError(f"{name} must be non-negative (got {value}).")


def check_positive(name: str, value: float) -> None:
    """Raise if *value* is not strictly positive."""
    if not value > 0:
        raise ValueError(f"{name} must be positive (got {value}).")


def ensure_1d(a: ArrayLike, *, name: str = "array") -> np.ndarray:
    """Convert input to a 1-D float NumPy array with helpful error messages."""
    arr = np.asarray(a, dtype=float)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be 1-D, got shape {arr.shape}.")
    if not np.isfinite(arr).all():
        raise ValueError(f"{name} must contain only finite values.")
    return arr


# ---------------------------------------------------------------------------
# Randomness
# ---------------------------------------------------------------------------

_DEFAULT_RNG: np.random.Generator = np.random.default_rng()


def set_random_seed(seed: Optional[int]) -> None:
    """Reseed the package default generator for reproducibility (if given)."""
    global _DEFAULT_RNG
    if seed is None:
        return
    _DEFAULT_RNG = np.random.default_rng(int(seed))


def get_rng() -> np.random.Generator:
    """Return the package default generator."""
    return _DEFAULT_RNG


def as_generator(
    rng: Union[None, int, np.random.SeedSequence, np.random.Generator] = None,
) -> np.random.Generator:
    """Coerce *rng* into a Generator.

    None returns the package default generator, an existing Generator is
    returned unchanged, and seeds or SeedSequences build a new one.
    """
    if rng is None:
        return _DEFAULT_RNG
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------

def within_half_step(t: float, start: float, end: float, dt: float) -> bool:
    """Return True iff ``start - dt/2 <= t <= end + dt/2``."""
    tol = HALF_STEP_TOLERANCE * dt
    return (start - tol) <= t <= (end + tol)


# ---------------------------------------------------------------------------
# Rate helpers
# ---------------------------------------------------------------------------

def real_growth_rate(interest_rate: float, inflation_rate: float) -> float:
    """Inflation-adjusted growth: (1 + interest) / (1 + inflation) - 1."""
    return (1.0 + interest_rate) / (1.0 + inflation_rate) - 1.0


def annualize_ratio(x: float, x_prev: float, dt: float) -> float:
    """Annualized growth rate implied by moving from *x_prev* to *x* over *dt* years."""
    return (x / x_prev) ** (1.0 / dt) - 1.0


# ---------------------------------------------------------------------------
# Matplotlib formatters
# ---------------------------------------------------------------------------

def thousands_formatter(x, pos):
    """
    Format axis values as thousands for matplotlib FuncFormatter.

    - 250_000 → "250k"
    - 12_500 → "12.5k"
    - 0 → "0"

    Examples
    --------
    >>> from matplotlib.ticker import FuncFormatter
    >>> ax.yaxis.set_major_formatter(FuncFormatter(thousands_formatter))
    """
    if x == 0:
        return '0'
    val = x / 1e3
    return f'{val:.0f}k' if val == int(val) else f'{val:.1f}k'


def format_currency(value, decimals=0, symbol='$'):
    """
    Format currency values for text annotations and tables.

    Parameters
    ----------
    value : float
        Monetary value.
    decimals : int, default 0
        Number of decimal places to display.
    symbol : str, default '$'
        Currency symbol prefix.

    Examples
    --------
    >>> format_currency(919_432.4)
    '$919,432'
    >>> format_currency(-1500, decimals=2)
    '-$1,500.00'
    """
    sign = '-' if value < 0 else ''
    return f"{sign}{symbol}{abs(value):,.{decimals}f}"
