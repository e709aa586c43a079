"""
Stochastic growth processes for retireplan.

Purpose
-------
Generates multiplicative growth paths that drive the market and inflation
stages of the simulation engine. Every process follows the discretized
geometric Brownian motion

    x ← x + x·(μ·dt + σ·√dt·ε),   ε ~ N(0, 1)

and exposes the same small contract: ``reset`` once per repetition,
``increment`` once per time step, ``value`` to read the current level.

Key components
--------------
- AbstractGBM : common contract, regime switching and vectorized paths
- GBM         : fixed drift/volatility with optional recession parameters
- VarGBM      : drift and volatility resampled at every reset (parameter uncertainty)
- MvGBM       : correlated instruments with covariance D·ρ·D and rebalancing
- JumpGBM     : Merton jump-diffusion (Poisson jump counts, lognormal jumps)
- rand        : n_reps independent paths of length n_steps + 1
- fit         : moment-matching estimates of (μ, σ) from a price path

Design principles
-----------------
- Positivity comes from the multiplicative update, never from clamping
- Recession membership is evaluated on every increment
- reset() fully reinitializes per-repetition fields, so an instance can be
  reused sequentially; concurrent use requires separate instances
- rand() works on a deep copy and never mutates the caller's process

Example
-------
>>> import numpy as np
>>> from retireplan.processes import GBM, rand, fit
>>> gbm = GBM(mu=0.07, sigma=0.15, mu_r=-0.10, sigma_r=0.25)
>>> paths = rand(gbm, 120, 1000, dt=1/12, rng=np.random.default_rng(1),
...              recessions={5.0: 1.5})
>>> paths.shape
(1000, 121)
>>> mu_hat, sigma_hat = fit(paths[0], dt=1/12)
"""

from __future__ import annotations

import copy
import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike
from scipy import stats

from .transactions import Transaction, can_transact
from .types import RecessionSpec
from .utils import as_generator, check_non_negative, check_positive, ensure_1d

__all__ = [
    "AbstractGBM",
    "GBM",
    "VarGBM",
    "MvGBM",
    "JumpGBM",
    "in_recession",
    "rand",
    "fit",
    "estimate_mu",
    "estimate_sigma",
    "convert_mu",
]


# ---------------------------------------------------------------------------
# Regime windows
# ---------------------------------------------------------------------------

def in_recession(t: Optional[float], recessions: RecessionSpec, dt: float) -> bool:
    """
    Return True if time *t* falls inside a recession window.

    Parameters
    ----------
    t : float or None
        Current time (age). None is never in recession.
    recessions : mapping, Transaction, sequence of Transaction, or None
        - ``{start: duration}``: half-open windows ``start <= t < start + duration``
        - Transaction(s): window membership follows ``can_transact``
    dt : float
        Step size, used for the half-step tolerance of Transaction windows.
    """
    if recessions is None or t is None:
        return False
    if isinstance(recessions, Mapping):
        return any(start <= t < start + length for start, length in recessions.items())
    if isinstance(recessions, Transaction):
        return can_transact(recessions, t, dt)
    return any(can_transact(r, t, dt) for r in recessions)


# ---------------------------------------------------------------------------
# Abstract process
# ---------------------------------------------------------------------------

class AbstractGBM(ABC):
    """
    Base class for geometric Brownian motion processes.

    Subclasses provide ``_draw_params`` (per-path drift and volatility for
    the normal and recession regimes). The Euler step, regime selection and
    path generation are shared.

    Attributes
    ----------
    x0 : float
        Initial value restored by ``reset``.
    x : float
        Current value.
    """

    def __init__(self, x0: float = 1.0):
        check_positive("x0", x0)
        self.x0 = float(x0)
        self.x = float(x0)

    # ---- parameters --------------------------------------------------------

    @abstractmethod
    def _draw_params(
        self, rng: np.random.Generator, size: Optional[int]
    ) -> Tuple[ArrayLike, ArrayLike, ArrayLike, ArrayLike]:
        """Return (mu, sigma, mu_r, sigma_r) for *size* paths (scalars when size is None)."""

    @abstractmethod
    def _current_params(self) -> Tuple[float, float, float, float]:
        """Return the (mu, sigma, mu_r, sigma_r) in effect for the current repetition."""

    # ---- dynamics ----------------------------------------------------------

    def _step(self, x, dt: float, mu, sigma, rng: np.random.Generator):
        eps = rng.standard_normal(np.shape(x))
        return x + x * (mu * dt + sigma * math.sqrt(dt) * eps)

    def reset(self, rng: Optional[np.random.Generator] = None) -> None:
        """Restore the initial value."""
        self.x = self.x0

    def increment(
        self,
        dt: float,
        t: Optional[float] = None,
        recessions: RecessionSpec = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """
        Advance the process by one step of length *dt*.

        Parameters
        ----------
        dt : float
            Step size in years.
        t : float, optional
            Current time; only needed for recession windows.
        recessions : RecessionSpec, optional
            Recession windows; see ``in_recession``.
        rng : numpy.random.Generator, optional
            Source of randomness (package default if None).
        """
        rng = as_generator(rng)
        mu, sigma, mu_r, sigma_r = self._current_params()
        if in_recession(t, recessions, dt):
            mu, sigma = mu_r, sigma_r
        self.x = float(self._step(self.x, dt, mu, sigma, rng))

    @property
    def value(self) -> float:
        """Current level of the process."""
        return self.x

    # ---- closed-form moments (normal regime, current parameters) -----------

    def mean(self, t: float) -> float:
        """E[X_t] = x0·exp(μt)."""
        mu, _, _, _ = self._current_params()
        return self.x0 * math.exp(mu * t)

    def var(self, t: float) -> float:
        """Var[X_t] = x0²·exp(2μt)·(exp(σ²t) − 1)."""
        mu, sigma, _, _ = self._current_params()
        return self.x0 ** 2 * math.exp(2 * mu * t) * (math.exp(sigma ** 2 * t) - 1)

    def std(self, t: float) -> float:
        """Standard deviation of X_t."""
        return math.sqrt(self.var(t))

    # ---- vectorized paths --------------------------------------------------

    def _paths(
        self,
        n_steps: int,
        n_reps: int,
        dt: float,
        rng: np.random.Generator,
        t0: float,
        recessions: RecessionSpec,
    ) -> np.ndarray:
        mu, sigma, mu_r, sigma_r = self._draw_params(rng, n_reps)
        out = np.empty((n_reps, n_steps + 1))
        out[:, 0] = self.x0
        for i in range(n_steps):
            t = t0 + (i + 1) * dt
            if in_recession(t, recessions, dt):
                out[:, i + 1] = self._step(out[:, i], dt, mu_r, sigma_r, rng)
            else:
                out[:, i + 1] = self._step(out[:, i], dt, mu, sigma, rng)
        return out

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in vars(self).items() if not k.startswith("_"))
        return f"{type(self).__name__}({params})"


# ---------------------------------------------------------------------------
# Concrete processes
# ---------------------------------------------------------------------------

class GBM(AbstractGBM):
    """
    Geometric Brownian motion with optional recession regime.

    Parameters
    ----------
    mu : float
        Annual drift.
    sigma : float
        Annual volatility (>= 0).
    mu_r : float, optional
        Drift inside recession windows (defaults to mu).
    sigma_r : float, optional
        Volatility inside recession windows (defaults to sigma).
    x0 : float, default 1.0
        Initial value (> 0).

    Examples
    --------
    >>> gbm = GBM(mu=0.07, sigma=0.05)
    >>> round(gbm.mean(10), 4)
    2.0138
    """

    def __init__(
        self,
        mu: float,
        sigma: float,
        mu_r: Optional[float] = None,
        sigma_r: Optional[float] = None,
        x0: float = 1.0,
    ):
        super().__init__(x0)
        check_non_negative("sigma", sigma)
        self.mu = float(mu)
        self.sigma = float(sigma)
        self.mu_r = self.mu if mu_r is None else float(mu_r)
        self.sigma_r = self.sigma if sigma_r is None else float(sigma_r)
        check_non_negative("sigma_r", self.sigma_r)

    def _current_params(self):
        return self.mu, self.sigma, self.mu_r, self.sigma_r

    def _draw_params(self, rng, size):
        return self._current_params()


class VarGBM(AbstractGBM):
    """
    Geometric Brownian motion with uncertain parameters.

    On every ``reset`` the drift is drawn from N(mu_mean, mu_std) and the
    volatility from N(sigma_mean, sigma_std) truncated to [0, ∞), so each
    repetition runs under its own (μ, σ). Recession parameters are sampled
    the same way from their own meta-distributions. A zero standard
    deviation makes the corresponding parameter fixed.

    Parameters
    ----------
    mu_mean, mu_std : float
        Meta-distribution of the drift.
    sigma_mean, sigma_std : float
        Meta-distribution of the volatility (truncated at 0).
    mu_r_mean, mu_r_std, sigma_r_mean, sigma_r_std : float, optional
        Recession meta-distributions; means default to the normal-regime
        means and standard deviations default to 0.
    x0 : float, default 1.0
        Initial value (> 0).

    Notes
    -----
    Until the first ``reset`` the process runs at the meta-distribution means.
    """

    def __init__(
        self,
        mu_mean: float,
        mu_std: float,
        sigma_mean: float,
        sigma_std: float,
        mu_r_mean: Optional[float] = None,
        mu_r_std: float = 0.0,
        sigma_r_mean: Optional[float] = None,
        sigma_r_std: float = 0.0,
        x0: float = 1.0,
    ):
        super().__init__(x0)
        for name, val in [("mu_std", mu_std), ("sigma_mean", sigma_mean),
                          ("sigma_std", sigma_std), ("mu_r_std", mu_r_std),
                          ("sigma_r_std", sigma_r_std)]:
            check_non_negative(name, val)
        self.mu_mean = float(mu_mean)
        self.mu_std = float(mu_std)
        self.sigma_mean = float(sigma_mean)
        self.sigma_std = float(sigma_std)
        self.mu_r_mean = self.mu_mean if mu_r_mean is None else float(mu_r_mean)
        self.mu_r_std = float(mu_r_std)
        self.sigma_r_mean = self.sigma_mean if sigma_r_mean is None else float(sigma_r_mean)
        self.sigma_r_std = float(sigma_r_std)
        check_non_negative("sigma_r_mean", self.sigma_r_mean)

        self.mu = self.mu_mean
        self.sigma = self.sigma_mean
        self.mu_r = self.mu_r_mean
        self.sigma_r = self.sigma_r_mean

    @staticmethod
    def _normal(mean, std, rng, size):
        if std == 0:
            return mean if size is None else np.full(size, mean)
        return rng.normal(mean, std, size=size)

    @staticmethod
    def _non_negative_normal(mean, std, rng, size):
        if std == 0:
            return mean if size is None else np.full(size, mean)
        a = (0.0 - mean) / std
        return stats.truncnorm.rvs(a, np.inf, loc=mean, scale=std, size=size, random_state=rng)

    def _draw_params(self, rng, size):
        return (
            self._normal(self.mu_mean, self.mu_std, rng, size),
            self._non_negative_normal(self.sigma_mean, self.sigma_std, rng, size),
            self._normal(self.mu_r_mean, self.mu_r_std, rng, size),
            self._non_negative_normal(self.sigma_r_mean, self.sigma_r_std, rng, size),
        )

    def _current_params(self):
        return self.mu, self.sigma, self.mu_r, self.sigma_r

    def reset(self, rng: Optional[np.random.Generator] = None) -> None:
        """Restore the initial value and resample (μ, σ, μ_r, σ_r)."""
        rng = as_generator(rng)
        self.x = self.x0
        mu, sigma, mu_r, sigma_r = self._draw_params(rng, None)
        self.mu, self.sigma = float(mu), float(sigma)
        self.mu_r, self.sigma_r = float(mu_r), float(sigma_r)


class JumpGBM(GBM):
    """
    Merton jump-diffusion.

    Each step multiplies the diffusion update by ``exp(J)`` where J is the
    sum of N ~ Poisson(jump_rate·dt) independent N(jump_mean, jump_std)
    log-jumps. Jumps keep the value strictly positive.

    Parameters
    ----------
    mu, sigma, mu_r, sigma_r, x0 :
        As in GBM.
    jump_rate : float
        Expected number of jumps per year (>= 0).
    jump_mean : float
        Mean log-jump size (negative for crashes).
    jump_std : float
        Standard deviation of the log-jump size (>= 0).

    Examples
    --------
    >>> crash = JumpGBM(mu=0.08, sigma=0.12, jump_rate=0.2, jump_mean=-0.25, jump_std=0.1)
    """

    def __init__(
        self,
        mu: float,
        sigma: float,
        jump_rate: float,
        jump_mean: float,
        jump_std: float,
        mu_r: Optional[float] = None,
        sigma_r: Optional[float] = None,
        x0: float = 1.0,
    ):
        super().__init__(mu, sigma, mu_r=mu_r, sigma_r=sigma_r, x0=x0)
        check_non_negative("jump_rate", jump_rate)
        check_non_negative("jump_std", jump_std)
        self.jump_rate = float(jump_rate)
        self.jump_mean = float(jump_mean)
        self.jump_std = float(jump_std)

    def _step(self, x, dt, mu, sigma, rng):
        x_new = super()._step(x, dt, mu, sigma, rng)
        n_jumps = rng.poisson(self.jump_rate * dt, size=np.shape(x))
        log_jump = rng.normal(n_jumps * self.jump_mean, np.sqrt(n_jumps) * self.jump_std)
        return x_new * np.exp(log_jump)

    def _jump_moment(self, k: int) -> float:
        # E[exp(k·J)] for a single lognormal jump
        return math.exp(k * self.jump_mean + 0.5 * k ** 2 * self.jump_std ** 2)

    def mean(self, t: float) -> float:
        """E[X_t] including the compensator of the jump component."""
        return super().mean(t) * math.exp(self.jump_rate * t * (self._jump_moment(1) - 1))

    def var(self, t: float) -> float:
        """Var[X_t] of the jump-diffusion."""
        second = (
            self.x0 ** 2
            * math.exp((2 * self.mu + self.sigma ** 2) * t)
            * math.exp(self.jump_rate * t * (self._jump_moment(2) - 1))
        )
        return second - self.mean(t) ** 2


class MvGBM(AbstractGBM):
    """
    Correlated geometric Brownian motions for a multi-asset portfolio.

    The state is a vector of instrument values that starts at
    ``x0 * ratios``. Noise is drawn jointly from N(0, Σ) with
    Σ = D·ρ·D, D = diag(σ). ``value`` is the portfolio total.

    Parameters
    ----------
    mu : array-like, shape (M,)
        Annual drift per instrument.
    sigma : array-like, shape (M,)
        Annual volatility per instrument (>= 0).
    rho : array-like, shape (M, M)
        Correlation matrix (symmetric, unit diagonal, PSD).
    ratios : array-like, shape (M,), optional
        Target weights summing to 1; equal weights by default.
    mu_r, sigma_r : array-like, shape (M,), optional
        Recession parameters (default to mu and sigma).
    x0 : float, default 1.0
        Initial portfolio total (> 0).

    Examples
    --------
    >>> mv = MvGBM(mu=[0.08, 0.03], sigma=[0.15, 0.04],
    ...            rho=[[1.0, 0.2], [0.2, 1.0]], ratios=[0.6, 0.4])
    >>> mv.x
    array([0.6, 0.4])
    """

    def __init__(
        self,
        mu: ArrayLike,
        sigma: ArrayLike,
        rho: ArrayLike,
        ratios: Optional[ArrayLike] = None,
        mu_r: Optional[ArrayLike] = None,
        sigma_r: Optional[ArrayLike] = None,
        x0: float = 1.0,
    ):
        check_positive("x0", x0)
        self.mu = ensure_1d(mu, name="mu")
        self.sigma = ensure_1d(sigma, name="sigma")
        M = self.mu.shape[0]
        self.M = M
        if self.sigma.shape[0] != M:
            raise ValueError(f"sigma must have length {M}, got {self.sigma.shape[0]}")
        if np.any(self.sigma < 0):
            raise ValueError("sigma must be non-negative")
        self.rho = np.asarray(rho, dtype=float)
        if self.rho.shape != (M, M):
            raise ValueError(f"rho must have shape ({M}, {M}), got {self.rho.shape}")
        self._validate_correlation(self.rho)

        if ratios is None:
            ratios = np.full(M, 1.0 / M)
        self.ratios = ensure_1d(ratios, name="ratios")
        if self.ratios.shape[0] != M or np.any(self.ratios < 0):
            raise ValueError(f"ratios must be {M} non-negative weights")
        if not np.isclose(self.ratios.sum(), 1.0):
            raise ValueError(f"ratios must sum to 1 (got {self.ratios.sum():.6f})")

        self.mu_r = self.mu.copy() if mu_r is None else ensure_1d(mu_r, name="mu_r")
        self.sigma_r = self.sigma.copy() if sigma_r is None else ensure_1d(sigma_r, name="sigma_r")

        self.cov = self._build_covariance(self.sigma)
        self.cov_r = self._build_covariance(self.sigma_r)
        self.x0 = float(x0)
        self.x = self.x0 * self.ratios

    @staticmethod
    def _validate_correlation(rho: np.ndarray):
        """Validate correlation matrix properties."""
        if not np.allclose(rho, rho.T):
            raise ValueError("correlation matrix must be symmetric")
        if not np.allclose(np.diag(rho), 1.0):
            raise ValueError("correlation matrix diagonal must be 1.0")

        eigvals = np.linalg.eigvalsh(rho)
        if np.any(eigvals < -1e-10):
            raise ValueError(
                f"correlation matrix must be positive semi-definite "
                f"(min eigenvalue: {eigvals.min():.6f})"
            )

    def _build_covariance(self, sigma: np.ndarray) -> np.ndarray:
        """Build covariance: Σ = D @ ρ @ D."""
        D = np.diag(sigma)
        return D @ self.rho @ D

    def _current_params(self):
        return self.mu, self.cov, self.mu_r, self.cov_r

    def _draw_params(self, rng, size):
        return self._current_params()

    def _step(self, x, dt, mu, cov, rng):
        size = None if x.ndim == 1 else x.shape[0]
        eps = rng.multivariate_normal(np.zeros(self.M), cov, size=size)
        return x + x * (mu * dt + math.sqrt(dt) * eps)

    def reset(self, rng: Optional[np.random.Generator] = None) -> None:
        """Restore the initial allocation ``x0 * ratios``."""
        self.x = self.x0 * self.ratios

    def rebalance(self) -> None:
        """Redistribute the current total according to ``ratios``."""
        self.x = self.x.sum() * self.ratios

    def increment(
        self,
        dt: float,
        t: Optional[float] = None,
        recessions: RecessionSpec = None,
        rng: Optional[np.random.Generator] = None,
        rebalance: bool = False,
    ) -> None:
        """
        Advance all instruments jointly by one step.

        Parameters
        ----------
        dt, t, recessions, rng :
            As in AbstractGBM.increment.
        rebalance : bool, default False
            Renormalize holdings to ``ratios`` after the step.
        """
        rng = as_generator(rng)
        mu, cov, mu_r, cov_r = self._current_params()
        if in_recession(t, recessions, dt):
            mu, cov = mu_r, cov_r
        self.x = self._step(self.x, dt, mu, cov, rng)
        if rebalance:
            self.rebalance()

    @property
    def value(self) -> float:
        """Portfolio total."""
        return float(self.x.sum())

    def mean(self, t: float) -> np.ndarray:
        """Per-instrument E[X_t] without rebalancing."""
        return self.x0 * self.ratios * np.exp(self.mu * t)

    def var(self, t: float) -> np.ndarray:
        """Per-instrument Var[X_t] without rebalancing."""
        x0 = self.x0 * self.ratios
        return x0 ** 2 * np.exp(2 * self.mu * t) * (np.exp(self.sigma ** 2 * t) - 1)

    def std(self, t: float) -> np.ndarray:
        """Per-instrument standard deviation of X_t."""
        return np.sqrt(self.var(t))

    def _paths(self, n_steps, n_reps, dt, rng, t0, recessions, rebalance=False):
        out = np.empty((n_reps, n_steps + 1, self.M))
        out[:, 0, :] = self.x0 * self.ratios
        for i in range(n_steps):
            t = t0 + (i + 1) * dt
            if in_recession(t, recessions, dt):
                x = self._step(out[:, i, :], dt, self.mu_r, self.cov_r, rng)
            else:
                x = self._step(out[:, i, :], dt, self.mu, self.cov, rng)
            if rebalance:
                x = x.sum(axis=1, keepdims=True) * self.ratios
            out[:, i + 1, :] = x
        return out


# ---------------------------------------------------------------------------
# Path generation
# ---------------------------------------------------------------------------

def rand(
    process: AbstractGBM,
    n_steps: int,
    n_reps: Optional[int] = None,
    *,
    dt: float,
    rng=None,
    t0: float = 0.0,
    recessions: RecessionSpec = None,
    rebalance: bool = False,
) -> np.ndarray:
    """
    Simulate independent realized paths of a growth process.

    Each path starts from the process's initial value and, for VarGBM,
    runs under its own resampled parameters. The caller's process is
    not mutated.

    Parameters
    ----------
    process : AbstractGBM
        Process to simulate.
    n_steps : int
        Number of increments per path.
    n_reps : int, optional
        Number of paths. None returns a single path without the leading axis.
    dt : float
        Step size in years.
    rng : Generator, int or None
        Source of randomness.
    t0 : float, default 0.0
        Time of the initial value; step i is evaluated at ``t0 + i*dt``.
    recessions : RecessionSpec, optional
        Recession windows.
    rebalance : bool, default False
        MvGBM only: rebalance to target ratios after each step.

    Returns
    -------
    np.ndarray
        Shape ``(n_reps, n_steps + 1)``, or ``(n_steps + 1,)`` when n_reps is
        None. MvGBM adds a trailing instrument axis.

    Examples
    --------
    >>> paths = rand(GBM(mu=0.1, sigma=0.1), 1000, 500, dt=0.01, rng=42)
    >>> paths[:, 0].min()
    1.0
    """
    if n_steps < 1:
        raise ValueError(f"n_steps must be >= 1, got {n_steps}")
    if n_reps is not None and n_reps < 1:
        raise ValueError(f"n_reps must be >= 1, got {n_reps}")
    check_positive("dt", dt)

    rng = as_generator(rng)
    proc = copy.deepcopy(process)
    size = 1 if n_reps is None else n_reps
    if isinstance(proc, MvGBM):
        paths = proc._paths(n_steps, size, dt, rng, t0, recessions, rebalance=rebalance)
    else:
        paths = proc._paths(n_steps, size, dt, rng, t0, recessions)
    return paths[0] if n_reps is None else paths


# ---------------------------------------------------------------------------
# Parameter estimation
# ---------------------------------------------------------------------------

def estimate_mu(log_returns: ArrayLike, dt: float) -> float:
    """
    Log drift as the through-origin least-squares slope of cumulative
    log-return against elapsed time ``0, dt, 2dt, ...``.

    >>> round(estimate_mu([0.0, 0.1, 0.2, 0.3], dt=1.0), 6)
    0.1
    """
    y = ensure_1d(log_returns, name="log_returns")
    elapsed = dt * np.arange(y.shape[0])
    return float(np.sum(elapsed * y) / np.sum(elapsed ** 2))


def estimate_sigma(log_prices: ArrayLike, dt: float) -> float:
    """
    Volatility as the RMS of first-differenced log prices divided by √dt.

    >>> round(estimate_sigma([1.0, 1.2, 1.4, 1.5], dt=1/12), 6)
    0.6
    """
    y = ensure_1d(log_prices, name="log_prices")
    increments = np.diff(y)
    return float(np.sqrt(np.mean(increments ** 2) / dt))


def convert_mu(mu_log: float, sigma: float) -> float:
    """
    Arithmetic drift from log drift: μ = μ_log + σ²/2.

    >>> convert_mu(1.5, 2)
    3.5
    """
    return mu_log + 0.5 * sigma ** 2


def fit(prices: ArrayLike, dt: float) -> Tuple[float, float]:
    """
    Recover GBM parameters (μ, σ) from an observed price path.

    Parameters
    ----------
    prices : array-like
        Strictly positive prices observed every *dt* years (at least 3).
    dt : float
        Observation interval in years.

    Returns
    -------
    (mu, sigma) : tuple of float
        Arithmetic drift (bias-corrected by σ²/2) and volatility, in the
        parameterization used by GBM.

    Examples
    --------
    >>> path = rand(GBM(mu=0.15, sigma=0.01), 50 * 365, dt=1/365, rng=3)
    >>> mu, sigma = fit(path, dt=1/365)
    """
    check_positive("dt", dt)
    p = ensure_1d(prices, name="prices")
    if p.shape[0] < 3:
        raise ValueError(f"prices must contain at least 3 observations, got {p.shape[0]}")
    if np.any(p <= 0):
        raise ValueError("prices must be strictly positive")
    log_prices = np.log(p)
    mu_log = estimate_mu(log_prices - log_prices[0], dt)
    # volatility of the residuals around the fitted log drift
    detrended = log_prices - mu_log * dt * np.arange(p.shape[0])
    sigma = estimate_sigma(detrended, dt)
    return convert_mu(mu_log, sigma), sigma
