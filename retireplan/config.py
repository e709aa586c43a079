"""
Configuration management module for retireplan.

Purpose
-------
Centralized configuration using Pydantic models for type-safe parameter
management, validation, and serialization. Supports environment variables
for application-wide settings and programmatic defaults for scenarios.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and validates ranges
- Immutable: Frozen models prevent accidental mutation
- Serializable: Easy conversion to/from JSON for config files
- Environment-aware: AppSettings reads RETIREPLAN_* variables and .env files

Example
-------
>>> from retireplan.config import ScenarioConfig, SweepConfig
>>> scenario = ScenarioConfig(dt=1/12, duration=55, start_age=30, start_amount=10_000)
>>> sweep = SweepConfig(n_reps=500, parallel=True, seed=7)
>>>
>>> # Serialize to dict/JSON
>>> data = scenario.model_dump()
>>> loaded = ScenarioConfig.model_validate(data)
"""

from __future__ import annotations

import logging
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_DT, DEFAULT_N_REPS, DEFAULT_SEED

__all__ = [
    "ScenarioConfig",
    "SweepConfig",
    "AppSettings",
    "get_settings",
    "setup_logging",
]


# ---------------------------------------------------------------------------
# Scenario Configuration
# ---------------------------------------------------------------------------

class ScenarioConfig(BaseModel):
    """
    Fixed scenario parameters shared by every repetition of a Model.

    Attributes
    ----------
    dt : float
        Time step in years (e.g. 1/12 for monthly steps).
    duration : float
        Simulated span in years; must be at least one step.
    start_age : float
        Age at the start of the simulation.
    start_amount : float
        Net worth at the start of every repetition.
    log_times : tuple of float, optional
        Ages at which the log stage records values. None records every step.

    Examples
    --------
    >>> cfg = ScenarioConfig(dt=1/12, duration=35, start_age=30, start_amount=10_000)
    >>> round(cfg.duration / cfg.dt)
    420
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    dt: float = Field(
        default=DEFAULT_DT,
        gt=0.0,
        description="Time step in years"
    )
    duration: float = Field(
        ...,
        gt=0.0,
        description="Simulated span in years"
    )
    start_age: float = Field(
        ...,
        ge=0.0,
        description="Age at the start of the simulation"
    )
    start_amount: float = Field(
        ...,
        ge=0.0,
        description="Initial net worth"
    )
    log_times: Optional[Tuple[float, ...]] = Field(
        default=None,
        description="Ages at which values are logged (None = every step)"
    )

    @field_validator("log_times")
    @classmethod
    def _sorted_log_times(cls, v: Optional[Tuple[float, ...]]) -> Optional[Tuple[float, ...]]:
        if v is None:
            return v
        if len(v) == 0:
            raise ValueError("log_times must not be empty")
        if any(b <= a for a, b in zip(v, v[1:])):
            raise ValueError("log_times must be strictly increasing")
        return v

    @model_validator(mode="after")
    def _check_horizon(self) -> "ScenarioConfig":
        if self.duration < self.dt:
            raise ValueError(
                f"duration ({self.duration}) must be at least one step (dt={self.dt})"
            )
        return self

    @property
    def n_steps(self) -> int:
        """Number of simulated steps (duration / dt, rounded)."""
        return int(round(self.duration / self.dt))


# ---------------------------------------------------------------------------
# Sweep Configuration
# ---------------------------------------------------------------------------

class SweepConfig(BaseModel):
    """
    Execution options for grid_search.

    Attributes
    ----------
    n_reps : int
        Repetitions per parameter combination.
    parallel : bool
        Evaluate combinations in a process pool.
    max_workers : int, optional
        Pool size; None lets concurrent.futures decide.
    show_progress : bool
        Display a rich progress bar.
    seed : int, optional
        Root seed; each combination receives an independent child stream.

    Examples
    --------
    >>> SweepConfig(n_reps=200, parallel=True).max_workers is None
    True
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    n_reps: int = Field(
        default=DEFAULT_N_REPS,
        ge=1,
        description="Repetitions per combination"
    )
    parallel: bool = Field(
        default=False,
        description="Evaluate combinations in worker processes"
    )
    max_workers: Optional[int] = Field(
        default=None,
        ge=1,
        description="Number of worker processes"
    )
    show_progress: bool = Field(
        default=False,
        description="Display a progress bar"
    )
    seed: Optional[int] = Field(
        default=DEFAULT_SEED,
        ge=0,
        description="Root random seed"
    )


# ---------------------------------------------------------------------------
# Application Settings
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    should be prefixed with RETIREPLAN_ (e.g., RETIREPLAN_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    n_reps : int
        Default repetitions for CLI runs
    seed : int
        Default seed for CLI runs
    max_workers : int, optional
        Default pool size for parallel sweeps

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.log_level
    'WARNING'

    # With environment:
    # RETIREPLAN_N_REPS=5000
    >>> AppSettings().n_reps
    5000
    """

    model_config = SettingsConfigDict(
        env_prefix="RETIREPLAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level"
    )
    n_reps: int = Field(
        default=DEFAULT_N_REPS,
        ge=1,
        description="Default repetitions per scenario"
    )
    seed: int = Field(
        default=DEFAULT_SEED,
        ge=0,
        description="Default random seed"
    )
    max_workers: Optional[int] = Field(
        default=None,
        ge=1,
        description="Default number of worker processes"
    )


def get_settings() -> AppSettings:
    """Load settings from the current environment."""
    return AppSettings()


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the ``retireplan`` logger with a rich console handler.

    Parameters
    ----------
    level : str, optional
        Logging level name. Defaults to ``AppSettings().log_level``.
    """
    from rich.logging import RichHandler

    if level is None:
        level = get_settings().log_level

    pkg_logger = logging.getLogger("retireplan")
    pkg_logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in pkg_logger.handlers):
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s"))
        pkg_logger.addHandler(handler)
