"""
retireplan — Monte Carlo stress tests for retirement plans

Simulates a retirement/investment plan many times under uncertain
market growth, inflation, income and withdrawals, and sweeps plan
parameters to compare scenarios.

Modules
-------
- processes    : GBM family of growth processes, path generation, fitting
- transactions : cash-flow rules and amount kinds (fixed, sampled, adaptive)
- model        : Model, State and Logger
- simulation   : time-stepped engine and default stages
- rates / income / investment / withdrawal : pipeline stage variants
- sweep        : grid search with yoked parameters
- reporting    : pandas export and survival statistics
- plotting     : matplotlib figures
- utils        : shared helpers (validation, randomness, formatting)
"""

__version__ = "0.1.0"

from .exceptions import (
    ConfigurationError,
    RetirePlanError,
    SimulationError,
    ValidationError,
    YokeError,
)
from .processes import GBM, JumpGBM, MvGBM, VarGBM, fit, rand
from .transactions import (
    AdaptiveInvestment,
    AdaptiveWithdraw,
    NominalAmount,
    Transaction,
    can_transact,
    transact,
)
from .model import Logger, Model, State
from .simulation import get_times, simulate
from .sweep import SweepResult, grid_search
from .reporting import survival_probability, to_dataframe
from . import utils

__all__ = [
    "__version__",
    # errors
    "RetirePlanError",
    "ConfigurationError",
    "YokeError",
    "ValidationError",
    "SimulationError",
    # processes
    "GBM",
    "VarGBM",
    "MvGBM",
    "JumpGBM",
    "rand",
    "fit",
    # transactions
    "Transaction",
    "NominalAmount",
    "AdaptiveWithdraw",
    "AdaptiveInvestment",
    "can_transact",
    "transact",
    # engine
    "Model",
    "State",
    "Logger",
    "get_times",
    "simulate",
    # sweep / reporting
    "SweepResult",
    "grid_search",
    "to_dataframe",
    "survival_probability",
    "utils",
]
