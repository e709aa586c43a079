"""
Custom exceptions for retireplan.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across all retireplan modules. All exceptions inherit from RetirePlanError,
enabling catch-all handling when needed.

Exception Hierarchy
-------------------
RetirePlanError (base)
├── ConfigurationError - Invalid or missing scenario configuration
│   └── YokeError - Yoked sweep field refers to a non-existent leaf
├── ValidationError - Data validation failures
└── SimulationError - Non-finite state produced during a repetition

Usage
-----
>>> from retireplan.exceptions import ConfigurationError, RetirePlanError
>>>
>>> # Raise specific exception
>>> raise ConfigurationError("dt must be positive, got -1")
>>>
>>> # Catch all retireplan exceptions
>>> try:
...     simulate(model, logger, 1000)
... except RetirePlanError as e:
...     print(f"retireplan error: {e}")
"""

__all__ = [
    "RetirePlanError",
    "ConfigurationError",
    "YokeError",
    "ValidationError",
    "SimulationError",
]


class RetirePlanError(Exception):
    """
    Base exception for all retireplan errors.

    Examples
    --------
    >>> try:
    ...     results = grid_search(Model, Logger, 500, config)
    ... except RetirePlanError as e:
    ...     logger.error(f"Sweep failed: {e}")
    """
    pass


class ConfigurationError(RetirePlanError):
    """
    Invalid configuration or parameters.

    Raised at construction time, never from inside the simulation loop:
    - A required scenario field (dt, duration, start_age, start_amount) is missing
    - A scenario value is out of range (dt <= 0, duration < dt, ...)
    - An unknown stage keyword group is passed to Model

    Examples
    --------
    >>> raise ConfigurationError(
    ...     "Model is missing required field 'start_age'. "
    ...     "Required fields: dt, duration, start_age, start_amount."
    ... )
    """
    pass


class YokeError(ConfigurationError):
    """
    Yoked sweep fields that cannot be resolved.

    Raised by grid_search before any simulation runs when a yoked pair
    names a group or key absent from the sweep configuration, or is not
    a pair of paths.

    Examples
    --------
    >>> raise YokeError(
    ...     "Yoked path ('kw_withdraw', 'start') does not exist: "
    ...     "group 'kw_withdraw' has keys ['withdraws']."
    ... )
    """
    pass


class ValidationError(RetirePlanError):
    """
    Data validation failures.

    Raised when input data fails validation checks, such as:
    - Logger arrays whose shape does not match the model's time grid
    - Price series that are too short or not strictly positive

    Examples
    --------
    >>> raise ValidationError(
    ...     f"Logger has {logger.n_steps} steps but the model has {n_steps}."
    ... )
    """
    pass


class SimulationError(RetirePlanError):
    """
    Numerical degeneracy during a repetition.

    Raised when net worth, interest rate or inflation rate becomes
    non-finite. The whole simulate call aborts; repetitions are never
    skipped or retried.

    Examples
    --------
    >>> raise SimulationError(
    ...     f"Non-finite net_worth (nan) in repetition {rep} at t={t:.4f}."
    ... )
    """
    pass
