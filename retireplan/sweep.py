"""
Parameter sweep ("grid search") for retireplan.

Purpose
-------
Expands a configuration whose stage keyword groups contain list-valued
leaves into the Cartesian product of scenarios, filters the product with
yoking constraints, and simulates every surviving combination.

Algorithm
---------
1. Split the configuration into fixed inputs (scenario fields, stage
   callables) and ``kw_*`` keyword groups.
2. Within each group, take the product over list-valued leaves only and
   merge the scalar leaves back in.
3. Take the product across groups.
4. Keep a combination only if every yoked pair resolves to equal values.
5. For each survivor, build a fresh Model from a deep-copied snapshot of
   the configuration, size a Logger from ``get_times`` and simulate.

Lists are sweep dimensions; tuples and every other value are held fixed.
Each combination receives its own generator spawned from one root
SeedSequence, so sequential and parallel runs give identical results.

Example
-------
>>> from scipy.stats import norm
>>> from retireplan import Model, Logger, Transaction, grid_search
>>> config = {
...     "dt": 1 / 12, "start_age": 30.0, "duration": 55.0, "start_amount": 10_000.0,
...     "kw_withdraw": {"withdraws": [Transaction(65, amount=norm(3000, 1000)),
...                                   Transaction(67, amount=norm(3000, 1000))]},
...     "kw_invest": {"investments": [Transaction(30, 65, norm(1000, 100)),
...                                   Transaction(30, 67, norm(1000, 100))]},
... }
>>> yoked = [(("kw_withdraw", "withdraws", "start_age"), ("kw_invest", "investments", "end_age"))]
>>> results = grid_search(Model, Logger, 200, config, yoked_values=yoked, seed=1)
>>> len(results)
2
"""

from __future__ import annotations

import copy
import itertools
import logging
import os
import warnings
from collections.abc import Mapping, Sequence
from concurrent.futures import ProcessPoolExecutor
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple

import numpy as np
import pydantic

from .config import SweepConfig
from .exceptions import ConfigurationError, YokeError
from .simulation import get_times, simulate
from .types import ParamKey, YokedPair, YokePath

__all__ = [
    "SweepResult",
    "grid_search",
    "separate_inputs",
    "permute",
    "make_combinations",
    "get_value",
    "get_var_params",
    "validate_yokes",
]

_log = logging.getLogger(__name__)


class SweepResult(NamedTuple):
    """One simulated combination: swept parameter values and the filled logger."""

    params: List[Tuple[ParamKey, Any]]
    logger: Any


# ---------------------------------------------------------------------------
# Combinatorics
# ---------------------------------------------------------------------------

def separate_inputs(config: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Dict[str, Any]]]:
    """
    Split *config* into fixed inputs and ``kw_*`` keyword groups.

    Raises
    ------
    ConfigurationError
        If a keyword group is not a mapping.
    """
    fixed: Dict[str, Any] = {}
    groups: Dict[str, Dict[str, Any]] = {}
    for key, value in config.items():
        if key.startswith("kw_"):
            if not isinstance(value, Mapping):
                raise ConfigurationError(
                    f"{key} must be a mapping of keyword arguments, got {type(value).__name__}"
                )
            groups[key] = dict(value)
        else:
            fixed[key] = value
    return fixed, groups


def permute(group: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """
    Product over the list-valued leaves of one group, scalars merged back in.

    >>> permute({"a": [1, 2], "b": (3, 4), "c": 5})
    [{'a': 1, 'b': (3, 4), 'c': 5}, {'a': 2, 'b': (3, 4), 'c': 5}]
    """
    swept = [k for k, v in group.items() if isinstance(v, list)]
    if not swept:
        return [dict(group)]
    combos = []
    for values in itertools.product(*(group[k] for k in swept)):
        combo = dict(group)
        combo.update(zip(swept, values))
        combos.append(combo)
    return combos


def get_value(combination: Any, path: YokePath) -> Any:
    """
    Resolve *path* inside a combination.

    Each path element indexes a mapping key, a sequence position (int),
    or an attribute name, in that order of preference.

    >>> get_value({"kw_invest": {"investments": [10, 20]}}, ("kw_invest", "investments", 1))
    20
    """
    obj = combination
    for element in path:
        if isinstance(obj, Mapping):
            obj = obj[element]
        elif isinstance(element, int) and isinstance(obj, Sequence):
            obj = obj[element]
        else:
            obj = getattr(obj, element)
    return obj


def _matches(combination: Mapping[str, Any], yoked_values: Iterable[YokedPair]) -> bool:
    return all(get_value(combination, a) == get_value(combination, b) for a, b in yoked_values)


def validate_yokes(groups: Mapping[str, Mapping[str, Any]], yoked_values: Iterable[YokedPair]) -> None:
    """
    Check every yoked path resolves against the configuration.

    Raises
    ------
    YokeError
        If a pair is malformed, or a path names a missing group, key or
        nested element.
    """
    sample = {g: permute(v)[0] for g, v in groups.items()}
    for pair in yoked_values:
        if not (isinstance(pair, Sequence) and len(pair) == 2):
            raise YokeError(f"Yoked value {pair!r} must be a pair of paths")
        for path in pair:
            if not isinstance(path, Sequence) or isinstance(path, str) or len(path) < 2:
                raise YokeError(f"Yoked path {path!r} must be (group, key, ...)")
            group, key = path[0], path[1]
            if group not in groups:
                raise YokeError(
                    f"Yoked path {tuple(path)!r} does not exist: no group {group!r}. "
                    f"Groups: {sorted(groups)}."
                )
            if key not in groups[group]:
                raise YokeError(
                    f"Yoked path {tuple(path)!r} does not exist: group {group!r} "
                    f"has keys {sorted(groups[group])}."
                )
            try:
                get_value(sample, path)
            except (KeyError, IndexError, AttributeError, TypeError) as e:
                raise YokeError(f"Yoked path {tuple(path)!r} cannot be resolved: {e}") from e


def make_combinations(
    groups: Mapping[str, Mapping[str, Any]],
    yoked_values: Iterable[YokedPair] = (),
) -> List[Dict[str, Dict[str, Any]]]:
    """
    Filtered Cartesian product of all keyword groups.

    Parameters
    ----------
    groups : mapping
        ``{group_name: {key: value_or_list}}``.
    yoked_values : iterable of pairs
        Paths that must resolve to equal values.

    Returns
    -------
    list of dict
        One ``{group_name: {key: value}}`` per surviving combination, in
        ``itertools.product`` order of the groups and their list leaves.
    """
    yoked_values = list(yoked_values)
    names = list(groups)
    per_group = [permute(groups[name]) for name in names]
    combos = [dict(zip(names, choice)) for choice in itertools.product(*per_group)]
    return [c for c in combos if _matches(c, yoked_values)]


def get_var_params(groups: Mapping[str, Mapping[str, Any]]) -> List[ParamKey]:
    """``(group, key)`` of every list-valued leaf."""
    return [
        (group, key)
        for group, kw in groups.items()
        for key, value in kw.items()
        if isinstance(value, list)
    ]


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

def _resolve_max_workers(max_workers: Optional[int], n_tasks: int) -> int:
    """Bound pool size by the requested maximum, the task count and the CPU count."""
    if n_tasks <= 1:
        return 1
    if max_workers is None:
        return max(1, min(n_tasks, os.cpu_count() or 1))
    return max(1, min(max_workers, n_tasks))


def _run_combination(args) -> SweepResult:
    """Build, size and simulate one combination (module level so workers can pickle it)."""
    model_type, logger_type, n_reps, fixed, combination, var_params, seed_seq = args
    inputs = copy.deepcopy({**fixed, **combination})
    model = model_type(**inputs, rng=np.random.default_rng(seed_seq))
    logger = logger_type(n_steps=len(get_times(model)), n_reps=n_reps)
    simulate(model, logger, n_reps)
    params = [((g, k), combination[g][k]) for g, k in var_params]
    return SweepResult(params, logger)


def grid_search(
    model_type,
    logger_type,
    n_reps: int,
    config: Mapping[str, Any],
    *,
    yoked_values: Iterable[YokedPair] = (),
    parallel: bool = False,
    max_workers: Optional[int] = None,
    show_progress: bool = False,
    seed: Optional[int] = None,
) -> List[SweepResult]:
    """
    Simulate every combination of the list-valued leaves in *config*.

    Parameters
    ----------
    model_type : type
        Model class; called as ``model_type(**fixed, **groups, rng=...)``.
    logger_type : type
        Logger class; called as ``logger_type(n_steps=..., n_reps=...)``.
    n_reps : int
        Repetitions per combination.
    config : mapping
        Scenario fields, stage callables and ``kw_*`` groups whose leaves
        may be lists (swept) or any other value (fixed).
    yoked_values : iterable of pairs, optional
        ``((group, key, ...), (group, key, ...))`` pairs that must be equal.
    parallel : bool, default False
        Run combinations in a ProcessPoolExecutor.
    max_workers : int, optional
        Pool size (defaults to the CPU count, bounded by the task count).
    show_progress : bool, default False
        Display a rich progress bar.
    seed : int, optional
        Root seed. Falls back to ``config["seed"]``, then to fresh entropy.

    Returns
    -------
    list of SweepResult
        One ``(params, logger)`` per surviving combination, where params
        is ``[((group, key), value), ...]`` over the swept leaves.

    Raises
    ------
    YokeError
        If a yoked path does not exist (raised before any simulation).
    ConfigurationError
        If the configuration cannot build a Model or the execution
        options fail SweepConfig validation.
    """
    fixed, groups = separate_inputs(config)
    root_seed = fixed.pop("seed", None) if seed is None else seed
    fixed.pop("seed", None)
    fixed.pop("rng", None)
    try:
        options = SweepConfig(
            n_reps=n_reps, parallel=parallel, max_workers=max_workers,
            show_progress=show_progress, seed=root_seed,
        )
    except pydantic.ValidationError as e:
        raise ConfigurationError(f"Invalid sweep options: {e}") from e

    yoked_values = [tuple(tuple(path) for path in pair) for pair in yoked_values]
    validate_yokes(groups, yoked_values)
    combinations = make_combinations(groups, yoked_values)
    var_params = get_var_params(groups)

    if not combinations:
        warnings.warn(
            "No parameter combination satisfies the yoking constraints; "
            "grid_search returns no results.",
            UserWarning,
        )
        return []

    seeds = np.random.SeedSequence(options.seed).spawn(len(combinations))
    tasks = [
        (model_type, logger_type, options.n_reps, fixed, combo, var_params, s)
        for combo, s in zip(combinations, seeds)
    ]
    _log.info("grid_search: %d combinations x %d repetitions", len(tasks), options.n_reps)

    if options.parallel:
        workers = _resolve_max_workers(options.max_workers, len(tasks))
        with ProcessPoolExecutor(max_workers=workers) as pool:
            return _collect(pool.map(_run_combination, tasks), len(tasks), options.show_progress)
    return _collect(map(_run_combination, tasks), len(tasks), options.show_progress)


def _collect(results: Iterable[SweepResult], total: int, show_progress: bool) -> List[SweepResult]:
    if not show_progress:
        return list(results)
    from rich.progress import track

    return list(track(results, total=total, description="Simulating combinations"))
