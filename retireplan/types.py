"""
Type definitions for retireplan.

Purpose
-------
Provides type aliases and TypedDict definitions for the structures passed
between the simulation engine, the stage functions and the sweep engine.

Usage
-----
>>> from retireplan.types import ScenarioDict, YokedPair
>>>
>>> scenario: ScenarioDict = {
...     "dt": 1 / 12, "duration": 55.0, "start_age": 30.0, "start_amount": 10_000.0,
... }
>>> pair: YokedPair = (("kw_withdraw", "start_age"), ("kw_invest", "end_age"))

Type Definitions
----------------
StageFunction
    Pipeline stage callable: ``fn(model, t, **kw) -> None``

LogFunction
    Log stage callable: ``fn(model, logger, step, rep, t, **kw) -> None``

YokePath / YokedPair
    Address of a sweep leaf and a pair of addresses constrained equal

RecessionSpec
    Recession windows accepted by growth processes

ScenarioDict
    Required scenario fields for Model.from_config
"""

from typing import Any, Callable, Hashable, Mapping, Optional, Sequence, Tuple, Union

from typing_extensions import NotRequired, TypedDict

__all__ = [
    "StageFunction",
    "LogFunction",
    "YokePath",
    "YokedPair",
    "ParamKey",
    "RecessionSpec",
    "ScenarioDict",
]


StageFunction = Callable[..., None]
"""``fn(model, t, **kw)``; mutates ``model.state`` in place."""

LogFunction = Callable[..., None]
"""``fn(model, logger, step, rep, t, **kw)``; writes into the logger."""

YokePath = Tuple[Hashable, ...]
"""``(group, key, *rest)``; rest elements are mapping keys, indices or attribute names."""

YokedPair = Tuple[YokePath, YokePath]
"""Two leaves that must hold equal values in a surviving combination."""

ParamKey = Tuple[str, str]
"""``(group, key)`` identifying a swept leaf."""

RecessionSpec = Optional[Union[Mapping[float, float], Any, Sequence[Any]]]
"""None, ``{start_age: duration}``, or one or more Transaction windows."""


class ScenarioDict(TypedDict):
    """
    Scenario mapping accepted by Model.from_config.

    Stage callables and ``kw_*`` keyword groups may be supplied alongside
    the required fields.
    """
    dt: float
    duration: float
    start_age: float
    start_amount: float
    log_times: NotRequired[Sequence[float]]
    seed: NotRequired[int]
