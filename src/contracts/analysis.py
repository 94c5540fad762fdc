"""Analysis state of one alert as a tagged variant.

    Idle      no analysis stored, none requested
    InFlight  a call has been issued and has not settled yet
    Done      a result (success or sentinel error text) is stored
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class InFlight:
    pass


@dataclass(frozen=True, slots=True)
class Done:
    text: str
    is_error: bool = False


AnalysisState = Union[Idle, InFlight, Done]
