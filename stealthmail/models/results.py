"""Tagged results returned by the upstream clients.

``Ok`` carries live data, ``Fallback`` carries placeholder data together with
the reason the live backend was bypassed, and ``Err`` carries no data at all.
Callers branch on ``success`` for the envelope and on the concrete type when
they need to tell real data from placeholders.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union


T = TypeVar("T")


class ErrorKind(str, Enum):
    INPUT = "input"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"


@dataclass(frozen=True)
class Ok(Generic[T]):
    data: T

    success = True
    source = "live"


@dataclass(frozen=True)
class Fallback(Generic[T]):
    data: T
    reason: str

    success = True
    source = "fallback"


@dataclass(frozen=True)
class Err:
    reason: str
    kind: ErrorKind = ErrorKind.UPSTREAM

    success = False
    source = None


Result = Union[Ok[T], Fallback[T], Err]
