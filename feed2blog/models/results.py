"""
Success / failure values returned by every external collaborator call.

Callers branch on ``isinstance(result, Err)`` instead of catching exceptions,
so each failure path is an explicit branch.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    reason: str


Result = Union[Ok[T], Err]
