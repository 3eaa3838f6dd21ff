"""Outcomes of tasks as reported back to the scheduler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class Success:
    """The task finished normally."""


@dataclass(frozen=True)
class FetchFailed:
    """A reduce task could not fetch a map output from a server."""

    server_uri: str
    shuffle_id: int
    map_id: int
    reduce_id: int


@dataclass(frozen=True)
class TaskError:
    """The task raised an exception."""

    error: BaseException


@dataclass(frozen=True)
class OtherFailure:
    """The task failed for a reason given as text."""

    message: str


TaskEndReason = Union[Success, FetchFailed, TaskError, OtherFailure]


@dataclass
class CompletionEvent:
    """A finished task together with why it ended and what it returned."""

    task: Any
    reason: TaskEndReason
    result: Any = None
    accum_updates: dict[int, Any] = field(default_factory=dict)