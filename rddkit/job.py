"""Jobs submitted to the scheduler."""

from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering


@total_ordering
@dataclass(eq=False)
class Job:
    """A job; jobs compare by ``job_id`` only and sort in descending order."""

    run_id: int
    job_id: int

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Job):
            return NotImplemented
        return other.job_id < self.job_id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Job):
            return NotImplemented
        return self.job_id == other.job_id

    def __hash__(self) -> int:
        return hash(self.job_id)