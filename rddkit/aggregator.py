"""Combining functions used by shuffle tasks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

V = TypeVar("V")
C = TypeVar("C")


@dataclass(frozen=True)
class Aggregator(Generic[V, C]):
    """How values for one key are folded into a combiner during a shuffle.

    ``create_combiner(v)`` starts a combiner from the first value,
    ``merge_value(c, v)`` adds a further value and
    ``merge_combiners(c1, c2)`` joins two partial combiners.
    """

    create_combiner: Callable[[V], C]
    merge_value: Callable[[C, V], C]
    merge_combiners: Callable[[C, C], C]