"""Dependencies between datasets: narrow one-to-one links and shuffles."""

from __future__ import annotations

import logging
import pickle
from functools import total_ordering
from typing import Any, Hashable, Iterable, MutableMapping, Protocol

from .aggregator import Aggregator

logger = logging.getLogger(__name__)


class _Partitioner(Protocol):
    num_partitions: int

    def get_partition(self, key: Hashable) -> int: ...


class _RddBase(Protocol):
    def splits(self) -> list[Any]: ...

    def iterator_any(self, split: Any) -> Iterable[Any]: ...

    def cogroup_iterator_any(self, split: Any) -> Iterable[Any]: ...


class OneToOneDependency:
    """Each partition of the child depends on the same partition of the parent."""

    is_shuffle = False

    def __init__(self, rdd_base: Any) -> None:
        self.rdd_base = rdd_base

    def get_parents(self, partition_id: int) -> list[int]:
        return [partition_id]


@total_ordering
class ShuffleDependency:
    """A dependency that redistributes ``(key, value)`` pairs by key.

    Shuffle dependencies compare, sort and hash by ``shuffle_id``.
    """

    is_shuffle = True

    def __init__(
        self,
        shuffle_id: int,
        is_cogroup: bool,
        rdd_base: Any,
        aggregator: Aggregator,
        partitioner: Any,
    ) -> None:
        self.shuffle_id = shuffle_id
        self.is_cogroup = is_cogroup
        self.rdd_base = rdd_base
        self.aggregator = aggregator
        self.partitioner = partitioner

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ShuffleDependency):
            return NotImplemented
        return self.shuffle_id < other.shuffle_id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ShuffleDependency):
            return NotImplemented
        return self.shuffle_id == other.shuffle_id

    def __hash__(self) -> int:
        return hash(self.shuffle_id)

    def __repr__(self) -> str:
        return f"ShuffleDependency(shuffle_id={self.shuffle_id}, is_cogroup={self.is_cogroup})"

    def do_shuffle_task(
        self,
        rdd_base: _RddBase,
        partition: int,
        shuffle_cache: MutableMapping[tuple[int, int, int], bytes],
        server_uri: str,
    ) -> str:
        """Combine one input partition into per-output buckets.

        Each bucket is pickled as a list of ``(key, combiner)`` pairs and
        stored in ``shuffle_cache`` under ``(shuffle_id, partition, bucket)``.
        Returns ``server_uri``, where the buckets can be fetched from.
        """
        logger.info("doing shuffle_task for partition %s", partition)
        split = rdd_base.splits()[partition]
        partitioner: _Partitioner = self.partitioner
        num_output_splits = partitioner.num_partitions
        logger.info("is cogroup rdd %s", self.is_cogroup)
        logger.info("num of output splits %s", num_output_splits)

        buckets: list[dict[Hashable, Any]] = [{} for _ in range(num_output_splits)]
        items = (
            rdd_base.cogroup_iterator_any(split)
            if self.is_cogroup
            else rdd_base.iterator_any(split)
        )
        for key, value in items:
            bucket = buckets[partitioner.get_partition(key)]
            if key in bucket:
                bucket[key] = self.aggregator.merge_value(bucket[key], value)
            else:
                bucket[key] = self.aggregator.create_combiner(value)

        for index, bucket in enumerate(buckets):
            pairs = list(bucket.items())
            logger.info(
                "shuffle map task output %s for shuffle id %s, partition %s, bucket %s",
                pairs[:1],
                self.shuffle_id,
                partition,
                index,
            )
            shuffle_cache[(self.shuffle_id, partition, index)] = pickle.dumps(
                pairs, protocol=pickle.HIGHEST_PROTOCOL
            )
        return server_uri