"""In-memory cache of serialised partitions."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass

DEFAULT_MAX_MEGABYTES = 2000


class BoundedMemoryCache:
    """A cache of serialised partitions keyed by key space, dataset and partition.

    ``max_bytes`` is the largest entry accepted, in megabytes; the cache
    itself does not evict.
    """

    def __init__(self, max_bytes: int = DEFAULT_MAX_MEGABYTES) -> None:
        self.max_bytes = max_bytes
        self._key_space_ids = itertools.count()
        self._id_lock = threading.Lock()
        self._lock = threading.Lock()
        self._entries: dict[tuple[tuple[int, int], int], tuple[bytes, int]] = {}

    def new_key_space(self) -> KeySpace:
        """Return a view of the cache under a fresh key-space id."""
        with self._id_lock:
            key_space_id = next(self._key_space_ids)
        return KeySpace(self, key_space_id)

    def get(self, dataset_id: tuple[int, int], partition: int) -> bytes | None:
        """Return the stored bytes, or ``None`` if nothing is cached."""
        with self._lock:
            entry = self._entries.get((dataset_id, partition))
        return None if entry is None else entry[0]

    def put(self, dataset_id: tuple[int, int], partition: int, value: bytes) -> int | None:
        """Store ``value`` and return its estimated size, or ``None`` if it is too large."""
        size = len(value) * 8 + 2 * 8
        if size / (1000.0 * 1000.0) > self.max_bytes:
            return None
        with self._lock:
            self._entries[(dataset_id, partition)] = (bytes(value), size)
        return size


@dataclass(frozen=True)
class KeySpace:
    """A cache view that prefixes every dataset id with its own key-space id."""

    cache: BoundedMemoryCache
    key_space_id: int

    def get(self, dataset_id: int, partition: int) -> bytes | None:
        return self.cache.get((self.key_space_id, dataset_id), partition)

    def put(self, dataset_id: int, partition: int, value: bytes) -> int | None:
        return self.cache.put((self.key_space_id, dataset_id), partition, value)

    @property
    def capacity(self) -> int:
        """The cache's limit in megabytes."""
        return self.cache.max_bytes