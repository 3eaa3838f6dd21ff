"""Tracking of which hosts hold which cached partitions.

The master runs a small TCP server that keeps the cluster-wide view; every
node, the master included, talks to it as a client.
"""

from __future__ import annotations

import logging
import pickle
import socket
import socketserver
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Protocol

from .cache import BoundedMemoryCache
from .wire import read_message, write_message

logger = logging.getLogger(__name__)

_RETRY_DELAY = 0.01


@dataclass(frozen=True)
class AddedToCache:
    """A partition was stored in the cache of ``host``."""

    rdd_id: int
    partition: int
    host: str
    size: int


@dataclass(frozen=True)
class DroppedFromCache:
    """A partition was removed from the cache of ``host``."""

    rdd_id: int
    partition: int
    host: str
    size: int


@dataclass(frozen=True)
class MemoryCacheLost:
    """The whole cache of ``host`` is gone."""

    host: str


@dataclass(frozen=True)
class RegisterRdd:
    """A dataset with ``num_partitions`` partitions may now be cached."""

    rdd_id: int
    num_partitions: int


@dataclass(frozen=True)
class SlaveCacheStarted:
    """A node started a cache able to hold ``size`` megabytes."""

    host: str
    size: int


@dataclass(frozen=True)
class GetCacheStatus:
    """Ask for ``(host, capacity, usage)`` of every known node."""


@dataclass(frozen=True)
class GetCacheLocations:
    """Ask for the hosts holding each partition of each registered dataset."""


@dataclass(frozen=True)
class StopCacheTracker:
    """Ask the tracker to stop."""


class CacheTrackerState:
    """The master's view of the cluster caches."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.locs: dict[int, list[list[str]]] = {}
        self.slave_capacity: dict[str, int] = {}
        self.slave_usage: dict[str, int] = {}

    def cache_usage(self, host: str) -> int:
        """Bytes used by the cache of ``host``; 0 if unknown."""
        with self._lock:
            return self.slave_usage.get(host, 0)

    def cache_capacity(self, host: str) -> int:
        """Capacity of the cache of ``host``; 0 if unknown."""
        with self._lock:
            return self.slave_capacity.get(host, 0)

    def handle(self, message: Any) -> Any:
        """Apply ``message`` and return the reply.

        Location requests get a ``dict``, status requests a ``list`` of
        ``(host, capacity, usage)``; every other message gets ``None``.
        Raises ``KeyError`` or ``IndexError`` when a dropped partition was
        never registered.
        """
        with self._lock:
            match message:
                case SlaveCacheStarted(host=host, size=size):
                    self.slave_capacity[host] = size
                    self.slave_usage[host] = 0
                case RegisterRdd(rdd_id=rdd_id, num_partitions=num_partitions):
                    self.locs[rdd_id] = [[] for _ in range(num_partitions)]
                case AddedToCache(rdd_id=rdd_id, partition=partition, host=host, size=size):
                    if size > 0:
                        self.slave_usage[host] = self.cache_usage(host) + size
                    partitions = self.locs.get(rdd_id)
                    if partitions is not None and 0 <= partition < len(partitions):
                        partitions[partition].insert(0, host)
                case DroppedFromCache(rdd_id=rdd_id, partition=partition, host=host, size=size):
                    if size > 0:
                        self.slave_usage[host] = self.cache_usage(host) - size
                    if partition < 0:
                        raise IndexError(partition)
                    hosts = self.locs[rdd_id][partition]
                    self.locs[rdd_id][partition] = [h for h in hosts if h == host]
                case GetCacheLocations():
                    return {
                        rdd_id: [list(hosts) for hosts in partitions]
                        for rdd_id, partitions in self.locs.items()
                    }
                case GetCacheStatus():
                    return [
                        (host, capacity, self.cache_usage(host))
                        for host, capacity in self.slave_capacity.items()
                    ]
            return None


class _TrackerServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, address: tuple[str, int], state: CacheTrackerState) -> None:
        self.state = state
        super().__init__(address, _TrackerHandler)


class _TrackerHandler(socketserver.BaseRequestHandler):
    server: _TrackerServer

    def handle(self) -> None:
        try:
            message = read_message(self.request)
        except (EOFError, OSError, pickle.UnpicklingError):
            return
        reply = self.server.state.handle(message)
        write_message(self.request, reply)


class _Rdd(Protocol):
    rdd_id: int

    def compute(self, split: Any) -> Any: ...


class _Split(Protocol):
    index: int


class CacheTracker:
    """A node's handle on the cluster cache tracker.

    On the master it also serves the tracker on the port after
    ``master_addr``'s.  Usable as a context manager.
    """

    def __init__(
        self,
        is_master: bool,
        master_addr: tuple[str, int],
        cache: BoundedMemoryCache,
        local_ip: str,
    ) -> None:
        self.is_master = is_master
        host, port = master_addr
        self.master_addr = (host, port + 1)
        self.local_ip = local_ip
        self.cache = cache.new_key_space()
        self._state = CacheTrackerState()
        self._registered_rdd_ids: set[int] = set()
        self._registered_lock = threading.Lock()
        self._loading: set[tuple[int, int]] = set()
        self._loading_cond = threading.Condition()
        self._server: _TrackerServer | None = None
        self._server_thread: threading.Thread | None = None
        if is_master:
            self._serve()
        self._client(SlaveCacheStarted(host=local_ip, size=self.cache.capacity))

    def _serve(self) -> None:
        self._server = _TrackerServer(self.master_addr, self._state)
        self._server_thread = threading.Thread(
            target=self._server.serve_forever, name="cache-tracker", daemon=True
        )
        self._server_thread.start()

    def _client(self, message: Any) -> Any:
        while True:
            try:
                conn = socket.create_connection(self.master_addr)
            except OSError:
                time.sleep(_RETRY_DELAY)
                continue
            with conn:
                write_message(conn, message)
                return read_message(conn)

    def register_rdd(self, rdd_id: int, num_partitions: int) -> None:
        """Register a dataset with the master once."""
        with self._registered_lock:
            if rdd_id in self._registered_rdd_ids:
                return
            self._registered_rdd_ids.add(rdd_id)
        self._client(RegisterRdd(rdd_id=rdd_id, num_partitions=num_partitions))

    def get_location_snapshot(self) -> dict[int, list[list[str]]]:
        """Return, for each registered dataset, the hosts caching each partition."""
        reply = self._client(GetCacheLocations())
        if not isinstance(reply, dict):
            raise TypeError("wrong type from cache tracker")
        return reply

    def get_cache_status(self) -> list[tuple[str, int, int]]:
        """Return ``(host, capacity, usage)`` for every node known to the master."""
        reply = self._client(GetCacheStatus())
        if not isinstance(reply, list):
            raise TypeError("wrong type from cache tracker")
        return reply

    def get_or_compute(self, rdd: _Rdd, split: _Split) -> Iterator[Any]:
        """Return the partition's elements from the cache, computing them if absent.

        Concurrent requests for the same partition wait for the first one.
        A newly cached partition is reported to the master.
        """
        rdd_id, index = rdd.rdd_id, split.index
        cached = self.cache.get(rdd_id, index)
        if cached is not None:
            return iter(pickle.loads(cached))

        key = (rdd_id, index)
        with self._loading_cond:
            self._loading_cond.wait_for(lambda: key not in self._loading)
            cached = self.cache.get(rdd_id, index)
            if cached is not None:
                return iter(pickle.loads(cached))
            self._loading.add(key)

        try:
            result = list(rdd.compute(split))
            size = self.cache.put(
                rdd_id, index, pickle.dumps(result, protocol=pickle.HIGHEST_PROTOCOL)
            )
        finally:
            with self._loading_cond:
                self._loading.discard(key)
                self._loading_cond.notify_all()

        if size is not None:
            self._client(
                AddedToCache(rdd_id=rdd_id, partition=index, host=self.local_ip, size=size)
            )
        return iter(result)

    def close(self) -> None:
        """Stop the tracker server if this node runs one."""
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._server_thread is not None:
            self._server_thread.join()
            self._server_thread = None

    def __enter__(self) -> CacheTracker:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


_ComputeFn = Callable[[Any], Any]