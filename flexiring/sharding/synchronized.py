"""
Synchronized Ring: Shared Access from Many Threads

ConsistentHashRing is a plain in-memory structure. When several threads
share one ring, SynchronizedRing serializes writers against readers:

- add/remove take the exclusive (write) side
- lookups and introspection take the shared (read) side

Writers are preferred: once a writer waits, new readers queue behind it,
so a steady lookup load cannot starve topology changes.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional

from flexiring.core import constants as C
from flexiring.core.errors import RingError
from flexiring.core.types import Position, Result, Target
from flexiring.hashing import HashStrategy
from flexiring.observability.metrics import MetricsCollector
from flexiring.sharding.consistent_hash import ConsistentHashRing


class ReadWriteLock:
    """
    Many-readers / one-writer lock with writer preference.

    Not reentrant: a thread holding either side must not acquire again.
    """

    __slots__ = ("_cond", "_readers", "_writer", "_writers_waiting")

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    @property
    def readers(self) -> int:
        return self._readers


class SynchronizedRing:
    """
    Thread-safe facade over a ConsistentHashRing.

    Exposes the same call surface; every call is guarded by a
    ReadWriteLock.

    Usage:
        ring = SynchronizedRing(replicas=128)
        ring.add_targets(["shard-a", "shard-b"])

        # from any thread
        shard = ring.lookup(key).unwrap()
    """

    __slots__ = ("_ring", "_lock")

    def __init__(
        self,
        hasher: Optional[HashStrategy] = None,
        replicas: Optional[int] = None,
        metrics: Optional[MetricsCollector] = None,
        ring: Optional[ConsistentHashRing] = None,
    ) -> None:
        """
        Args:
            ring: Existing ring to wrap; the caller must stop using it
                directly. When given, hasher/replicas/metrics are ignored.
        """
        self._ring = ring if ring is not None else ConsistentHashRing(
            hasher=hasher, replicas=replicas, metrics=metrics,
        )
        self._lock = ReadWriteLock()

    def add_target(
        self,
        target: Target,
        weight: float = C.DEFAULT_WEIGHT,
    ) -> Result[None, RingError]:
        with self._lock.write_locked():
            return self._ring.add_target(target, weight)

    def add_targets(
        self,
        targets: Iterable[Target],
        weight: float = C.DEFAULT_WEIGHT,
    ) -> Result[None, RingError]:
        # Materialize outside the lock; the iterable may be lazy
        targets = list(targets)
        with self._lock.write_locked():
            return self._ring.add_targets(targets, weight)

    def remove_target(self, target: Target) -> Result[None, RingError]:
        with self._lock.write_locked():
            return self._ring.remove_target(target)

    def get_all_targets(self) -> list[Target]:
        with self._lock.read_locked():
            return self._ring.get_all_targets()

    def lookup(self, resource: str) -> Result[Target, RingError]:
        with self._lock.read_locked():
            return self._ring.lookup(resource)

    def lookup_list(self, resource: str, count: int) -> Result[list[Target], RingError]:
        with self._lock.read_locked():
            return self._ring.lookup_list(resource, count)

    def positions_of(self, target: Target) -> Result[list[Position], RingError]:
        with self._lock.read_locked():
            return self._ring.positions_of(target)

    def get_stats(self) -> dict[str, Any]:
        with self._lock.read_locked():
            return self._ring.get_stats()

    @property
    def target_count(self) -> int:
        with self._lock.read_locked():
            return self._ring.target_count

    @property
    def position_count(self) -> int:
        with self._lock.read_locked():
            return self._ring.position_count

    @property
    def replicas(self) -> int:
        return self._ring.replicas

    def __len__(self) -> int:
        return self.target_count

    def __contains__(self, target: object) -> bool:
        with self._lock.read_locked():
            return target in self._ring

    def __repr__(self) -> str:
        return f"SynchronizedRing({self._ring!r})"
