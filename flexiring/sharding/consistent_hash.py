"""
Consistent Hash Ring: Weighted Target Placement

Implements consistent hashing with virtual positions:
- int(replicas * weight) positions per target
- Minimal reshuffling on target add/remove (~1/n keys moved)
- Ordered fallback lists for redundant writes

Positions come from an injected hash strategy applied to
target + str(replica_index), so two rings built with the same strategy,
replica count and targets agree on every placement, across processes and
across implementations.

Complexity:
- Lookup: O(log p) via bisect, plus O(p log p) index rebuild after a write
- Add/remove target: O(r) where r = replicas for that target
"""

from __future__ import annotations

import bisect
import threading
from typing import Any, Iterable, Optional

from flexiring.core import constants as C
from flexiring.core.config import RingConfig
from flexiring.core.errors import ConfigurationError, RingError
from flexiring.core.types import Err, Ok, Position, Result, Target
from flexiring.hashing import HashStrategy, crc32_hash, get_strategy
from flexiring.observability.logging import StructuredLogger
from flexiring.observability.metrics import MetricsCollector

logger = StructuredLogger(f"{C.LOGGER_NAME}.sharding")


class _SortedPositionIndex:
    """
    Memoized ascending view of the ring's positions.

    Invalidated on every write, rebuilt on the next read. The rebuild runs
    under its own lock so concurrent readers never observe a half-built
    list; each rebuild publishes a fresh list that is never mutated.
    """

    __slots__ = ("_positions", "_valid", "_lock")

    def __init__(self) -> None:
        self._positions: list[Position] = []
        self._valid = False
        self._lock = threading.Lock()

    def invalidate(self) -> None:
        self._valid = False

    @property
    def is_valid(self) -> bool:
        return self._valid

    def get(self, source: dict[Position, Target]) -> tuple[list[Position], bool]:
        """
        Return (sorted positions, rebuilt) for the current source map.
        """
        if self._valid:
            return self._positions, False

        with self._lock:
            if self._valid:
                return self._positions, False
            self._positions = sorted(source)
            self._valid = True
            return self._positions, True


class _RingMetrics:
    """Metric handles for one ring, resolved once from a collector."""

    __slots__ = ("mutations", "lookups", "errors", "rebuilds", "targets", "positions", "latency")

    def __init__(self, collector: MetricsCollector) -> None:
        self.mutations = collector.counter(
            "flexiring_mutations_total", ["op"], "Targets added or removed",
        )
        self.lookups = collector.counter(
            "flexiring_lookups_total", ["kind"], "Lookups served",
        )
        self.errors = collector.counter(
            "flexiring_errors_total", ["code"], "Contract failures returned to callers",
        )
        self.rebuilds = collector.counter(
            "flexiring_index_rebuilds_total", help_text="Sorted position index rebuilds",
        )
        self.targets = collector.gauge("flexiring_targets", help_text="Registered targets")
        self.positions = collector.gauge("flexiring_positions", help_text="Occupied positions")
        self.latency = collector.histogram(
            "flexiring_lookup_seconds", ["kind"], "Lookup latency",
        )


class ConsistentHashRing:
    """
    Consistent hash ring with weighted virtual positions.

    Contract failures are returned as Err(RingError); the ring is never
    left partially modified.

    Usage:
        ring = ConsistentHashRing()
        ring.add_targets(["cache-1", "cache-2", "cache-3"])
        ring.add_target("cache-4", weight=2.0)

        target = ring.lookup("object-a").unwrap()
        primary, fallback = ring.lookup_list("object-b", 2).unwrap()
    """

    __slots__ = (
        "_replicas", "_hasher", "_position_to_target",
        "_target_to_positions", "_index", "_metrics",
    )

    def __init__(
        self,
        hasher: Optional[HashStrategy] = None,
        replicas: Optional[int] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        """
        Args:
            hasher: Strategy mapping strings to positions (default: signed CRC32)
            replicas: Positions per unit of weight; None or 0 selects the
                default of 64
            metrics: Collector to record ring telemetry into, if any

        Raises:
            ValueError: If replicas is negative
        """
        if not replicas:
            replicas = C.DEFAULT_REPLICAS
        if replicas < 0:
            raise ValueError(f"replicas must not be negative, got {replicas}")

        self._replicas = replicas
        self._hasher: HashStrategy = crc32_hash if hasher is None else hasher
        self._position_to_target: dict[Position, Target] = {}
        self._target_to_positions: dict[Target, list[Position]] = {}
        self._index = _SortedPositionIndex()
        self._metrics = _RingMetrics(metrics) if metrics is not None else None

    @classmethod
    def from_config(
        cls,
        config: RingConfig,
        metrics: Optional[MetricsCollector] = None,
    ) -> Result[ConsistentHashRing, ConfigurationError]:
        """Build a ring from configuration, resolving the hasher by name."""
        if config.replicas < 1:
            return Err(ConfigurationError.invalid(
                f"replicas must be >= 1, got {config.replicas}"
            ))
        return get_strategy(config.hasher).map(
            lambda hasher: cls(hasher=hasher, replicas=config.replicas, metrics=metrics)
        )

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------
    def add_target(
        self,
        target: Target,
        weight: float = C.DEFAULT_WEIGHT,
    ) -> Result[None, RingError]:
        """
        Register target with int(replicas * weight) positions.

        A weight of 0 is taken as the default weight of 1.0.

        Returns:
            Ok(None), or Err(RingError) if target is already registered
        """
        if target in self._target_to_positions:
            return self._fail(RingError.duplicate_target(target))

        if weight == 0:
            weight = C.DEFAULT_WEIGHT

        replica_count = int(self._replicas * weight)
        # Hash everything first so a failing strategy leaves the ring untouched
        positions = [self._hasher(f"{target}{i}") for i in range(replica_count)]

        for position in positions:
            previous = self._position_to_target.get(position)
            if previous is not None and previous != target:
                logger.debug(
                    "Position collision, later target wins",
                    position=position, previous=previous, target=target,
                )
            self._position_to_target[position] = target

        self._target_to_positions[target] = positions
        self._index.invalidate()

        logger.debug("Target added", target=target, weight=weight, replicas=replica_count)
        self._record_mutation("add")
        return Ok(None)

    def add_targets(
        self,
        targets: Iterable[Target],
        weight: float = C.DEFAULT_WEIGHT,
    ) -> Result[None, RingError]:
        """
        Register several targets with the same weight.

        Stops at the first duplicate and returns its error. Targets added
        before the failure stay registered.
        """
        for target in targets:
            result = self.add_target(target, weight)
            if result.is_err():
                return result
        return Ok(None)

    def remove_target(self, target: Target) -> Result[None, RingError]:
        """
        Unregister target and release the positions it still owns.

        Positions that a later target overwrote stay with that target.
        """
        positions = self._target_to_positions.get(target)
        if positions is None:
            return self._fail(RingError.unknown_target(target))

        for position in positions:
            if self._position_to_target.get(position) == target:
                del self._position_to_target[position]

        del self._target_to_positions[target]
        self._index.invalidate()

        logger.debug("Target removed", target=target, positions=len(positions))
        self._record_mutation("remove")
        return Ok(None)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------
    def get_all_targets(self) -> list[Target]:
        """All registered targets, in registration order."""
        return list(self._target_to_positions)

    def lookup(self, resource: str) -> Result[Target, RingError]:
        """
        Find the target responsible for resource.

        Returns:
            Ok(target), or Err(RingError) when the ring has no positions
        """
        if self._metrics is None:
            return self._lookup(resource)
        with self._metrics.latency.time(kind="single"):
            self._metrics.lookups.inc(kind="single")
            return self._lookup(resource)

    def lookup_list(self, resource: str, count: int) -> Result[list[Target], RingError]:
        """
        Ordered, distinct targets for resource, in order of precedence.

        Walks count positions clockwise from the first position strictly
        greater than hash(resource), wrapping past the end, and keeps the
        first occurrence of each target. The result holds at most
        min(count, distinct targets) entries, fewer when the walked
        positions repeat a target; an empty ring yields [].
        """
        if self._metrics is None:
            return self._lookup_list(resource, count)
        with self._metrics.latency.time(kind="list"):
            self._metrics.lookups.inc(kind="list")
            return self._lookup_list(resource, count)

    def _lookup(self, resource: str) -> Result[Target, RingError]:
        if not self._position_to_target:
            return self._fail(RingError.no_targets(resource))

        result = self._lookup_list(resource, 1)
        if result.is_err():
            return result

        targets = result.unwrap()
        if not targets:
            return self._fail(RingError.no_targets(resource))
        return Ok(targets[0])

    def _lookup_list(self, resource: str, count: int) -> Result[list[Target], RingError]:
        if count < 1:
            return self._fail(RingError.invalid_count(count))

        if not self._position_to_target:
            return Ok([])

        # One target owns every position; no need to hash
        if len(self._target_to_positions) == 1:
            return Ok(list(dict.fromkeys(self._position_to_target.values())))

        positions = self._sorted_positions()
        size = len(positions)

        start = bisect.bisect_right(positions, self._hasher(resource))
        if start == size:
            start = 0  # wrap around to the lowest position

        # Walking more than one full turn only revisits targets already seen
        steps = min(count, size)
        visited = [
            self._position_to_target[positions[(start + step) % size]]
            for step in range(steps)
        ]
        return Ok(list(dict.fromkeys(visited)))

    def _sorted_positions(self) -> list[Position]:
        positions, rebuilt = self._index.get(self._position_to_target)
        if rebuilt:
            logger.debug("Position index rebuilt", positions=len(positions))
            if self._metrics is not None:
                self._metrics.rebuilds.inc()
        return positions

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------
    def positions_of(self, target: Target) -> Result[list[Position], RingError]:
        """
        Positions recorded for target when it was added.

        Includes positions later overwritten by a colliding target.
        """
        positions = self._target_to_positions.get(target)
        if positions is None:
            return self._fail(RingError.unknown_target(target))
        return Ok(list(positions))

    def get_balance_factor(self) -> float:
        """
        Ratio of most to least owned positions across targets.

        1.0 = perfectly balanced; inf when a target owns no position.
        """
        if len(self._target_to_positions) < 2:
            return 1.0

        counts: dict[Target, int] = {t: 0 for t in self._target_to_positions}
        for target in self._position_to_target.values():
            counts[target] += 1

        max_count = max(counts.values())
        min_count = min(counts.values())

        if min_count == 0:
            return float("inf")

        return max_count / min_count

    def get_stats(self) -> dict[str, Any]:
        """Get ring statistics."""
        return {
            "targets": self.target_count,
            "positions": self.position_count,
            "replicas": self._replicas,
            "balance_factor": self.get_balance_factor(),
            "index_valid": self._index.is_valid,
        }

    @property
    def replicas(self) -> int:
        return self._replicas

    @property
    def hasher(self) -> HashStrategy:
        return self._hasher

    @property
    def target_count(self) -> int:
        """Number of registered targets."""
        return len(self._target_to_positions)

    @property
    def position_count(self) -> int:
        """Number of occupied positions (collisions counted once)."""
        return len(self._position_to_target)

    def __len__(self) -> int:
        return len(self._target_to_positions)

    def __contains__(self, target: object) -> bool:
        return target in self._target_to_positions

    def __repr__(self) -> str:
        return (
            f"ConsistentHashRing(targets={self.target_count}, "
            f"positions={self.position_count}, replicas={self._replicas})"
        )

    # -------------------------------------------------------------------------
    # Telemetry
    # -------------------------------------------------------------------------
    def _fail(self, error: RingError) -> Err[RingError]:
        logger.debug("Ring operation rejected", code=error.code.name, **error.context)
        if self._metrics is not None:
            self._metrics.errors.inc(code=error.code.name)
        return Err(error)

    def _record_mutation(self, op: str) -> None:
        if self._metrics is None:
            return
        self._metrics.mutations.inc(op=op)
        self._metrics.targets.set(self.target_count)
        self._metrics.positions.set(self.position_count)
