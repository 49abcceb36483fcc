"""
Distribution Analysis: How Keys Spread Over a Ring

Measures the two properties consistent hashing promises:
- balance: each target's share of keys tracks its weight
- stability: a topology change moves only ~1/n of the keys

Statistics are computed with numpy over per-target key counts.

Usage:
    keys = sample_keys(10_000)
    before = placement(ring, keys)
    print(key_distribution(ring, keys).summary())

    ring.remove_target("cache-3")
    report = measure_disruption(before, placement(ring, keys))
    print(f"moved {report.fraction:.1%}")
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Protocol

import numpy as np

from flexiring.core import constants as C
from flexiring.core.errors import RingError
from flexiring.core.types import Result, Target


class SupportsLookup(Protocol):
    """Anything that places keys: ConsistentHashRing or SynchronizedRing."""

    def lookup(self, resource: str) -> Result[Target, RingError]: ...

    def get_all_targets(self) -> list[Target]: ...


def sample_keys(count: int = C.DEFAULT_SAMPLE_KEYS, fmt: str = C.SAMPLE_KEY_FORMAT) -> list[str]:
    """Deterministic synthetic keys: object-0, object-1, ..."""
    return [fmt.format(i) for i in range(count)]


def placement(ring: SupportsLookup, keys: Iterable[str]) -> dict[str, Optional[Target]]:
    """Map every key to its target (None when the ring cannot place it)."""
    return {key: ring.lookup(key).unwrap_or(None) for key in keys}


@dataclass(frozen=True)
class DistributionReport:
    """Per-target key counts and balance statistics."""

    counts: dict[Target, int]
    unplaced: int = 0

    @property
    def total(self) -> int:
        return int(sum(self.counts.values()))

    @property
    def _array(self) -> np.ndarray:
        return np.fromiter(self.counts.values(), dtype=np.float64, count=len(self.counts))

    @property
    def shares(self) -> dict[Target, float]:
        """Fraction of placed keys per target."""
        total = self.total
        if total == 0:
            return {target: 0.0 for target in self.counts}
        return {target: count / total for target, count in self.counts.items()}

    @property
    def mean(self) -> float:
        if not self.counts:
            return 0.0
        return float(self._array.mean())

    @property
    def stddev(self) -> float:
        """Population standard deviation of per-target counts."""
        if not self.counts:
            return 0.0
        return float(self._array.std())

    @property
    def coefficient_of_variation(self) -> float:
        """stddev / mean; 0.0 is perfectly even."""
        mean = self.mean
        return self.stddev / mean if mean else 0.0

    @property
    def balance_factor(self) -> float:
        """Most-loaded over least-loaded count; inf if a target got nothing."""
        if len(self.counts) < 2:
            return 1.0
        counts = self._array
        low = counts.min()
        if low == 0:
            return float("inf")
        return float(counts.max() / low)

    def weighted_deviation(self, weights: Mapping[Target, float]) -> dict[Target, float]:
        """
        Relative error of each target's share against its weight share.

        0.1 means the target got 10% more keys than its weight implies.
        """
        targets = list(self.counts)
        expected = np.array([weights.get(t, C.DEFAULT_WEIGHT) for t in targets], dtype=np.float64)
        expected /= expected.sum()
        actual = np.array([self.shares[t] for t in targets], dtype=np.float64)
        deviation = np.divide(
            actual - expected, expected,
            out=np.zeros_like(actual), where=expected > 0,
        )
        return dict(zip(targets, deviation.tolist()))

    def summary(self) -> str:
        lines = [f"{self.total} keys over {len(self.counts)} targets"]
        for target, share in sorted(self.shares.items()):
            lines.append(f"  {target}: {self.counts[target]} ({share:.1%})")
        lines.append(
            f"  stddev={self.stddev:.1f} cv={self.coefficient_of_variation:.3f} "
            f"balance={self.balance_factor:.2f}"
        )
        if self.unplaced:
            lines.append(f"  unplaced={self.unplaced}")
        return "\n".join(lines)


def key_distribution(ring: SupportsLookup, keys: Iterable[str]) -> DistributionReport:
    """
    Count how many keys land on each registered target.

    Targets that receive no key are reported with a count of 0.
    """
    hits: Counter[Target] = Counter()
    unplaced = 0
    for target in placement(ring, keys).values():
        if target is None:
            unplaced += 1
        else:
            hits[target] += 1

    counts = {target: hits.get(target, 0) for target in ring.get_all_targets()}
    return DistributionReport(counts=counts, unplaced=unplaced)


@dataclass(frozen=True)
class DisruptionReport:
    """Keys whose target changed between two placements."""

    total: int
    moved: int
    moved_from: dict[Optional[Target], int] = field(default_factory=dict)
    moved_to: dict[Optional[Target], int] = field(default_factory=dict)

    @property
    def fraction(self) -> float:
        return self.moved / self.total if self.total else 0.0


def measure_disruption(
    before: Mapping[str, Optional[Target]],
    after: Mapping[str, Optional[Target]],
) -> DisruptionReport:
    """
    Compare two placements of the same keys.

    Only keys present in both mappings are compared.
    """
    keys = [key for key in before if key in after]
    if not keys:
        return DisruptionReport(total=0, moved=0)

    old = np.array([before[k] for k in keys], dtype=object)
    new = np.array([after[k] for k in keys], dtype=object)
    changed = old != new

    return DisruptionReport(
        total=len(keys),
        moved=int(np.count_nonzero(changed)),
        moved_from=dict(Counter(old[changed].tolist())),
        moved_to=dict(Counter(new[changed].tolist())),
    )
