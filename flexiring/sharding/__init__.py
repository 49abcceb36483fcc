"""
Sharding module: Consistent hash ring, thread-safe facade and distribution analysis.
"""

from flexiring.sharding.consistent_hash import ConsistentHashRing
from flexiring.sharding.synchronized import ReadWriteLock, SynchronizedRing
from flexiring.sharding.distribution import (
    DistributionReport,
    DisruptionReport,
    key_distribution,
    measure_disruption,
    placement,
    sample_keys,
)

__all__ = [
    "ConsistentHashRing",
    "ReadWriteLock",
    "SynchronizedRing",
    "DistributionReport",
    "DisruptionReport",
    "key_distribution",
    "measure_disruption",
    "placement",
    "sample_keys",
]
