"""
flexiring: Weighted Consistent Hashing

Maps resource keys onto weighted targets (cache servers, shards) so that
adding or removing a target moves only the keys it must. Placement is
bit-for-bit compatible with the PHP Flexihash library and its ports when
the same hash strategy and replica count are used.

Components:
- Hashing: signed CRC32 (default) and truncated MD5 strategies, or any callable
- Sharding: ConsistentHashRing, SynchronizedRing, distribution analysis
- Core: Result types, error hierarchy, configuration
- Observability: structured logging and in-process metrics

Usage:
    from flexiring import ConsistentHashRing

    ring = ConsistentHashRing()
    ring.add_targets(["cache-1", "cache-2", "cache-3"])
    ring.lookup("object-a").unwrap()

License: MIT
"""

__version__ = "1.0.0"

# =============================================================================
# PUBLIC API EXPORTS
# =============================================================================
from flexiring.core.types import Result, Ok, Err, Target, Position
from flexiring.core.errors import (
    ErrorCode,
    FlexiRingError,
    RingError,
    ConfigurationError,
)
from flexiring.core.config import FlexiRingConfig, RingConfig, ObservabilityConfig

from flexiring.hashing import (
    HashStrategy,
    Crc32Hasher,
    Md5Hasher,
    crc32_hash,
    md5_hash,
    get_strategy,
)

from flexiring.sharding import (
    ConsistentHashRing,
    SynchronizedRing,
    DistributionReport,
    DisruptionReport,
    key_distribution,
    measure_disruption,
    placement,
    sample_keys,
)

__all__ = [
    "__version__",
    # Core
    "Result",
    "Ok",
    "Err",
    "Target",
    "Position",
    "ErrorCode",
    "FlexiRingError",
    "RingError",
    "ConfigurationError",
    "FlexiRingConfig",
    "RingConfig",
    "ObservabilityConfig",
    # Hashing
    "HashStrategy",
    "Crc32Hasher",
    "Md5Hasher",
    "crc32_hash",
    "md5_hash",
    "get_strategy",
    # Sharding
    "ConsistentHashRing",
    "SynchronizedRing",
    "DistributionReport",
    "DisruptionReport",
    "key_distribution",
    "measure_disruption",
    "placement",
    "sample_keys",
]
