"""
Hashing module: pluggable string-to-position strategies.
"""

from flexiring.hashing.strategies import (
    HashStrategy,
    HASH_STRATEGIES,
    Crc32Hasher,
    Md5Hasher,
    crc32_hash,
    md5_hash,
    get_strategy,
    to_int32,
)

__all__ = [
    "HashStrategy",
    "HASH_STRATEGIES",
    "Crc32Hasher",
    "Md5Hasher",
    "crc32_hash",
    "md5_hash",
    "get_strategy",
    "to_int32",
]
