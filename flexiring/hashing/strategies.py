"""
Hash Strategies: String to Ring Position

A strategy is any callable mapping a string to an integer position.
The two built-in strategies reproduce, bit for bit, the positions used by
the PHP Flexihash library and its ports, so independently deployed
services agree on placement:

- crc32: IEEE CRC-32 of the UTF-8 bytes, reinterpreted as signed 32-bit
  (PHP's crc32() on 32-bit builds)
- md5: first 8 hexits of the MD5 hex digest, accumulated base 16
  (always non-negative, range [0, 2^32))

Complexity: O(len(value)) per call
"""

from __future__ import annotations

import hashlib
import zlib
from typing import Callable

from flexiring.core import constants as C
from flexiring.core.errors import ConfigurationError
from flexiring.core.types import Err, Ok, Result

HashStrategy = Callable[[str], int]

_HEX_DIGITS = "0123456789abcdef"


def to_int32(value: int) -> int:
    """Reinterpret the low 32 bits of value as a two's-complement int32."""
    value &= C.UINT32_MASK
    if value > C.INT32_MAX:
        value -= 1 << 32
    return value


def crc32_hash(value: str) -> int:
    """Signed CRC-32/IEEE of the UTF-8 encoding of value."""
    return to_int32(zlib.crc32(value.encode("utf-8")))


def md5_hash(value: str) -> int:
    """Leading 32 bits of the MD5 hex digest, parsed digit by digit."""
    hexdigest = hashlib.md5(value.encode("utf-8")).hexdigest()
    result = 0
    for hexit in hexdigest[:C.MD5_PREFIX_HEXITS]:
        result = result * 16 + _HEX_DIGITS.index(hexit)
    return result


class Crc32Hasher:
    """Callable wrapper around crc32_hash."""

    __slots__ = ()

    def hash(self, value: str) -> int:
        return crc32_hash(value)

    def __call__(self, value: str) -> int:
        return crc32_hash(value)

    def __repr__(self) -> str:
        return "Crc32Hasher()"


class Md5Hasher:
    """Callable wrapper around md5_hash."""

    __slots__ = ()

    def hash(self, value: str) -> int:
        return md5_hash(value)

    def __call__(self, value: str) -> int:
        return md5_hash(value)

    def __repr__(self) -> str:
        return "Md5Hasher()"


# Named strategies selectable from configuration and the CLI
HASH_STRATEGIES: dict[str, HashStrategy] = {
    "crc32": crc32_hash,
    "md5": md5_hash,
}


def get_strategy(name: str) -> Result[HashStrategy, ConfigurationError]:
    """
    Resolve a strategy by name (case-insensitive).

    Returns:
        Ok(strategy) or Err(ConfigurationError) listing known names
    """
    strategy = HASH_STRATEGIES.get(name.strip().lower())
    if strategy is None:
        return Err(ConfigurationError.unknown_strategy(name, sorted(HASH_STRATEGIES)))
    return Ok(strategy)
