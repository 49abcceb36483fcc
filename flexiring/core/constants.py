"""
Library-Wide Constants for flexiring

All magic numbers and configuration defaults centralized here.
"""

from typing import Final

# =============================================================================
# RING GEOMETRY
# =============================================================================
DEFAULT_REPLICAS: Final[int] = 64  # Virtual positions per unit of weight
DEFAULT_WEIGHT: Final[float] = 1.0

INT32_MAX: Final[int] = 2**31 - 1
UINT32_MASK: Final[int] = 0xFFFFFFFF

# =============================================================================
# HASHING
# =============================================================================
DEFAULT_HASHER: Final[str] = "crc32"
MD5_PREFIX_HEXITS: Final[int] = 8  # 32 bits, most significant first

# =============================================================================
# OBSERVABILITY
# =============================================================================
DEFAULT_LOG_LEVEL: Final[str] = "INFO"
LOGGER_NAME: Final[str] = "flexiring"

# =============================================================================
# ENVIRONMENT
# =============================================================================
ENV_PREFIX: Final[str] = "FLEXIRING_"

# =============================================================================
# DISTRIBUTION ANALYSIS
# =============================================================================
DEFAULT_SAMPLE_KEYS: Final[int] = 10_000
SAMPLE_KEY_FORMAT: Final[str] = "object-{}"
