"""
Configuration Management for flexiring

Provides validated configuration with sensible defaults.
Supports environment variable overrides.

Design:
- Immutable after validation
- Fail-fast on invalid configuration
- Type-safe with dataclasses
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from flexiring.core.types import Result, Ok, Err
from flexiring.core import constants as C

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUTHY = ("1", "true", "yes", "on")


def _env(name: str, default: str) -> str:
    return os.getenv(f"{C.ENV_PREFIX}{name}", default)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(f"{C.ENV_PREFIX}{name}")
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class RingConfig:
    """Consistent hash ring configuration."""

    replicas: int = C.DEFAULT_REPLICAS
    hasher: str = C.DEFAULT_HASHER  # "crc32" or "md5"
    default_weight: float = C.DEFAULT_WEIGHT


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging and metrics configuration."""

    log_level: str = C.DEFAULT_LOG_LEVEL
    log_json: bool = False
    metrics_enabled: bool = True


@dataclass(frozen=True)
class FlexiRingConfig:
    """Root configuration."""

    ring: RingConfig = field(default_factory=RingConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> Result[FlexiRingConfig, str]:
        """
        Load configuration from environment variables.

        Environment variables are prefixed with FLEXIRING_.
        Example: FLEXIRING_REPLICAS, FLEXIRING_HASHER, FLEXIRING_LOG_JSON
        """
        try:
            ring = RingConfig(
                replicas=int(_env("REPLICAS", str(C.DEFAULT_REPLICAS))),
                hasher=_env("HASHER", C.DEFAULT_HASHER).strip().lower(),
                default_weight=float(_env("DEFAULT_WEIGHT", str(C.DEFAULT_WEIGHT))),
            )

            observability = ObservabilityConfig(
                log_level=_env("LOG_LEVEL", C.DEFAULT_LOG_LEVEL).strip().upper(),
                log_json=_env_flag("LOG_JSON", False),
                metrics_enabled=_env_flag("METRICS_ENABLED", True),
            )

            return Ok(cls(ring=ring, observability=observability))
        except (ValueError, TypeError) as e:
            return Err(f"Configuration error: {e}")

    def validate(self) -> Result[None, str]:
        """Validate configuration invariants."""
        # Deferred import: hashing depends on core
        from flexiring.hashing import HASH_STRATEGIES

        if self.ring.replicas < 1:
            return Err("Replica count must be >= 1")
        if self.ring.hasher not in HASH_STRATEGIES:
            return Err(
                f"Unknown hasher '{self.ring.hasher}' "
                f"(known: {', '.join(sorted(HASH_STRATEGIES))})"
            )
        if self.ring.default_weight <= 0:
            return Err("Default weight must be > 0")
        if self.observability.log_level not in _LOG_LEVELS:
            return Err(f"Unknown log level '{self.observability.log_level}'")
        return Ok(None)
