"""
Core Type Definitions for flexiring

Implements Result/Either monads for exception-free control flow on the
ring's public surface, plus the small identity types shared by every module.

Design Principles:
- Contract failures (duplicate target, empty ring) are values, not exceptions
- Programming errors (bad constructor arguments) still raise
- Targets and positions are plain str/int aliases for cheap hashing

Complexity: O(1) for all type operations
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Generic,
    Literal,
    TypeVar,
    Union,
)

# =============================================================================
# TYPE VARIABLES FOR GENERIC CONTAINERS
# =============================================================================
T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type
U = TypeVar("U")  # Transform result type


# =============================================================================
# RESULT MONAD
# =============================================================================
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """
    Success variant of Result monad.

    Immutable container for successful computation results.
    """

    value: T

    def is_ok(self) -> Literal[True]:
        return True

    def is_err(self) -> Literal[False]:
        return False

    def unwrap(self) -> T:
        """
        Extract value. Safe to call after is_ok() check.

        Returns:
            T: The wrapped success value
        """
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Return value, ignoring default."""
        return self.value

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        """Apply transformation to success value."""
        return Ok(fn(self.value))

    def flat_map(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Monadic bind for chaining fallible operations."""
        return fn(self.value)

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """
    Failure variant of Result monad.

    Carries the error value unchanged through map/flat_map chains.
    """

    error: E

    def is_ok(self) -> Literal[False]:
        return False

    def is_err(self) -> Literal[True]:
        return True

    def unwrap(self) -> Any:
        """
        Attempting to unwrap an error is a programming error.

        Raises:
            RuntimeError: Always, with error context
        """
        raise RuntimeError(f"Called unwrap() on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        """Return default value on error."""
        return default

    def map(self, fn: Callable[[Any], U]) -> Err[E]:
        """No-op on error variant - propagates error unchanged."""
        return self

    def flat_map(self, fn: Callable[[Any], Result[U, E]]) -> Err[E]:
        """Propagate error through monadic chain."""
        return self

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


# Union type for pattern matching
Result = Union[Ok[T], Err[E]]


# =============================================================================
# RING IDENTITIES
# =============================================================================
Target = str  # Destination name (server, shard)
Position = int  # Point on the ring, 32-bit range


# =============================================================================
# TIMESTAMP WITH NANOSECOND PRECISION
# =============================================================================
NANOS_PER_SECOND = 1_000_000_000
NANOS_PER_MILLI = 1_000_000


@dataclass(frozen=True, slots=True, order=True)
class Timestamp:
    """
    High-precision timestamp for error and log correlation.

    Stores nanoseconds since Unix epoch.
    """

    nanos: int

    @classmethod
    def now(cls) -> Timestamp:
        return cls(nanos=time.time_ns())

    @classmethod
    def from_seconds(cls, seconds: float) -> Timestamp:
        """Convert floating-point seconds to Timestamp."""
        return cls(nanos=int(seconds * NANOS_PER_SECOND))

    @property
    def seconds(self) -> float:
        return self.nanos / NANOS_PER_SECOND

    @property
    def millis(self) -> int:
        return self.nanos // NANOS_PER_MILLI

    def __sub__(self, other: Timestamp) -> int:
        """Difference in nanoseconds."""
        return self.nanos - other.nanos

    def __repr__(self) -> str:
        return f"Timestamp({self.nanos})"
