"""
Error Hierarchy for flexiring

Design Principles:
- Ring contract failures are returned as Err values, never raised
- Every error carries a stable code for programmatic handling
- Errors carry context for logging without leaking internals

Each error type includes:
- Unique error code for programmatic handling
- Human-readable message for logging
- Optional cause chain for root cause analysis
- Timestamp for correlation with logs

Usage:
    result = ring.add_target("cache-1")
    match result:
        case Ok(_):
            pass
        case Err(RingError(code=ErrorCode.RING_DUPLICATE_TARGET)):
            log.warning("already registered")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from flexiring.core.types import Timestamp


# =============================================================================
# ERROR CODE ENUMERATION
# =============================================================================
class ErrorCode(Enum):
    """
    Unique error codes for programmatic error handling.

    Codes are grouped by subsystem:
    - 1xxx: Ring contract errors
    - 2xxx: Hashing errors
    - 9xxx: Internal/configuration errors
    """

    # Ring errors (1xxx)
    RING_DUPLICATE_TARGET = 1001
    RING_UNKNOWN_TARGET = 1002
    RING_INVALID_COUNT = 1003
    RING_NO_TARGETS = 1004

    # Hashing errors (2xxx)
    HASHING_UNKNOWN_STRATEGY = 2001

    # Internal errors (9xxx)
    INTERNAL_ERROR = 9001
    INTERNAL_CONFIGURATION_ERROR = 9002


# =============================================================================
# BASE ERROR CLASS
# =============================================================================
@dataclass
class FlexiRingError(Exception):
    """
    Base class for all flexiring errors.

    Provides common infrastructure for error handling:
    - Unique error ID for log correlation
    - Error code for programmatic handling
    - Timestamp for correlation
    - Cause chain for root cause analysis
    """

    code: ErrorCode
    message: str
    error_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: Timestamp = field(default_factory=Timestamp.now)
    cause: Optional[Exception] = None
    context: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Initialize Exception base class with message
        super().__init__(self.message)

    def with_context(self, **kwargs: Any) -> FlexiRingError:
        """
        Add context to error (returns new instance of the same class).
        """
        return type(self)(
            code=self.code,
            message=self.message,
            error_id=self.error_id,
            timestamp=self.timestamp,
            cause=self.cause,
            context={**self.context, **kwargs},
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize error to dictionary for logging."""
        return {
            "error_id": self.error_id,
            "code": self.code.name,
            "code_value": self.code.value,
            "message": self.message,
            "timestamp_nanos": self.timestamp.nanos,
            "context": self.context,
        }

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message} (id={self.error_id[:8]})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"code={self.code.name}, "
            f"message={self.message!r}, "
            f"error_id={self.error_id!r})"
        )


# =============================================================================
# RING ERRORS
# =============================================================================
@dataclass
class RingError(FlexiRingError):
    """
    Contract failures of the consistent hash ring.

    All are local and recoverable: the ring is unchanged and fully
    usable after any of them.
    """

    @classmethod
    def duplicate_target(cls, target: str) -> RingError:
        """Target is already registered."""
        return cls(
            code=ErrorCode.RING_DUPLICATE_TARGET,
            message=f"Target '{target}' already exists.",
            context={"target": target},
        )

    @classmethod
    def unknown_target(cls, target: str) -> RingError:
        """Target is not registered."""
        return cls(
            code=ErrorCode.RING_UNKNOWN_TARGET,
            message=f"Target '{target}' does not exist.",
            context={"target": target},
        )

    @classmethod
    def invalid_count(cls, count: int) -> RingError:
        """Lookup list requested with fewer than one slot."""
        return cls(
            code=ErrorCode.RING_INVALID_COUNT,
            message=f"Invalid count requested: {count}",
            context={"count": count},
        )

    @classmethod
    def no_targets(cls, resource: str) -> RingError:
        """Lookup attempted on a ring without positions."""
        return cls(
            code=ErrorCode.RING_NO_TARGETS,
            message="No targets exist",
            context={"resource": resource},
        )


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================
@dataclass
class ConfigurationError(FlexiRingError):
    """Invalid configuration or unknown hash strategy name."""

    @classmethod
    def invalid(cls, reason: str) -> ConfigurationError:
        return cls(
            code=ErrorCode.INTERNAL_CONFIGURATION_ERROR,
            message=f"Configuration error: {reason}",
            context={"reason": reason},
        )

    @classmethod
    def unknown_strategy(cls, name: str, known: list[str]) -> ConfigurationError:
        """Hash strategy name is not registered."""
        return cls(
            code=ErrorCode.HASHING_UNKNOWN_STRATEGY,
            message=f"Unknown hash strategy '{name}' (known: {', '.join(known)})",
            context={"name": name, "known": known},
        )
