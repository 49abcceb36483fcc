"""
Core module: Type definitions, error hierarchy, and configuration.

This module provides the foundational abstractions for flexiring:
- Result/Either monads for exception-free contract failures
- Error hierarchy with stable codes
- Configuration management with validation
"""

from flexiring.core.types import (
    Result,
    Ok,
    Err,
    Target,
    Position,
    Timestamp,
)
from flexiring.core.errors import (
    ErrorCode,
    FlexiRingError,
    RingError,
    ConfigurationError,
)
from flexiring.core.config import FlexiRingConfig, RingConfig, ObservabilityConfig

__all__ = [
    "Result",
    "Ok",
    "Err",
    "Target",
    "Position",
    "Timestamp",
    "ErrorCode",
    "FlexiRingError",
    "RingError",
    "ConfigurationError",
    "FlexiRingConfig",
    "RingConfig",
    "ObservabilityConfig",
]
