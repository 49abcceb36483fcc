"""
Observability module: Metrics and structured logging.
"""

from flexiring.observability.metrics import MetricsCollector, Counter, Gauge, Histogram
from flexiring.observability.logging import StructuredLogger, LogLevel, setup_logging

__all__ = [
    "MetricsCollector",
    "Counter",
    "Gauge",
    "Histogram",
    "StructuredLogger",
    "LogLevel",
    "setup_logging",
]
