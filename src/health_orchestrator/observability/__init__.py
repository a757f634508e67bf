"""Observability infrastructure for logging and metrics."""

from .logging import LogFormat, LogLevel, get_logger, setup_logging
from .metrics import HealthMetrics, get_metrics_collector

__all__ = [
    "setup_logging",
    "get_logger",
    "LogLevel",
    "LogFormat",
    "HealthMetrics",
    "get_metrics_collector",
]
