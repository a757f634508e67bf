"""Metrics collection and exposition."""

from .collectors import HealthMetrics, get_metrics_collector

__all__ = [
    "HealthMetrics",
    "get_metrics_collector",
]
