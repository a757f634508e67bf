"""Health report publishers."""

from .base import ReportPublisher
from .log_publisher import LoggingPublisher
from .prometheus import PrometheusPublisher
from .webhook import WebhookPublisher

__all__ = [
    "ReportPublisher",
    "LoggingPublisher",
    "PrometheusPublisher",
    "WebhookPublisher",
]
