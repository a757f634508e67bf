"""Publisher that writes each report to the structured log."""

from __future__ import annotations

from ..domain.models import HealthReport, HealthStatus
from ..engine.cancellation import CancellationToken
from ..observability.logging import get_logger

logger = get_logger(__name__)


class LoggingPublisher:
    """Logs a one-line summary of every report, plus failing checks."""

    name = "logging"

    def __init__(self, include_healthy: bool = False):
        self.include_healthy = include_healthy

    async def publish(self, report: HealthReport, signal: CancellationToken) -> None:
        status = report.status
        log = {
            HealthStatus.HEALTHY: logger.info,
            HealthStatus.DEGRADED: logger.warning,
            HealthStatus.UNHEALTHY: logger.error,
        }[status]

        checks = {
            name: entry.status.value
            for name, entry in report.entries.items()
            if self.include_healthy or entry.status is not HealthStatus.HEALTHY
        }
        log(
            "Health report",
            health_status=status.value,
            total_checks=len(report.entries),
            total_duration_ms=round(report.total_duration_ms, 3),
            checks=checks,
        )
