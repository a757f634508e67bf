"""Publisher that exposes the latest report as Prometheus gauges."""

from __future__ import annotations

from ..domain.models import HealthReport
from ..engine.cancellation import CancellationToken
from ..observability.metrics import HealthMetrics, get_metrics_collector


class PrometheusPublisher:
    """Sets ``health_check_status`` per check and ``health_report_status``.

    Values are status severities: 0 healthy, 1 degraded, 2 unhealthy.
    Without an explicit collector the gauges go to whatever collector is
    bound later with :meth:`bind_metrics`, falling back to the process default.
    """

    name = "prometheus"

    def __init__(self, metrics: HealthMetrics | None = None):
        self._metrics = metrics

    @property
    def metrics(self) -> HealthMetrics:
        return self._metrics or get_metrics_collector()

    def bind_metrics(self, metrics: HealthMetrics) -> None:
        """Use ``metrics`` unless a collector was passed at construction."""
        if self._metrics is None:
            self._metrics = metrics

    async def publish(self, report: HealthReport, signal: CancellationToken) -> None:
        metrics = self.metrics
        for name, entry in report.entries.items():
            metrics.health_check_status.labels(name=name).set(entry.status.severity)
        metrics.health_report_status.set(report.status.severity)
