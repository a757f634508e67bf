"""Prometheus metrics for health check runs and report delivery."""

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

DEFAULT_BUCKETS = [0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]


class HealthMetrics:
    """Metrics collector for probes, reports and publishers.

    Every instance owns its own registry unless one is passed in, so several
    orchestrators (or tests) never collide on metric names.
    """

    def __init__(self, registry: CollectorRegistry | None = None, namespace: str = ""):
        self.registry = registry or CollectorRegistry()
        self.namespace = namespace
        self._counters: dict[str, Counter] = {}
        self._gauges: dict[str, Gauge] = {}
        self._histograms: dict[str, Histogram] = {}

        self._setup_default_metrics()

    def _setup_default_metrics(self) -> None:
        self.health_check_runs_total = self.create_counter(
            "health_check_runs_total",
            "Total health check executions",
            ["name", "status"],
        )
        self.health_check_duration_seconds = self.create_histogram(
            "health_check_duration_seconds",
            "Health check execution duration in seconds",
            ["name"],
        )
        self.health_report_runs_total = self.create_counter(
            "health_report_runs_total",
            "Total orchestration runs by combined status",
            ["status"],
        )
        self.health_report_duration_seconds = self.create_histogram(
            "health_report_duration_seconds",
            "Orchestration run duration in seconds",
        )
        self.publisher_deliveries_total = self.create_counter(
            "health_check_publisher_deliveries_total",
            "Health report deliveries by publisher and outcome",
            ["publisher", "outcome"],
        )
        self.health_check_status = self.create_gauge(
            "health_check_status",
            "Last published status per check (0 healthy, 1 degraded, 2 unhealthy)",
            ["name"],
        )
        self.health_report_status = self.create_gauge(
            "health_report_status",
            "Last published combined status (0 healthy, 1 degraded, 2 unhealthy)",
        )

    def create_counter(
        self, name: str, documentation: str, labelnames: list[str] | None = None
    ) -> Counter:
        """Create a counter metric, or return the existing one."""
        if name not in self._counters:
            self._counters[name] = Counter(
                name,
                documentation,
                labelnames=labelnames or [],
                namespace=self.namespace,
                registry=self.registry,
            )
        return self._counters[name]

    def create_gauge(
        self, name: str, documentation: str, labelnames: list[str] | None = None
    ) -> Gauge:
        """Create a gauge metric, or return the existing one."""
        if name not in self._gauges:
            self._gauges[name] = Gauge(
                name,
                documentation,
                labelnames=labelnames or [],
                namespace=self.namespace,
                registry=self.registry,
            )
        return self._gauges[name]

    def create_histogram(
        self,
        name: str,
        documentation: str,
        labelnames: list[str] | None = None,
        buckets: list[float] | None = None,
    ) -> Histogram:
        """Create a histogram metric, or return the existing one."""
        if name not in self._histograms:
            self._histograms[name] = Histogram(
                name,
                documentation,
                labelnames=labelnames or [],
                buckets=buckets or DEFAULT_BUCKETS,
                namespace=self.namespace,
                registry=self.registry,
            )
        return self._histograms[name]

    def record_check(self, name: str, status: str, duration_seconds: float) -> None:
        self.health_check_runs_total.labels(name=name, status=status).inc()
        self.health_check_duration_seconds.labels(name=name).observe(duration_seconds)

    def record_report(self, status: str, duration_seconds: float) -> None:
        self.health_report_runs_total.labels(status=status).inc()
        self.health_report_duration_seconds.observe(duration_seconds)

    def record_delivery(self, publisher: str, outcome: str) -> None:
        self.publisher_deliveries_total.labels(publisher=publisher, outcome=outcome).inc()

    def sample(self, name: str, labels: dict[str, str] | None = None) -> float | None:
        """Read the current value of a sample from the registry."""
        if self.namespace:
            name = f"{self.namespace}_{name}"
        return self.registry.get_sample_value(name, labels or {})

    def export(self) -> bytes:
        """Render the registry in Prometheus text exposition format."""
        return generate_latest(self.registry)


_metrics_collector: HealthMetrics | None = None


def get_metrics_collector() -> HealthMetrics:
    """Get global metrics collector instance."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = HealthMetrics()
    return _metrics_collector
