"""Fans probes out concurrently and folds their entries into one report."""

from __future__ import annotations

import asyncio
import time
from collections import Counter
from collections.abc import Callable, Iterable

from ..domain.exceptions import DuplicateRegistrationException
from ..domain.models import HealthReport, Registration, ReportEntry
from ..observability.logging import get_logger
from ..observability.metrics import HealthMetrics, get_metrics_collector
from .cancellation import CancellationToken, join_all
from .runner import ProbeRunner
from .scope import ScopeFactory, empty_scope

logger = get_logger(__name__)

Predicate = Callable[[Registration], bool]


def validate_registrations(registrations: Iterable[Registration]) -> None:
    """Reject registrations whose names collide, ignoring case."""
    registrations = tuple(registrations)
    counts = Counter(registration.name.casefold() for registration in registrations)
    duplicates: list[str] = []
    seen: set[str] = set()
    for registration in registrations:
        key = registration.name.casefold()
        if counts[key] > 1 and key not in seen:
            seen.add(key)
            duplicates.append(registration.name)
    if duplicates:
        raise DuplicateRegistrationException(duplicates)


def has_any_tag(*tags: str) -> Predicate:
    """Predicate selecting registrations that carry at least one of ``tags``."""
    wanted = frozenset(tags)
    return lambda registration: not wanted.isdisjoint(registration.tags)


class HealthCheckOrchestrator:
    """Runs the registered probes and aggregates them into a HealthReport.

    Registrations are validated once, here, so a bad configuration fails at
    startup instead of on the first run.
    """

    def __init__(
        self,
        registrations: Iterable[Registration],
        scope_factory: ScopeFactory | None = None,
        runner: ProbeRunner | None = None,
        metrics: HealthMetrics | None = None,
    ):
        self._registrations = tuple(registrations)
        validate_registrations(self._registrations)
        self._scope_factory = scope_factory or empty_scope
        self.metrics = metrics or get_metrics_collector()
        self._runner = runner or ProbeRunner(self.metrics)

    @property
    def registrations(self) -> tuple[Registration, ...]:
        return self._registrations

    async def run(
        self,
        predicate: Predicate | None = None,
        signal: CancellationToken | None = None,
    ) -> HealthReport:
        """Run every registration matching ``predicate`` (all by default).

        Probe failures and timeouts show up as Unhealthy entries. Cancelling
        ``signal`` (or the calling task) raises instead of producing a
        partial report.
        """
        signal = signal or CancellationToken()
        registrations = [
            registration
            for registration in self._registrations
            if predicate is None or predicate(registration)
        ]
        signal.raise_if_cancelled()

        logger.debug("Running health checks", check_count=len(registrations))
        start_time = time.perf_counter()

        async with self._scope_factory() as scope:
            tasks = [
                asyncio.create_task(
                    self._runner.run_one(registration, scope, signal),
                    name=f"health-check-{registration.name}",
                )
                for registration in registrations
            ]
            await join_all(tasks)

        # The runner only raises for cancellation; surface the first one.
        errors = [task.exception() for task in tasks if not task.cancelled()]
        if any(task.cancelled() for task in tasks):
            raise asyncio.CancelledError()
        for error in errors:
            if error is not None:
                raise error

        entries: dict[str, ReportEntry] = {}
        for registration, task in zip(registrations, tasks, strict=True):
            entries[registration.name] = task.result()

        elapsed = time.perf_counter() - start_time
        report = HealthReport(entries=entries, total_duration_ms=elapsed * 1000)

        logger.debug(
            "Health check processing completed",
            elapsed_ms=round(elapsed * 1000, 3),
            health_status=report.status.value,
        )
        self.metrics.record_report(report.status.value, elapsed)
        return report

    async def run_with_tags(
        self, *tags: str, signal: CancellationToken | None = None
    ) -> HealthReport:
        """Run only registrations that carry at least one of ``tags``."""
        return await self.run(has_any_tag(*tags), signal)
