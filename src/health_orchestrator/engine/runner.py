"""Runs a single registered probe and turns its result into a report entry."""

from __future__ import annotations

import asyncio
import time

import structlog

from ..domain.exceptions import OperationCancelledException
from ..domain.models import HealthStatus, ProbeContext, Registration, ReportEntry
from ..observability.logging import get_logger
from ..observability.metrics import HealthMetrics, get_metrics_collector
from .cancellation import CancellationToken, CancelReason
from .scope import ProbeScope

logger = get_logger(__name__)

TIMEOUT_DESCRIPTION = "A timeout occurred while running check."

_END_LOG_LEVEL = {
    HealthStatus.HEALTHY: "info",
    HealthStatus.DEGRADED: "warning",
    HealthStatus.UNHEALTHY: "error",
}


class ProbeRunner:
    """Executes one probe under its own deadline and classifies the outcome.

    Probe failures and probe timeouts become Unhealthy entries. Cancellation
    coming from the caller's signal is re-raised so the whole run stops.
    """

    def __init__(self, metrics: HealthMetrics | None = None):
        self.metrics = metrics or get_metrics_collector()

    async def run_one(
        self,
        registration: Registration,
        scope: ProbeScope,
        signal: CancellationToken,
    ) -> ReportEntry:
        """Run ``registration``'s probe and return its report entry."""
        signal.raise_if_cancelled()

        with structlog.contextvars.bound_contextvars(health_check_name=registration.name):
            logger.debug("Running health check", health_check_name=registration.name)
            context = ProbeContext(registration=registration, scope=scope)
            start_time = time.perf_counter()

            with signal.link() as effective:
                if registration.timeout > 0:
                    effective.cancel_after(registration.timeout, CancelReason.PROBE_TIMEOUT)

                try:
                    probe = registration.factory(scope)
                    outcome = await effective.guard(probe.check(context, effective))
                except OperationCancelledException as exc:
                    if signal.cancelled:
                        raise
                    duration_ms = (time.perf_counter() - start_time) * 1000
                    if effective.reason is CancelReason.PROBE_TIMEOUT:
                        entry = ReportEntry(
                            status=HealthStatus.UNHEALTHY,
                            description=TIMEOUT_DESCRIPTION,
                            duration_ms=duration_ms,
                            error=exc,
                            tags=registration.tags,
                        )
                    else:
                        entry = self._failure_entry(registration, exc, duration_ms)
                    self._log_error(registration, exc, duration_ms)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    duration_ms = (time.perf_counter() - start_time) * 1000
                    entry = self._failure_entry(registration, exc, duration_ms)
                    self._log_error(registration, exc, duration_ms)
                else:
                    duration_ms = (time.perf_counter() - start_time) * 1000
                    entry = ReportEntry.from_outcome(outcome, duration_ms, registration.tags)
                    self._log_end(registration, entry)

            self.metrics.record_check(registration.name, entry.status.value, duration_ms / 1000)
            return entry

    @staticmethod
    def _failure_entry(
        registration: Registration, exc: BaseException, duration_ms: float
    ) -> ReportEntry:
        return ReportEntry(
            status=HealthStatus.UNHEALTHY,
            description=str(exc) or type(exc).__name__,
            duration_ms=duration_ms,
            error=exc,
            tags=registration.tags,
        )

    @staticmethod
    def _log_end(registration: Registration, entry: ReportEntry) -> None:
        log = getattr(logger, _END_LOG_LEVEL[entry.status])
        log(
            "Health check completed",
            health_check_name=registration.name,
            elapsed_ms=round(entry.duration_ms, 3),
            health_status=entry.status.value,
            description=entry.description,
        )
        if entry.data:
            logger.debug(
                "Health check data",
                health_check_name=registration.name,
                data=dict(entry.data),
            )

    @staticmethod
    def _log_error(
        registration: Registration, exc: BaseException, duration_ms: float
    ) -> None:
        logger.error(
            "Health check threw an unhandled exception",
            health_check_name=registration.name,
            elapsed_ms=round(duration_ms, 3),
            exc_info=exc,
        )
