"""Delivers one report to every publisher concurrently."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from ..domain.exceptions import OperationCancelledException, PublishFailedException
from ..domain.models import HealthReport
from ..observability.logging import get_logger
from ..observability.metrics import HealthMetrics, get_metrics_collector
from .cancellation import CancellationToken, CancelReason, join_all

if TYPE_CHECKING:
    from ..publishers.base import ReportPublisher

logger = get_logger(__name__)


def publisher_name(publisher: Any) -> str:
    """Name used for a publisher in logs and metrics."""
    name = getattr(publisher, "name", None)
    return name if isinstance(name, str) and name else type(publisher).__name__


class PublisherFanout:
    """Fans a report out to all publishers with per-publisher isolation.

    Every delivery starts before any is awaited, and one publisher failing
    never cancels or delays the others. Shutdown cancellations are swallowed;
    timeouts and errors are logged and then raised together as a
    ``PublishFailedException`` once every delivery has finished.
    """

    def __init__(
        self,
        publishers: Iterable[ReportPublisher],
        metrics: HealthMetrics | None = None,
    ):
        self._publishers = tuple(publishers)
        self.metrics = metrics or get_metrics_collector()

    @property
    def publishers(self) -> tuple[ReportPublisher, ...]:
        return self._publishers

    def __len__(self) -> int:
        return len(self._publishers)

    async def deliver(self, report: HealthReport, signal: CancellationToken) -> None:
        """Publish ``report`` to every publisher."""
        publishers = self._publishers
        tasks = [
            asyncio.create_task(
                self._deliver_one(publisher, report, signal),
                name=f"health-publisher-{publisher_name(publisher)}",
            )
            for publisher in publishers
        ]
        await join_all(tasks)

        if any(task.cancelled() for task in tasks):
            raise asyncio.CancelledError()

        failures: dict[str, BaseException] = {}
        for publisher, task in zip(publishers, tasks, strict=True):
            error = task.exception()
            if error is not None:
                failures[publisher_name(publisher)] = error
        if failures:
            raise PublishFailedException(failures)

    async def _deliver_one(
        self,
        publisher: ReportPublisher,
        report: HealthReport,
        signal: CancellationToken,
    ) -> None:
        name = publisher_name(publisher)
        start_time = time.perf_counter()

        def elapsed_ms() -> float:
            return round((time.perf_counter() - start_time) * 1000, 3)

        try:
            logger.debug("Running health check publisher", publisher=name)
            await signal.guard(publisher.publish(report, signal))
        except OperationCancelledException as exc:
            if exc.reason is CancelReason.SHUTDOWN:
                # Expected while the host is stopping.
                self.metrics.record_delivery(name, "shutdown")
                return
            logger.error(
                "Health check publisher was cancelled",
                publisher=name,
                elapsed_ms=elapsed_ms(),
                reason=exc.reason.value,
            )
            self.metrics.record_delivery(name, "timeout")
            raise
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error(
                "Health check publisher threw an unhandled exception",
                publisher=name,
                elapsed_ms=elapsed_ms(),
                exc_info=exc,
            )
            self.metrics.record_delivery(name, "error")
            raise
        else:
            logger.debug("Health check publisher completed", publisher=name, elapsed_ms=elapsed_ms())
            self.metrics.record_delivery(name, "success")
