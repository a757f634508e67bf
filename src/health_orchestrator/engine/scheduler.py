"""Background scheduler that runs health checks and publishes the reports."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ..config.settings import PublisherSettings
from ..domain.exceptions import OperationCancelledException
from ..domain.models import HealthReport
from ..observability.logging import CorrelationContext, get_logger
from .cancellation import CancellationToken, CancelReason
from .fanout import PublisherFanout
from .orchestrator import HealthCheckOrchestrator, Predicate, has_any_tag

if TYPE_CHECKING:
    from ..publishers.base import ReportPublisher

logger = get_logger(__name__)


class SchedulerState(str, Enum):
    """Lifecycle of the publisher scheduler."""

    STOPPED = "stopped"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass
class _SchedulerRuntime:
    """Everything owned by one start/stop cycle."""

    shutdown: CancellationToken
    timer: asyncio.Task[None] | None = None
    runs: set[asyncio.Task[HealthReport | None]] = field(default_factory=set)


class HealthCheckPublisherScheduler:
    """Periodically runs the orchestrator and hands reports to publishers.

    The timer never waits for a run: each tick spawns the run as its own task
    and goes back to sleeping. With zero publishers the scheduler stays idle
    and never arms the timer.
    """

    def __init__(
        self,
        orchestrator: HealthCheckOrchestrator,
        publishers: PublisherFanout | Iterable[ReportPublisher],
        settings: PublisherSettings | None = None,
        predicate: Predicate | None = None,
    ):
        self.orchestrator = orchestrator
        self.fanout = (
            publishers
            if isinstance(publishers, PublisherFanout)
            else PublisherFanout(publishers, orchestrator.metrics)
        )
        self.settings = settings or PublisherSettings()
        if predicate is None and self.settings.tags:
            predicate = has_any_tag(*self.settings.tags)
        self.predicate = predicate
        self._state = SchedulerState.STOPPED
        self._runtime: _SchedulerRuntime | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_timer_running(self) -> bool:
        runtime = self._runtime
        return runtime is not None and runtime.timer is not None and not runtime.timer.done()

    @property
    def is_stopping(self) -> bool:
        runtime = self._runtime
        return runtime is not None and runtime.shutdown.cancelled

    @property
    def in_flight_runs(self) -> int:
        return len(self._runtime.runs) if self._runtime else 0

    async def start(self) -> None:
        """Arm the periodic timer."""
        if self._state is not SchedulerState.STOPPED:
            logger.warning("Health check publisher scheduler already started", state=self._state.value)
            return

        runtime = _SchedulerRuntime(shutdown=CancellationToken())
        self._runtime = runtime

        if len(self.fanout) == 0:
            logger.info("No health check publishers configured, scheduler idle")
            return

        runtime.timer = asyncio.create_task(
            self._tick_loop(runtime), name="health-publisher-timer"
        )
        self._state = SchedulerState.RUNNING
        logger.info(
            "Health check publisher scheduler started",
            publishers=len(self.fanout),
            delay_s=self.settings.delay,
            period_s=self.settings.period,
        )

    async def stop(self) -> None:
        """Signal shutdown, disarm the timer and let in-flight runs wind down."""
        runtime = self._runtime
        if runtime is None:
            return

        runtime.shutdown.cancel(CancelReason.SHUTDOWN)
        if self._state is not SchedulerState.RUNNING:
            return

        self._state = SchedulerState.STOPPING
        try:
            if runtime.timer is not None:
                runtime.timer.cancel()
                await asyncio.gather(runtime.timer, return_exceptions=True)
                runtime.timer = None
            if runtime.runs:
                await asyncio.gather(*runtime.runs, return_exceptions=True)
        finally:
            self._state = SchedulerState.STOPPED
        logger.info("Health check publisher scheduler stopped")

    async def run_once(self) -> HealthReport | None:
        """Run the checks and publish once.

        Returns the report, or None when the run was cut short or failed.
        Failures are logged here and never propagate to the host.
        """
        runtime = self._runtime
        shutdown = runtime.shutdown if runtime is not None else CancellationToken()
        return await self._run(shutdown)

    async def _tick_loop(self, runtime: _SchedulerRuntime) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.settings.delay
        while not runtime.shutdown.cancelled:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            if runtime.shutdown.cancelled:
                break
            self._dispatch(runtime)
            next_tick = max(next_tick + self.settings.period, loop.time())

    def _dispatch(self, runtime: _SchedulerRuntime) -> None:
        if runtime.runs and not self.settings.allow_overlapping_runs:
            logger.debug(
                "Skipping health check publisher tick, previous run still in flight",
                in_flight=len(runtime.runs),
            )
            return
        task = asyncio.create_task(self._run(runtime.shutdown), name="health-publisher-run")
        runtime.runs.add(task)
        task.add_done_callback(runtime.runs.discard)

    async def _run(self, shutdown: CancellationToken) -> HealthReport | None:
        # Detach from the timer before doing any real work.
        await asyncio.sleep(0)

        start_time = time.perf_counter()

        def elapsed_ms() -> float:
            return round((time.perf_counter() - start_time) * 1000, 3)

        with CorrelationContext(), shutdown.link() as run_signal:
            logger.debug("Running health check publishers")
            run_signal.cancel_after(self.settings.timeout, CancelReason.RUN_TIMEOUT)
            try:
                report = await self.orchestrator.run(self.predicate, run_signal)
                await self.fanout.deliver(report, run_signal)
            except OperationCancelledException as exc:
                if exc.reason is CancelReason.SHUTDOWN:
                    logger.debug("Health check publisher run cancelled by shutdown")
                    return None
                logger.error(
                    "Health check publisher processing was cancelled",
                    elapsed_ms=elapsed_ms(),
                    reason=exc.reason.value,
                )
                return None
            except Exception as exc:
                logger.error(
                    "Health check publisher processing failed",
                    elapsed_ms=elapsed_ms(),
                    exc_info=exc,
                )
                return None

            logger.debug(
                "Health check publisher processing completed",
                elapsed_ms=elapsed_ms(),
                health_status=report.status.value,
            )
            return report
