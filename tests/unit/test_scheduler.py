"""Test the periodic publisher scheduler."""

import asyncio

import pytest
from structlog.testing import capture_logs

from health_orchestrator.config.settings import PublisherSettings
from health_orchestrator.domain.models import HealthStatus
from health_orchestrator.engine.fanout import PublisherFanout
from health_orchestrator.engine.orchestrator import HealthCheckOrchestrator
from health_orchestrator.engine.scheduler import HealthCheckPublisherScheduler, SchedulerState
from health_orchestrator.observability.logging import get_correlation_id


def _settings(**overrides):
    values = {"delay": 0.0, "period": 0.03, "timeout": 1.0}
    values.update(overrides)
    return PublisherSettings(**values)


@pytest.fixture
def probe(make_probe):
    return make_probe()


@pytest.fixture
def orchestrator(probe, register, metrics):
    return HealthCheckOrchestrator([register("db", probe)], metrics=metrics)


async def _wait_for(condition, timeout=1.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


class TestSchedulerLifecycle:
    """Test start and stop."""

    @pytest.mark.asyncio
    async def test_zero_publishers_never_arms_timer(self, orchestrator, probe):
        scheduler = HealthCheckPublisherScheduler(orchestrator, [], _settings())

        await scheduler.start()
        await asyncio.sleep(0.08)

        assert scheduler.state is SchedulerState.STOPPED
        assert not scheduler.is_timer_running
        assert probe.calls == 0

        await scheduler.stop()
        assert scheduler.is_stopping

    @pytest.mark.asyncio
    async def test_publishes_periodically(self, orchestrator, make_publisher):
        publisher = make_publisher()
        scheduler = HealthCheckPublisherScheduler(orchestrator, [publisher], _settings())

        await scheduler.start()
        assert scheduler.state is SchedulerState.RUNNING
        assert scheduler.is_timer_running

        await _wait_for(lambda: len(publisher.reports) >= 2)
        await scheduler.stop()

        assert scheduler.state is SchedulerState.STOPPED
        assert not scheduler.is_timer_running
        assert scheduler.is_stopping
        assert publisher.reports[0].status is HealthStatus.HEALTHY

        published = len(publisher.reports)
        await asyncio.sleep(0.1)
        assert len(publisher.reports) == published

    @pytest.mark.asyncio
    async def test_initial_delay(self, orchestrator, make_publisher):
        publisher = make_publisher()
        scheduler = HealthCheckPublisherScheduler(
            orchestrator, [publisher], _settings(delay=0.2)
        )

        await scheduler.start()
        await asyncio.sleep(0.05)
        try:
            assert publisher.reports == []
        finally:
            await scheduler.stop()

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self, orchestrator, make_publisher):
        scheduler = HealthCheckPublisherScheduler(orchestrator, [make_publisher()], _settings())

        await scheduler.start()
        with capture_logs() as logs:
            await scheduler.start()
        await scheduler.stop()

        assert logs[0]["event"] == "Health check publisher scheduler already started"
        assert logs[0]["log_level"] == "warning"

    @pytest.mark.asyncio
    async def test_restart_after_stop(self, orchestrator, make_publisher):
        publisher = make_publisher()
        scheduler = HealthCheckPublisherScheduler(orchestrator, [publisher], _settings())

        await scheduler.start()
        await scheduler.stop()
        published = len(publisher.reports)

        await scheduler.start()
        assert scheduler.state is SchedulerState.RUNNING
        assert not scheduler.is_stopping

        await _wait_for(lambda: len(publisher.reports) > published)
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self, orchestrator):
        scheduler = HealthCheckPublisherScheduler(orchestrator, [], _settings())

        await scheduler.stop()

        assert scheduler.state is SchedulerState.STOPPED

    @pytest.mark.asyncio
    async def test_stop_cancels_in_flight_delivery_quietly(
        self, orchestrator, make_publisher, metrics
    ):
        publisher = make_publisher(name="slow", delay=5.0)
        scheduler = HealthCheckPublisherScheduler(orchestrator, [publisher], _settings())

        await scheduler.start()
        await asyncio.wait_for(publisher.started.wait(), timeout=1.0)

        with capture_logs() as logs:
            await asyncio.wait_for(scheduler.stop(), timeout=1.0)

        assert publisher.was_cancelled
        assert scheduler.in_flight_runs == 0
        assert not [log for log in logs if log["log_level"] == "error"]
        assert metrics.sample(
            "health_check_publisher_deliveries_total",
            {"publisher": "slow", "outcome": "shutdown"},
        ) == 1.0


class TestSchedulerOverlap:
    """Test ticks that fire while a run is still in flight."""

    @pytest.mark.asyncio
    async def test_overlapping_runs_allowed_by_default(self, orchestrator, make_publisher):
        publisher = make_publisher(delay=0.1)
        scheduler = HealthCheckPublisherScheduler(
            orchestrator, [publisher], _settings(period=0.02)
        )

        await scheduler.start()
        await asyncio.sleep(0.15)
        await scheduler.stop()

        assert publisher.max_active > 1

    @pytest.mark.asyncio
    async def test_overlapping_runs_skipped_when_disabled(self, orchestrator, make_publisher):
        publisher = make_publisher(delay=0.1)
        scheduler = HealthCheckPublisherScheduler(
            orchestrator,
            [publisher],
            _settings(period=0.02, allow_overlapping_runs=False),
        )

        await scheduler.start()
        await asyncio.sleep(0.15)
        assert scheduler.in_flight_runs <= 1
        await scheduler.stop()

        assert publisher.max_active == 1


class TestRunOnce:
    """Test a single scheduled run."""

    @pytest.mark.asyncio
    async def test_returns_published_report(self, orchestrator, make_publisher):
        publisher = make_publisher()
        scheduler = HealthCheckPublisherScheduler(orchestrator, [publisher], _settings())

        report = await scheduler.run_once()

        assert report is not None
        assert publisher.reports == [report]

    @pytest.mark.asyncio
    async def test_accepts_prebuilt_fanout(self, orchestrator, make_publisher, metrics):
        publisher = make_publisher()
        fanout = PublisherFanout([publisher], metrics)
        scheduler = HealthCheckPublisherScheduler(orchestrator, fanout, _settings())

        await scheduler.run_once()

        assert scheduler.fanout is fanout
        assert len(publisher.reports) == 1

    @pytest.mark.asyncio
    async def test_publish_failure_is_logged_not_raised(self, orchestrator, make_publisher):
        scheduler = HealthCheckPublisherScheduler(
            orchestrator, [make_publisher(error=RuntimeError("down"))], _settings()
        )

        with capture_logs() as logs:
            report = await scheduler.run_once()

        assert report is None
        events = [log["event"] for log in logs if log["log_level"] == "error"]
        assert "Health check publisher processing failed" in events

    @pytest.mark.asyncio
    async def test_run_timeout(self, make_probe, register, metrics, make_publisher):
        slow = make_probe(delay=5.0)
        orchestrator = HealthCheckOrchestrator([register("slow", slow)], metrics=metrics)
        publisher = make_publisher()
        scheduler = HealthCheckPublisherScheduler(
            orchestrator, [publisher], _settings(timeout=0.03)
        )

        with capture_logs() as logs:
            report = await asyncio.wait_for(scheduler.run_once(), timeout=1.0)

        assert report is None
        assert slow.was_cancelled
        assert publisher.reports == []
        cancelled = [
            log for log in logs if log["event"] == "Health check publisher processing was cancelled"
        ]
        assert cancelled[0]["reason"] == "run_timeout"

    @pytest.mark.asyncio
    async def test_tags_setting_filters_checks(self, make_probe, register, metrics, make_publisher):
        tagged = make_probe()
        untagged = make_probe()
        orchestrator = HealthCheckOrchestrator(
            [register("tagged", tagged, tags=["publish"]), register("other", untagged)],
            metrics=metrics,
        )
        scheduler = HealthCheckPublisherScheduler(
            orchestrator, [make_publisher()], _settings(tags=["publish"])
        )

        report = await scheduler.run_once()

        assert list(report.entries) == ["tagged"]
        assert untagged.calls == 0

    @pytest.mark.asyncio
    async def test_run_has_correlation_id(self, orchestrator):
        seen = []

        class CorrelationPublisher:
            name = "correlation"

            async def publish(self, report, signal):
                seen.append(get_correlation_id())

        scheduler = HealthCheckPublisherScheduler(
            orchestrator, [CorrelationPublisher()], _settings()
        )

        await scheduler.run_once()
        await scheduler.run_once()

        assert all(seen)
        assert seen[0] != seen[1]
        assert get_correlation_id() is None
