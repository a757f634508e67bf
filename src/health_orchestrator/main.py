"""FastAPI application factory wiring the orchestrator and the scheduler."""

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import replace

from fastapi import FastAPI

from . import __version__
from .api.health import create_health_router
from .config.settings import ApplicationSettings, get_settings
from .domain.models import Registration
from .engine.orchestrator import HealthCheckOrchestrator
from .engine.scheduler import HealthCheckPublisherScheduler
from .engine.scope import ScopeFactory
from .observability.logging import get_logger, setup_logging
from .observability.metrics import HealthMetrics
from .publishers.base import ReportPublisher
from .publishers.prometheus import PrometheusPublisher

logger = get_logger(__name__)


def build_orchestrator(
    registrations: Iterable[Registration],
    settings: ApplicationSettings | None = None,
    scope_factory: ScopeFactory | None = None,
) -> HealthCheckOrchestrator:
    """Create an orchestrator, applying the default probe timeout from settings."""
    settings = settings or get_settings()
    default_timeout = settings.default_probe_timeout
    if default_timeout > 0:
        registrations = [
            replace(registration, timeout=default_timeout) if registration.timeout == 0 else registration
            for registration in registrations
        ]

    metrics = (
        HealthMetrics(namespace=settings.observability.metrics_namespace)
        if settings.observability.metrics_enabled
        else None
    )
    return HealthCheckOrchestrator(registrations, scope_factory=scope_factory, metrics=metrics)


def create_app(
    registrations: Iterable[Registration],
    publishers: Iterable[ReportPublisher] = (),
    settings: ApplicationSettings | None = None,
    scope_factory: ScopeFactory | None = None,
    configure_logging: bool = True,
) -> FastAPI:
    """Build the FastAPI app; its lifespan starts and stops the publisher scheduler."""
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(
            level=settings.observability.log_level,
            format_type=settings.observability.log_format,
            log_file=settings.observability.log_file,
        )

    orchestrator = build_orchestrator(registrations, settings, scope_factory)
    publishers = list(publishers)
    # Gauges must land in the registry served on /health/metrics.
    for publisher in publishers:
        if isinstance(publisher, PrometheusPublisher):
            publisher.bind_metrics(orchestrator.metrics)
    scheduler = HealthCheckPublisherScheduler(orchestrator, publishers, settings.publisher)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await scheduler.start()
        try:
            yield
        finally:
            await scheduler.stop()

    app = FastAPI(title=settings.app_name, version=__version__, lifespan=lifespan)
    app.state.orchestrator = orchestrator
    app.state.scheduler = scheduler
    app.include_router(create_health_router(orchestrator, orchestrator.metrics))

    logger.info(
        "Health orchestrator configured",
        checks=len(orchestrator.registrations),
        publishers=len(scheduler.fanout),
        environment=settings.environment.value,
    )
    return app
