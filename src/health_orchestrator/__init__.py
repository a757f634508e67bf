"""Concurrent health check orchestration with periodic report publishing."""

__version__ = "0.1.0"
__description__ = "Runs named health probes concurrently and fans reports out to publishers"

from .domain import (  # noqa: E402
    DuplicateRegistrationException,
    HealthReport,
    HealthStatus,
    OperationCancelledException,
    ProbeContext,
    ProbeOutcome,
    PublishFailedException,
    Registration,
    ReportEntry,
)
from .engine import (  # noqa: E402
    CancellationToken,
    CancelReason,
    HealthCheckOrchestrator,
    HealthCheckPublisherScheduler,
    ProbeRunner,
    ProbeScope,
    PublisherFanout,
    ResourceScopeFactory,
    SchedulerState,
)

__all__ = [
    "__version__",
    "DuplicateRegistrationException",
    "HealthReport",
    "HealthStatus",
    "OperationCancelledException",
    "ProbeContext",
    "ProbeOutcome",
    "PublishFailedException",
    "Registration",
    "ReportEntry",
    "CancellationToken",
    "CancelReason",
    "HealthCheckOrchestrator",
    "HealthCheckPublisherScheduler",
    "ProbeRunner",
    "ProbeScope",
    "PublisherFanout",
    "ResourceScopeFactory",
    "SchedulerState",
]
