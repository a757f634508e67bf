"""Orchestration engine: probe runner, orchestrator, fan-out and scheduler."""

from .cancellation import CancellationToken, CancelReason, join_all
from .fanout import PublisherFanout, publisher_name
from .orchestrator import HealthCheckOrchestrator, Predicate, has_any_tag, validate_registrations
from .runner import TIMEOUT_DESCRIPTION, ProbeRunner
from .scheduler import HealthCheckPublisherScheduler, SchedulerState
from .scope import ProbeScope, ResourceScopeFactory, empty_scope

__all__ = [
    "CancellationToken",
    "CancelReason",
    "join_all",
    "PublisherFanout",
    "publisher_name",
    "HealthCheckOrchestrator",
    "Predicate",
    "has_any_tag",
    "validate_registrations",
    "TIMEOUT_DESCRIPTION",
    "ProbeRunner",
    "HealthCheckPublisherScheduler",
    "SchedulerState",
    "ProbeScope",
    "ResourceScopeFactory",
    "empty_scope",
]
