"""Domain layer: health statuses, registrations, reports and exceptions."""

from .exceptions import (
    ConfigurationException,
    DuplicateRegistrationException,
    ErrorCode,
    HealthOrchestratorException,
    InvalidRegistrationException,
    OperationCancelledException,
    PublishFailedException,
)
from .models import (
    HealthReport,
    HealthStatus,
    ProbeContext,
    ProbeOutcome,
    Registration,
    ReportEntries,
    ReportEntry,
    describe_error,
)

__all__ = [
    "ConfigurationException",
    "DuplicateRegistrationException",
    "ErrorCode",
    "HealthOrchestratorException",
    "InvalidRegistrationException",
    "OperationCancelledException",
    "PublishFailedException",
    "HealthReport",
    "HealthStatus",
    "ProbeContext",
    "ProbeOutcome",
    "Registration",
    "ReportEntries",
    "ReportEntry",
    "describe_error",
]
