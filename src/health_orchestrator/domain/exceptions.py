"""Exception hierarchy for the health orchestrator."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..engine.cancellation import CancelReason


class ErrorCode(str, Enum):
    """Standardized error codes."""

    CONFIGURATION_ERROR = "configuration_error"
    DUPLICATE_REGISTRATION = "duplicate_registration"
    CANCELLED = "cancelled"
    TIMEOUT_ERROR = "timeout_error"
    PUBLISH_ERROR = "publish_error"
    INTERNAL_ERROR = "internal_error"


class HealthOrchestratorException(Exception):
    """Base exception for the health orchestrator."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
        correlation_id: str | None = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}
        self.correlation_id = correlation_id


class ConfigurationException(HealthOrchestratorException):
    """Invalid health check configuration."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFIGURATION_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code, details)


class InvalidRegistrationException(ConfigurationException):
    """A single registration is malformed."""

    def __init__(self, message: str, name: str | None = None):
        super().__init__(message, details={"name": name})
        self.name = name


class DuplicateRegistrationException(ConfigurationException):
    """Two or more registrations share a name (case-insensitive)."""

    def __init__(self, names: Iterable[str]):
        self.names = list(names)
        super().__init__(
            "Duplicate health checks were registered with the name(s): "
            + ", ".join(self.names),
            ErrorCode.DUPLICATE_REGISTRATION,
            {"names": self.names},
        )


class OperationCancelledException(HealthOrchestratorException):
    """An operation was cancelled through a cancellation token.

    ``reason`` tells where the cancellation came from.
    """

    def __init__(self, reason: CancelReason, message: str | None = None):
        super().__init__(
            message or f"The operation was cancelled ({reason.value})",
            ErrorCode.TIMEOUT_ERROR if reason.is_timeout else ErrorCode.CANCELLED,
            {"reason": reason.value},
        )
        self.reason = reason


class PublishFailedException(HealthOrchestratorException):
    """One or more publishers failed to deliver a report."""

    def __init__(self, failures: Mapping[str, BaseException]):
        self.failures = dict(failures)
        super().__init__(
            "Health report delivery failed for publisher(s): "
            + ", ".join(self.failures),
            ErrorCode.PUBLISH_ERROR,
            {
                "publishers": {
                    name: f"{type(exc).__name__}: {exc}" for name, exc in self.failures.items()
                }
            },
        )
