"""Domain models for health check orchestration."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .exceptions import InvalidRegistrationException

if TYPE_CHECKING:
    from ..engine.scope import ProbeScope
    from ..probes.base import HealthProbe


class HealthStatus(str, Enum):
    """Health status values, ordered by severity."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"

    @property
    def severity(self) -> int:
        """Severity rank: healthy < degraded < unhealthy."""
        return _SEVERITY[self]

    @classmethod
    def worst(cls, statuses: Iterable[HealthStatus]) -> HealthStatus:
        """Return the most severe status, or HEALTHY when there is none."""
        return max(statuses, key=lambda s: s.severity, default=cls.HEALTHY)


_SEVERITY = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.DEGRADED: 1,
    HealthStatus.UNHEALTHY: 2,
}


def _frozen_data(data: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(data or {}))


def describe_error(error: BaseException | None) -> str | None:
    """Render an exception as ``Type: message`` for reports and logs."""
    if error is None:
        return None
    message = str(error)
    return f"{type(error).__name__}: {message}" if message else type(error).__name__


@dataclass(frozen=True)
class Registration:
    """A named probe with its tags and optional timeout.

    ``factory`` builds the probe from the run's shared scope, so probes that
    need per-run resources (an HTTP client, a connection pool) can pull them
    out of the scope. ``timeout`` is in seconds; zero means the probe only
    observes the caller's signal.
    """

    name: str
    factory: Callable[[ProbeScope], HealthProbe]
    tags: frozenset[str] = field(default_factory=frozenset)
    timeout: float = 0.0

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidRegistrationException("Health check name must not be empty")
        if self.timeout < 0:
            raise InvalidRegistrationException(
                f"Health check '{self.name}' has a negative timeout: {self.timeout}",
                name=self.name,
            )
        if not callable(self.factory):
            raise InvalidRegistrationException(
                f"Health check '{self.name}' factory is not callable", name=self.name
            )
        object.__setattr__(self, "tags", frozenset(self.tags))

    @classmethod
    def for_probe(
        cls,
        name: str,
        probe: HealthProbe,
        tags: Iterable[str] = (),
        timeout: float = 0.0,
    ) -> Registration:
        """Register an already-built probe instance."""
        return cls(name=name, factory=lambda _scope: probe, tags=frozenset(tags), timeout=timeout)


@dataclass(frozen=True)
class ProbeContext:
    """Run context handed to a probe."""

    registration: Registration
    scope: ProbeScope

    @property
    def name(self) -> str:
        return self.registration.name

    @property
    def tags(self) -> frozenset[str]:
        return self.registration.tags


@dataclass(frozen=True)
class ProbeOutcome:
    """What a probe reports about the component it checks."""

    status: HealthStatus
    description: str | None = None
    error: BaseException | None = None
    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _frozen_data(self.data))

    @classmethod
    def healthy(
        cls, description: str | None = None, data: Mapping[str, Any] | None = None
    ) -> ProbeOutcome:
        return cls(HealthStatus.HEALTHY, description, None, data or {})

    @classmethod
    def degraded(
        cls,
        description: str | None = None,
        error: BaseException | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> ProbeOutcome:
        return cls(HealthStatus.DEGRADED, description, error, data or {})

    @classmethod
    def unhealthy(
        cls,
        description: str | None = None,
        error: BaseException | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> ProbeOutcome:
        return cls(HealthStatus.UNHEALTHY, description, error, data or {})


@dataclass(frozen=True)
class ReportEntry:
    """Outcome of one probe within a report."""

    status: HealthStatus
    description: str | None
    duration_ms: float
    error: BaseException | None = None
    data: Mapping[str, Any] = field(default_factory=dict)
    tags: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _frozen_data(self.data))
        object.__setattr__(self, "tags", frozenset(self.tags))

    @classmethod
    def from_outcome(
        cls, outcome: ProbeOutcome, duration_ms: float, tags: Iterable[str] = ()
    ) -> ReportEntry:
        return cls(
            status=outcome.status,
            description=outcome.description,
            duration_ms=duration_ms,
            error=outcome.error,
            data=outcome.data,
            tags=frozenset(tags),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "status": self.status.value,
            "description": self.description,
            "duration_ms": round(self.duration_ms, 3),
            "error": describe_error(self.error),
            "data": dict(self.data),
            "tags": sorted(self.tags),
        }


class ReportEntries(Mapping[str, ReportEntry]):
    """Read-only entry mapping with case-insensitive lookup by name.

    Iteration yields names as they were registered.
    """

    def __init__(
        self,
        entries: Mapping[str, ReportEntry] | Iterable[tuple[str, ReportEntry]] = (),
    ) -> None:
        items = entries.items() if isinstance(entries, Mapping) else entries
        self._entries: dict[str, tuple[str, ReportEntry]] = {}
        for name, entry in items:
            self._entries[name.casefold()] = (name, entry)

    def __getitem__(self, name: str) -> ReportEntry:
        try:
            return self._entries[name.casefold()][1]
        except (KeyError, AttributeError):
            raise KeyError(name) from None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._entries

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ReportEntries({dict(self.items())!r})"


@dataclass(frozen=True)
class HealthReport:
    """Aggregated result of one orchestration run."""

    entries: Mapping[str, ReportEntry]
    total_duration_ms: float
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not isinstance(self.entries, ReportEntries):
            object.__setattr__(self, "entries", ReportEntries(self.entries))

    @property
    def status(self) -> HealthStatus:
        """Most severe status across all entries."""
        return HealthStatus.worst(entry.status for entry in self.entries.values())

    def count(self, status: HealthStatus) -> int:
        return sum(1 for entry in self.entries.values() if entry.status == status)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        return {
            "status": self.status.value,
            "timestamp": self.created_at.isoformat(),
            "total_duration_ms": round(self.total_duration_ms, 3),
            "summary": {
                "total_checks": len(self.entries),
                "healthy_checks": self.count(HealthStatus.HEALTHY),
                "degraded_checks": self.count(HealthStatus.DEGRADED),
                "unhealthy_checks": self.count(HealthStatus.UNHEALTHY),
            },
            "checks": {name: entry.to_dict() for name, entry in self.entries.items()},
        }
