"""Test domain models."""

import dataclasses

import pytest

from health_orchestrator.domain.exceptions import InvalidRegistrationException
from health_orchestrator.domain.models import (
    HealthReport,
    HealthStatus,
    ProbeOutcome,
    Registration,
    ReportEntries,
    ReportEntry,
    describe_error,
)


def _entry(status, description=None, error=None):
    return ReportEntry(status=status, description=description, duration_ms=1.5, error=error)


class TestHealthStatus:
    """Test status ordering."""

    def test_severity_ordering(self):
        """Healthy is least severe, unhealthy most."""
        assert (
            HealthStatus.HEALTHY.severity
            < HealthStatus.DEGRADED.severity
            < HealthStatus.UNHEALTHY.severity
        )

    def test_worst_of_nothing_is_healthy(self):
        assert HealthStatus.worst([]) is HealthStatus.HEALTHY

    def test_worst_picks_most_severe(self):
        assert (
            HealthStatus.worst([HealthStatus.HEALTHY, HealthStatus.DEGRADED])
            is HealthStatus.DEGRADED
        )
        assert (
            HealthStatus.worst(
                [HealthStatus.DEGRADED, HealthStatus.UNHEALTHY, HealthStatus.HEALTHY]
            )
            is HealthStatus.UNHEALTHY
        )


class TestRegistration:
    """Test registration validation."""

    def test_tags_are_frozen(self):
        registration = Registration(name="db", factory=lambda scope: None, tags={"ready"})

        assert registration.tags == frozenset({"ready"})
        assert isinstance(registration.tags, frozenset)

    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name_rejected(self, name):
        with pytest.raises(InvalidRegistrationException):
            Registration(name=name, factory=lambda scope: None)

    def test_negative_timeout_rejected(self):
        with pytest.raises(InvalidRegistrationException) as exc_info:
            Registration(name="db", factory=lambda scope: None, timeout=-1)

        assert exc_info.value.name == "db"

    def test_non_callable_factory_rejected(self):
        with pytest.raises(InvalidRegistrationException):
            Registration(name="db", factory="not callable")

    def test_for_probe_returns_same_instance(self):
        probe = object()
        registration = Registration.for_probe("db", probe, tags=["a", "b"], timeout=2.0)

        assert registration.factory(None) is probe
        assert registration.tags == {"a", "b"}
        assert registration.timeout == 2.0


class TestProbeOutcome:
    """Test probe outcome constructors."""

    def test_constructors_set_status(self):
        assert ProbeOutcome.healthy().status is HealthStatus.HEALTHY
        assert ProbeOutcome.degraded("slow").description == "slow"
        error = RuntimeError("down")
        unhealthy = ProbeOutcome.unhealthy("down", error=error)
        assert unhealthy.status is HealthStatus.UNHEALTHY
        assert unhealthy.error is error

    def test_data_is_read_only(self):
        source = {"latency_ms": 12}
        outcome = ProbeOutcome.healthy(data=source)
        source["latency_ms"] = 99

        assert outcome.data["latency_ms"] == 12
        with pytest.raises(TypeError):
            outcome.data["latency_ms"] = 1


class TestReportEntries:
    """Test case-insensitive entry lookup."""

    def test_lookup_ignores_case(self):
        entry = _entry(HealthStatus.HEALTHY)
        entries = ReportEntries({"Database": entry})

        assert entries["database"] is entry
        assert entries["DATABASE"] is entry
        assert "dAtAbAsE" in entries
        assert list(entries) == ["Database"]

    def test_missing_name_raises_key_error(self):
        entries = ReportEntries({"db": _entry(HealthStatus.HEALTHY)})

        with pytest.raises(KeyError):
            entries["cache"]
        assert 42 not in entries

    def test_get_uses_case_insensitive_lookup(self):
        entry = _entry(HealthStatus.DEGRADED)
        entries = ReportEntries([("Cache", entry)])

        assert entries.get("CACHE") is entry
        assert entries.get("missing") is None


class TestHealthReport:
    """Test report aggregation."""

    def test_empty_report_is_healthy(self):
        report = HealthReport(entries={}, total_duration_ms=0.0)

        assert report.status is HealthStatus.HEALTHY
        assert len(report.entries) == 0

    def test_status_is_worst_entry(self):
        report = HealthReport(
            entries={
                "a": _entry(HealthStatus.HEALTHY),
                "b": _entry(HealthStatus.DEGRADED),
            },
            total_duration_ms=3.0,
        )

        assert report.status is HealthStatus.DEGRADED

    def test_report_is_immutable(self):
        report = HealthReport(entries={}, total_duration_ms=0.0)

        with pytest.raises(dataclasses.FrozenInstanceError):
            report.total_duration_ms = 5.0

    def test_to_dict(self):
        report = HealthReport(
            entries={
                "db": _entry(HealthStatus.HEALTHY, "ok"),
                "cache": _entry(
                    HealthStatus.UNHEALTHY, "down", error=ConnectionError("refused")
                ),
            },
            total_duration_ms=12.3456,
        )

        report_dict = report.to_dict()

        assert report_dict["status"] == "unhealthy"
        assert report_dict["total_duration_ms"] == 12.346
        assert report_dict["summary"] == {
            "total_checks": 2,
            "healthy_checks": 1,
            "degraded_checks": 0,
            "unhealthy_checks": 1,
        }
        assert report_dict["checks"]["cache"]["error"] == "ConnectionError: refused"
        assert report_dict["checks"]["db"]["error"] is None


def test_describe_error_without_message():
    assert describe_error(TimeoutError()) == "TimeoutError"
    assert describe_error(None) is None
