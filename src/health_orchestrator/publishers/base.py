"""Publisher capability interface."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..domain.models import HealthReport
from ..engine.cancellation import CancellationToken


@runtime_checkable
class ReportPublisher(Protocol):
    """A side-effecting consumer of completed health reports.

    Publishers must treat the report as read-only. ``signal`` carries the
    run-level deadline and the shutdown signal.
    """

    async def publish(self, report: HealthReport, signal: CancellationToken) -> None:
        ...
