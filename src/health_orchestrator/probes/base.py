"""Probe capability interface and a callable-backed probe."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from ..domain.models import HealthStatus, ProbeContext, ProbeOutcome
from ..engine.cancellation import CancellationToken


@runtime_checkable
class HealthProbe(Protocol):
    """Anything that can evaluate the health of one component.

    Probes run concurrently with every other probe of the run and share the
    run's read-only scope. ``signal`` fires on timeout, caller cancellation or
    shutdown; long-running probes may poll it, but the runner also cancels the
    probe's task when it fires.
    """

    async def check(self, context: ProbeContext, signal: CancellationToken) -> ProbeOutcome:
        ...


ProbeFunc = Callable[..., Awaitable[Any]]


class CallableProbe:
    """Probe backed by a user-supplied coroutine function.

    The function is called with ``(context, signal)`` and may return a
    ``ProbeOutcome``, a ``bool``, or a dict with ``healthy``, ``message``
    and ``details`` keys.
    """

    def __init__(self, check_func: ProbeFunc, name: str | None = None):
        self.check_func = check_func
        self.name = name or getattr(check_func, "__name__", type(self).__name__)

    async def check(self, context: ProbeContext, signal: CancellationToken) -> ProbeOutcome:
        result = await self.check_func(context, signal)

        if isinstance(result, ProbeOutcome):
            return result
        if isinstance(result, dict):
            status = result.get("status")
            if status is None:
                status = HealthStatus.HEALTHY if result.get("healthy", False) else HealthStatus.UNHEALTHY
            return ProbeOutcome(
                status=HealthStatus(status),
                description=result.get("message"),
                data=result.get("details", {}),
            )
        if isinstance(result, bool):
            return ProbeOutcome.healthy() if result else ProbeOutcome.unhealthy()
        raise TypeError(
            f"Probe '{self.name}' returned unsupported result type {type(result).__name__}"
        )

    def __repr__(self) -> str:
        return f"CallableProbe({self.name!r})"
