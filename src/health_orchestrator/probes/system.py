"""Probes for local host resources."""

from __future__ import annotations

import asyncio
import shutil

import psutil

from ..domain.models import HealthStatus, ProbeContext, ProbeOutcome
from ..engine.cancellation import CancellationToken


def _grade(value: float, degraded: float, unhealthy: float, higher_is_worse: bool) -> HealthStatus:
    if higher_is_worse:
        if value >= unhealthy:
            return HealthStatus.UNHEALTHY
        if value >= degraded:
            return HealthStatus.DEGRADED
    else:
        if value < unhealthy:
            return HealthStatus.UNHEALTHY
        if value < degraded:
            return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


class DiskSpaceProbe:
    """Free disk space on the filesystem holding ``path``."""

    def __init__(self, path: str = "/", degraded_percent: float = 20.0, unhealthy_percent: float = 10.0):
        if unhealthy_percent > degraded_percent:
            raise ValueError("unhealthy_percent must not exceed degraded_percent")
        self.path = path
        self.degraded_percent = degraded_percent
        self.unhealthy_percent = unhealthy_percent

    async def check(self, context: ProbeContext, signal: CancellationToken) -> ProbeOutcome:
        total, used, free = await asyncio.to_thread(shutil.disk_usage, self.path)
        free_percent = (free / total) * 100 if total else 0.0
        status = _grade(free_percent, self.degraded_percent, self.unhealthy_percent, higher_is_worse=False)

        messages = {
            HealthStatus.HEALTHY: f"Disk space is healthy: {free_percent:.1f}% free",
            HealthStatus.DEGRADED: f"Disk space low: {free_percent:.1f}% free",
            HealthStatus.UNHEALTHY: f"Disk space critically low: {free_percent:.1f}% free",
        }
        return ProbeOutcome(
            status=status,
            description=messages[status],
            data={
                "path": self.path,
                "total_bytes": total,
                "used_bytes": used,
                "free_bytes": free,
                "free_percent": round(free_percent, 2),
            },
        )


class MemoryProbe:
    """Virtual memory usage of the host."""

    def __init__(self, degraded_percent: float = 80.0, unhealthy_percent: float = 90.0):
        if unhealthy_percent < degraded_percent:
            raise ValueError("unhealthy_percent must not be below degraded_percent")
        self.degraded_percent = degraded_percent
        self.unhealthy_percent = unhealthy_percent

    async def check(self, context: ProbeContext, signal: CancellationToken) -> ProbeOutcome:
        memory = psutil.virtual_memory()
        status = _grade(memory.percent, self.degraded_percent, self.unhealthy_percent, higher_is_worse=True)

        messages = {
            HealthStatus.HEALTHY: f"Memory usage is healthy: {memory.percent:.1f}%",
            HealthStatus.DEGRADED: f"Memory usage high: {memory.percent:.1f}%",
            HealthStatus.UNHEALTHY: f"Memory usage critically high: {memory.percent:.1f}%",
        }
        return ProbeOutcome(
            status=status,
            description=messages[status],
            data={
                "total_bytes": memory.total,
                "available_bytes": memory.available,
                "used_bytes": memory.used,
                "percent": memory.percent,
            },
        )
