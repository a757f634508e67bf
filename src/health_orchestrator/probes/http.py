"""HTTP endpoint probe."""

from __future__ import annotations

import time

import httpx

from ..domain.models import ProbeContext, ProbeOutcome
from ..engine.cancellation import CancellationToken

HTTP_CLIENT_RESOURCE = "http_client"


class HttpProbe:
    """Checks that an HTTP endpoint answers with the expected status.

    When the run scope provides an ``http_client`` resource (an
    ``httpx.AsyncClient``), the probe reuses it; otherwise it opens a
    short-lived client of its own.
    """

    def __init__(
        self,
        url: str,
        expected_status: int = 200,
        degraded_latency_ms: float | None = None,
        request_timeout: float = 10.0,
        method: str = "GET",
    ):
        self.url = url
        self.expected_status = expected_status
        self.degraded_latency_ms = degraded_latency_ms
        self.request_timeout = request_timeout
        self.method = method

    async def check(self, context: ProbeContext, signal: CancellationToken) -> ProbeOutcome:
        shared = context.scope.get(HTTP_CLIENT_RESOURCE)
        start_time = time.perf_counter()

        if isinstance(shared, httpx.AsyncClient):
            response = await shared.request(self.method, self.url, timeout=self.request_timeout)
        else:
            async with httpx.AsyncClient(timeout=self.request_timeout) as client:
                response = await client.request(self.method, self.url)

        latency_ms = (time.perf_counter() - start_time) * 1000
        data = {
            "url": self.url,
            "status_code": response.status_code,
            "latency_ms": round(latency_ms, 1),
        }

        if response.status_code != self.expected_status:
            return ProbeOutcome.unhealthy(
                f"Expected {self.expected_status}, got {response.status_code}",
                data={**data, "expected_status": self.expected_status},
            )

        if self.degraded_latency_ms is not None and latency_ms > self.degraded_latency_ms:
            return ProbeOutcome.degraded(
                f"Responded in {latency_ms:.0f}ms (budget {self.degraded_latency_ms:.0f}ms)",
                data=data,
            )

        return ProbeOutcome.healthy(f"{response.status_code} OK", data=data)
