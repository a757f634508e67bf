"""Publisher that POSTs each report to an HTTP endpoint."""

from __future__ import annotations

import httpx

from ..domain.models import HealthReport
from ..engine.cancellation import CancellationToken
from ..observability.logging import get_correlation_id


class WebhookPublisher:
    """POSTs ``report.to_dict()`` as JSON; a non-2xx response is a failure."""

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
        name: str = "webhook",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.headers = headers or {}
        self.timeout = timeout
        self.name = name
        self._transport = transport

    async def publish(self, report: HealthReport, signal: CancellationToken) -> None:
        headers = dict(self.headers)
        correlation_id = get_correlation_id()
        if correlation_id:
            headers.setdefault("X-Correlation-ID", correlation_id)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.url, json=report.to_dict(), headers=headers)
            response.raise_for_status()
