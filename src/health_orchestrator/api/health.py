"""Health check endpoints for FastAPI."""

from typing import Any

from fastapi import APIRouter, Query, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST

from ..domain.exceptions import OperationCancelledException
from ..domain.models import HealthReport, HealthStatus
from ..engine.cancellation import CancellationToken, CancelReason
from ..engine.orchestrator import HealthCheckOrchestrator, has_any_tag
from ..observability.logging import get_logger
from ..observability.metrics import HealthMetrics

logger = get_logger(__name__)


def _report_response(report: HealthReport, include_details: bool) -> JSONResponse:
    content: dict[str, Any] = report.to_dict()
    if not include_details:
        content = {"status": content["status"], "timestamp": content["timestamp"]}

    code = (
        status.HTTP_503_SERVICE_UNAVAILABLE
        if report.status is HealthStatus.UNHEALTHY
        else status.HTTP_200_OK
    )
    return JSONResponse(status_code=code, content=content)


def create_health_router(
    orchestrator: HealthCheckOrchestrator,
    metrics: HealthMetrics | None = None,
    request_timeout: float | None = 30.0,
    include_details: bool = True,
) -> APIRouter:
    """Create health check endpoints for FastAPI.

    Args:
        orchestrator: Orchestrator that runs the registered checks
        metrics: Metrics collector exposed on ``/health/metrics``
        request_timeout: Deadline for an on-demand run, in seconds
        include_details: Whether to include per-check entries

    Returns:
        FastAPI router with health endpoints
    """
    router = APIRouter(prefix="/health", tags=["health"])
    metrics = metrics or orchestrator.metrics

    async def run_checks(tags: list[str] | None) -> JSONResponse:
        predicate = has_any_tag(*tags) if tags else None
        with CancellationToken() as signal:
            if request_timeout:
                signal.cancel_after(request_timeout, CancelReason.CALLER)
            try:
                report = await orchestrator.run(predicate, signal)
            except OperationCancelledException as exc:
                logger.warning("On-demand health check run cancelled", reason=exc.reason.value)
                return JSONResponse(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    content={
                        "status": HealthStatus.UNHEALTHY.value,
                        "message": "Health check run did not complete in time",
                    },
                )
        return _report_response(report, include_details)

    @router.get("")
    async def health_check() -> JSONResponse:
        """Run every registered check."""
        return await run_checks(None)

    @router.get("/ready")
    async def readiness_check(tag: list[str] | None = Query(default=None)) -> JSONResponse:
        """Run the checks carrying any of the given tags."""
        return await run_checks(tag)

    @router.get("/live")
    async def liveness_check() -> dict[str, str]:
        """The process is up; no checks are run."""
        return {"status": "alive"}

    @router.get("/metrics")
    async def metrics_endpoint() -> Response:
        """Prometheus exposition of the health metrics."""
        return Response(content=metrics.export(), media_type=CONTENT_TYPE_LATEST)

    return router
