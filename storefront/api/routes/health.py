"""Health check endpoints for monitoring and deployment verification."""

import time

from fastapi import APIRouter, Response, status
from fastapi.responses import PlainTextResponse

from storefront.api.middleware.latency_logging import get_latency_stats
from storefront.core.mercadopago import check_processor_configuration
from storefront.core.supabase import check_database_connection
from storefront.schemas.common import CheckResult, HealthResponse, HealthStatus, ReadinessResponse

router = APIRouter(tags=["health"])


@router.get(
    "/",
    response_class=PlainTextResponse,
    summary="Root liveness message",
    description="Plain-text message kept for uptime monitors that poll the root URL.",
)
async def root() -> str:
    """Return a plain-text liveness message."""
    return "Mercado Pago Backend is running!"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Basic health check to verify the service is running. Used for liveness probes.",
)
async def health_check() -> HealthResponse:
    """Return basic health status.

    This endpoint should always return 200 if the service is running.
    It does not check external dependencies.

    Returns:
        HealthResponse: Current health status with timestamp.
    """
    return HealthResponse(status=HealthStatus.HEALTHY)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "All dependencies healthy"},
        503: {"description": "One or more dependencies unhealthy"},
    },
    summary="Readiness check",
    description="Check if all dependencies are available. Used for readiness probes.",
)
async def readiness_check(response: Response) -> ReadinessResponse:
    """Check readiness of all dependencies.

    Verifies that the service can handle requests by checking:
    - Database connectivity (Supabase)
    - Payment processor credentials (Mercado Pago)

    Returns 503 if any dependency is unhealthy.

    Args:
        response: FastAPI response object for setting status code.

    Returns:
        ReadinessResponse: Status of all dependency checks.
    """
    checks: list[CheckResult] = []

    start_time = time.perf_counter()
    db_result = await check_database_connection()
    latency_ms = (time.perf_counter() - start_time) * 1000

    checks.append(
        CheckResult(
            name="database",
            healthy=db_result["healthy"],
            latency_ms=round(latency_ms, 2),
            error=db_result.get("error"),
        )
    )

    # Credentials only; a live call would create processor-side objects
    processor_result = check_processor_configuration()
    checks.append(
        CheckResult(
            name="payment_processor",
            healthy=processor_result["healthy"],
            error=processor_result.get("error"),
        )
    )

    all_healthy = all(check.healthy for check in checks)
    overall_status = HealthStatus.HEALTHY if all_healthy else HealthStatus.UNHEALTHY

    if not all_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(status=overall_status, checks=checks)


@router.get(
    "/health/latency",
    summary="Request latency stats",
    description="Aggregated in-process request latencies, overall and per route.",
)
async def latency_check() -> dict:
    """Return latency stats recorded by the logging middleware."""
    stats = get_latency_stats()
    return {"overall": stats.get_stats(), "by_path": stats.get_stats_by_path()}
