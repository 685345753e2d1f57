"""Health check endpoints for monitoring and deployment verification."""

import time

from fastapi import APIRouter, Response, status

from src.api.deps import DataStoreDep
from src.core.config import get_settings
from src.core.database import check_database_connection
from src.schemas.common import CheckResult, HealthResponse, HealthStatus, ReadinessResponse

router = APIRouter(tags=["health"])


def _configuration_check(name: str, configured: bool, required: bool) -> CheckResult:
    # unconfigured integrations only fail readiness in production
    return CheckResult(
        name=name,
        healthy=configured or not required,
        error=None if configured else "not configured",
    )


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
    description="Check the relational store and payment/storage configuration. Used for readiness probes.",
)
async def readiness_check(response: Response, store: DataStoreDep) -> ReadinessResponse:
    """Check readiness of the database and the payment and storage integrations.

    Returns 503 if the database cannot answer a trivial query, or, in
    production, if Stripe or Supabase credentials are missing.

    Args:
        response: FastAPI response object for setting status code.
        store: Relational data store gateway.

    Returns:
        ReadinessResponse: Status of all dependency checks.
    """
    settings = get_settings()

    start_time = time.perf_counter()
    db_result = await check_database_connection(store)
    latency_ms = (time.perf_counter() - start_time) * 1000

    checks = [
        CheckResult(
            name="database",
            healthy=db_result["healthy"],
            latency_ms=round(latency_ms, 2),
            error=db_result.get("error"),
        ),
        _configuration_check(
            "payments",
            bool(settings.stripe_secret_key and settings.stripe_webhook_secret),
            settings.is_production,
        ),
        _configuration_check(
            "storage",
            bool(settings.supabase_url and settings.supabase_secret_key),
            settings.is_production,
        ),
    ]

    all_healthy = all(check.healthy for check in checks)
    overall_status = HealthStatus.HEALTHY if all_healthy else HealthStatus.UNHEALTHY

    if not all_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(status=overall_status, checks=checks)
