"""
Health Check Endpoints.

Liveness (``/health``), version information, and the detailed readiness
report under ``/api/v1/health`` covering the database, Redis, HubSpot and
process memory.
"""

from __future__ import annotations

import resource
import sys
import time

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from namc_portal.core.database.session import ping
from namc_portal.core.logging_config import get_logger
from namc_portal.core.models.io.common import iso_timestamp, ok
from namc_portal.core.models.io.health import CheckStatus, HealthCheck, HealthReport, OverallStatus
from namc_portal.integrations.hubspot.client import HubSpotClient
from namc_portal.integrations.hubspot.errors import HubSpotApiError
from namc_portal.server.core import constant
from namc_portal.server.core.config import settings
from namc_portal.server.services.deps import AdminUser, RateLimiterDep, SessionDep

logger = get_logger(__name__)

router = APIRouter()
api_router = APIRouter(tags=["health"])

STARTED_AT = time.monotonic()
DATABASE_SLOW_MS = 1000
HUBSPOT_SLOW_MS = 2000
MEMORY_WARN_MB = 1024


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


@router.get(
    "/health",
    summary="Health Check",
    description="Check the operational status of the API server.",
    response_description="Status object.",
)
async def health_check():
    """Liveness probe: the process is up and serving requests."""
    return {"status": "ok"}


@router.get(
    "/version",
    summary="Get Version",
    description="Retrieve version information for the API server.",
    response_description="Version object.",
)
async def version():
    return {"version": constant.VERSION, "schema_version": "v1"}


async def check_database(session) -> HealthCheck:
    start = time.perf_counter()
    try:
        await ping(session)
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database health check failed: {e}")
        return HealthCheck(status=CheckStatus.FAIL, response_time_ms=_elapsed_ms(start), message=str(e))
    elapsed = _elapsed_ms(start)
    if elapsed > DATABASE_SLOW_MS:
        return HealthCheck(status=CheckStatus.WARN, response_time_ms=elapsed, message="Database responding slowly")
    return HealthCheck(status=CheckStatus.PASS, response_time_ms=elapsed)


async def check_redis(limiter) -> HealthCheck:
    if not settings.redis.url:
        return HealthCheck(status=CheckStatus.WARN, message="REDIS_URL not configured; using in-memory rate limiting")
    start = time.perf_counter()
    details = await limiter.store.describe()
    if details.get("connected"):
        return HealthCheck(status=CheckStatus.PASS, response_time_ms=_elapsed_ms(start), details=details)
    return HealthCheck(
        status=CheckStatus.WARN,
        response_time_ms=_elapsed_ms(start),
        message="Redis unreachable; rate limiting degraded to in-memory state",
        details=details,
    )


async def check_hubspot() -> HealthCheck:
    if not settings.hubspot.api_key:
        return HealthCheck(status=CheckStatus.WARN, message="HUBSPOT_API_KEY not configured")
    start = time.perf_counter()
    try:
        async with HubSpotClient.from_config(settings.hubspot) as client:
            account = await client.get_account_details()
    except HubSpotApiError as e:
        logger.error(f"HubSpot health check failed: {e}")
        return HealthCheck(status=CheckStatus.FAIL, response_time_ms=_elapsed_ms(start), message=str(e))
    elapsed = _elapsed_ms(start)
    details = {"portal_id": account.portal_id}
    if elapsed > HUBSPOT_SLOW_MS:
        return HealthCheck(
            status=CheckStatus.WARN, response_time_ms=elapsed, message="HubSpot responding slowly", details=details
        )
    return HealthCheck(status=CheckStatus.PASS, response_time_ms=elapsed, details=details)


def check_memory() -> HealthCheck:
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS, kilobytes elsewhere
    rss_mb = max_rss / (1024 * 1024) if sys.platform == "darwin" else max_rss / 1024
    details = {"max_rss_mb": round(rss_mb, 1)}
    if rss_mb > MEMORY_WARN_MB:
        return HealthCheck(status=CheckStatus.WARN, message="High memory usage", details=details)
    return HealthCheck(status=CheckStatus.PASS, details=details)


def overall_status(checks: dict[str, HealthCheck]) -> OverallStatus:
    statuses = {check.status for check in checks.values()}
    if CheckStatus.FAIL in statuses:
        return OverallStatus.UNHEALTHY
    if CheckStatus.WARN in statuses:
        return OverallStatus.DEGRADED
    return OverallStatus.HEALTHY


async def build_report(session, limiter) -> HealthReport:
    checks = {
        "database": await check_database(session),
        "redis": await check_redis(limiter),
        "hubspot": await check_hubspot(),
        "memory": check_memory(),
    }
    return HealthReport(
        status=overall_status(checks),
        timestamp=iso_timestamp(),
        version=constant.VERSION,
        environment=settings.environment,
        uptime_seconds=round(time.monotonic() - STARTED_AT, 1),
        checks=checks,
    )


@api_router.get(
    "",
    summary="Detailed Health Report",
    description="Check the database, Redis, HubSpot and memory. Answers 503 when any check fails.",
)
async def detailed_health(session: SessionDep, limiter: RateLimiterDep):
    report = await build_report(session, limiter)
    code = status.HTTP_503_SERVICE_UNAVAILABLE if report.status is OverallStatus.UNHEALTHY else status.HTTP_200_OK
    return JSONResponse(status_code=code, content=report.model_dump(mode="json"))


@api_router.head("", summary="Health Probe", description="Status code only: 200 when usable, 503 when unhealthy.")
async def health_probe(session: SessionDep, limiter: RateLimiterDep):
    report = await build_report(session, limiter)
    code = status.HTTP_503_SERVICE_UNAVAILABLE if report.status is OverallStatus.UNHEALTHY else status.HTTP_200_OK
    return Response(status_code=code)


@api_router.get("/redis", summary="Rate Limiter Backend", description="Admin only: limiter store details.")
async def redis_health(request: Request, admin: AdminUser, limiter: RateLimiterDep):
    details = await limiter.store.describe()
    return ok(details, request=request)
