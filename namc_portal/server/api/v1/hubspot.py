"""On-demand HubSpot sync for admins; the same run the ``namc-hubspot-sync`` CLI performs."""

from __future__ import annotations

from fastapi import APIRouter, Request

from namc_portal.core.database.repositories.admin_actions import AdminActionRepository
from namc_portal.core.errors import ExternalServiceError, NotFoundError
from namc_portal.core.logging_config import get_logger
from namc_portal.core.models.io.common import ApiResponse, ok
from namc_portal.integrations.hubspot.client import HubSpotClient
from namc_portal.server.core.config import settings
from namc_portal.server.services.deps import AdminUser, SessionDep, request_ip
from namc_portal.sync import HubSpotDataSyncer, SyncOptions, SyncStats

logger = get_logger(__name__)

router = APIRouter(tags=["hubspot"])


@router.post(
    "/sync",
    response_model=ApiResponse[SyncStats],
    summary="Run HubSpot Sync",
    description="Push members, projects and service requests to HubSpot and return the run statistics.",
    responses={503: {"description": "HUBSPOT_API_KEY is not configured"}},
)
async def run_sync(body: SyncOptions, request: Request, admin: AdminUser, session: SessionDep):
    if not settings.hubspot.api_key and not body.dry_run:
        raise ExternalServiceError("HubSpot", "HUBSPOT_API_KEY is not configured", status_code=503)

    session_factory = request.app.state.session_factory
    hubspot = HubSpotClient.from_config(settings.hubspot) if settings.hubspot.api_key else None
    try:
        stats = await HubSpotDataSyncer(session_factory, hubspot, body).run()
    finally:
        if hubspot is not None:
            await hubspot.aclose()

    request.app.state.last_sync_stats = stats
    await AdminActionRepository(session).record(
        admin_id=admin.id,
        action="HUBSPOT_SYNC",
        target_type="hubspot",
        details={
            "dry_run": stats.dry_run,
            "full_sync": stats.full_sync,
            "total_records": stats.total_records,
            "errors": stats.total_errors,
            "aborted": stats.aborted,
        },
        ip_address=request_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    message = "HubSpot sync completed" if not stats.has_errors else "HubSpot sync completed with errors"
    return ok(stats, request=request, message=message)


@router.get(
    "/sync",
    response_model=ApiResponse[SyncStats],
    summary="Last HubSpot Sync",
    responses={404: {"description": "No sync has run since startup"}},
)
async def last_sync(request: Request, admin: AdminUser):
    stats = getattr(request.app.state, "last_sync_stats", None)
    if stats is None:
        raise NotFoundError("HubSpot sync run")
    return ok(stats, request=request)
