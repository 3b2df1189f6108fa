"""Service requests: members asking NAMC for bonding, financing or estimating help."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Query, Request, status

from namc_portal.core.database.entities.projects import ServiceRequest
from namc_portal.core.database.repositories.projects import ServiceRequestRepository
from namc_portal.core.logging_config import get_logger
from namc_portal.core.models.io.common import ApiResponse, ok
from namc_portal.core.models.io.projects import ServiceRequestCreate, ServiceRequestRead
from namc_portal.security.auth_service import is_admin
from namc_portal.server.core.config import settings
from namc_portal.server.services.deps import CurrentUser, EmailServiceDep, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["service-requests"])


@router.post(
    "",
    response_model=ApiResponse[ServiceRequestRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Service Request",
    description="Open a service request; the NAMC office is notified by email.",
)
async def create_service_request(
    body: ServiceRequestCreate,
    request: Request,
    user: CurrentUser,
    session: SessionDep,
    email_service: EmailServiceDep,
):
    service_request = ServiceRequest(requester_id=user.id, **body.model_dump())
    service_request = await ServiceRequestRepository(session).create(service_request)
    logger.info(f"Service request {service_request.id} ({service_request.service_type}) opened by {user.id}")

    result = await email_service.send_admin_notification(
        settings.email.reply_to,
        f"New service request: {service_request.title}",
        f"{user.full_name} ({user.email}) requested {service_request.service_type} "
        f"with {service_request.urgency} urgency.",
    )
    if not result.success:
        logger.warning(f"Admin notification for service request {service_request.id} failed: {result.error}")
    return ok(ServiceRequestRead.model_validate(service_request), request=request, message="Service request submitted")


@router.get(
    "",
    response_model=ApiResponse[List[ServiceRequestRead]],
    summary="List Service Requests",
    description="The caller's own requests; admins see everyone's.",
)
async def list_service_requests(
    request: Request,
    user: CurrentUser,
    session: SessionDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
):
    result = await ServiceRequestRepository(session).search(
        requester_id=None if is_admin(user) else user.id, page=page, limit=limit
    )
    return ok([ServiceRequestRead.model_validate(r) for r in result.items], request=request, page=result)
