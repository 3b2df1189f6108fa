"""
TECH Clean California endpoints.

Contractors come from HubSpot; projects are stored in the portal database.
Admins see the whole program, members only their own records.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Request, status

from namc_portal.core.errors import ExternalServiceError
from namc_portal.core.logging_config import get_logger
from namc_portal.core.models.io.common import ApiResponse, ok
from namc_portal.core.models.io.tech import (
    TechContractor,
    TechDashboard,
    TechEnrollRequest,
    TechProjectCreate,
    TechProjectRead,
)
from namc_portal.integrations.hubspot.errors import HubSpotApiError
from namc_portal.integrations.hubspot.tech_program import TechProgramService
from namc_portal.server.services.deps import CurrentUser, HubSpotDep, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["tech"])


def _hubspot_failure(e: HubSpotApiError) -> ExternalServiceError:
    logger.error(f"HubSpot call for TECH program failed: {e}")
    return ExternalServiceError("HubSpot", str(e), {"status_code": e.status_code, "details": e.details})


@router.get("/contractors", response_model=ApiResponse[List[TechContractor]], summary="TECH Contractors")
async def list_contractors(request: Request, user: CurrentUser, session: SessionDep, hubspot: HubSpotDep):
    try:
        contractors = await TechProgramService(hubspot, session).list_contractors(user)
    except HubSpotApiError as e:
        raise _hubspot_failure(e) from e
    return ok(contractors, request=request)


@router.post(
    "/contractors",
    response_model=ApiResponse[TechContractor],
    status_code=status.HTTP_201_CREATED,
    summary="Enroll In TECH",
    description="Register the caller as an active TECH contractor in HubSpot.",
)
async def enroll(
    body: TechEnrollRequest, request: Request, user: CurrentUser, session: SessionDep, hubspot: HubSpotDep
):
    try:
        contractor = await TechProgramService(hubspot, session).enroll(user, body)
    except HubSpotApiError as e:
        raise _hubspot_failure(e) from e
    return ok(contractor, request=request, message="Enrolled in TECH Clean California")


@router.get("/projects", response_model=ApiResponse[List[TechProjectRead]], summary="TECH Projects")
async def list_projects(request: Request, user: CurrentUser, session: SessionDep):
    projects = await TechProgramService(None, session).list_projects(user)
    return ok([TechProjectRead.model_validate(p) for p in projects], request=request)


@router.post(
    "/projects",
    response_model=ApiResponse[TechProjectRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create TECH Project",
)
async def create_project(body: TechProjectCreate, request: Request, user: CurrentUser, session: SessionDep):
    project = await TechProgramService(None, session).create_project(user, body)
    logger.info(f"TECH project {project.id} ({project.type}) created by {user.id}")
    return ok(TechProjectRead.model_validate(project), request=request, message="TECH project created")


@router.get("/dashboard", response_model=ApiResponse[TechDashboard], summary="TECH Dashboard")
async def dashboard(request: Request, user: CurrentUser, session: SessionDep, hubspot: HubSpotDep):
    try:
        data = await TechProgramService(hubspot, session).dashboard(user)
    except HubSpotApiError as e:
        raise _hubspot_failure(e) from e
    return ok(data, request=request)
