"""Announcements and member resources."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from namc_portal.core.database.repositories.content import AnnouncementRepository, ResourceRepository
from namc_portal.core.models.io.common import ApiResponse, ok
from namc_portal.core.models.io.content import AnnouncementRead, ResourceRead
from namc_portal.server.services.deps import OptionalUser, SessionDep

announcements_router = APIRouter(tags=["announcements"])
resources_router = APIRouter(tags=["resources"])


@announcements_router.get(
    "",
    response_model=ApiResponse[List[AnnouncementRead]],
    summary="Active Announcements",
    description="Published announcements that have not expired, newest first.",
)
async def list_announcements(request: Request, session: SessionDep, limit: int = Query(default=20, ge=1, le=100)):
    announcements = await AnnouncementRepository(session).active(limit)
    return ok([AnnouncementRead.model_validate(a) for a in announcements], request=request)


@resources_router.get(
    "",
    response_model=ApiResponse[List[ResourceRead]],
    summary="List Resources",
    description="Public resources for everyone; signed-in members also see members-only resources.",
)
async def list_resources(
    request: Request, session: SessionDep, user: OptionalUser, category: Optional[str] = None
):
    resources = await ResourceRepository(session).visible(include_private=user is not None, category=category)
    return ok([ResourceRead.model_validate(r) for r in resources], request=request)
