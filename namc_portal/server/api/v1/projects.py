"""Project opportunities visible to members."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from namc_portal.core.database.repositories.projects import ProjectRepository
from namc_portal.core.errors import NotFoundError
from namc_portal.core.models.io.common import ApiResponse, ok
from namc_portal.core.models.io.projects import ProjectRead
from namc_portal.server.services.deps import CurrentUser, SessionDep

router = APIRouter(tags=["projects"])


@router.get(
    "",
    response_model=ApiResponse[List[ProjectRead]],
    summary="List Projects",
    description="Public and members-only projects that are published or open for bids.",
)
async def list_projects(
    request: Request,
    user: CurrentUser,
    session: SessionDep,
    category: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
):
    result = await ProjectRepository(session).list_for_members(
        category=category, search=search, page=page, limit=limit
    )
    return ok([ProjectRead.model_validate(p) for p in result.items], request=request, page=result)


@router.get("/{project_id}", response_model=ApiResponse[ProjectRead], summary="Get Project")
async def get_project(project_id: str, request: Request, user: CurrentUser, session: SessionDep):
    project = await ProjectRepository(session).get_for_members(project_id)
    if project is None:
        raise NotFoundError("Project")
    return ok(ProjectRead.model_validate(project), request=request)
