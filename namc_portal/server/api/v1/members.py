"""
Member directory and profile endpoints.

The directory lists active, verified members; each member can read and edit
their own full profile.
"""

from __future__ import annotations

from typing import Annotated, List

from fastapi import APIRouter, Query, Request

from namc_portal.core.database.repositories.users import UserRepository
from namc_portal.core.errors import NotFoundError
from namc_portal.core.logging_config import get_logger
from namc_portal.core.models.io.common import ApiResponse, ok
from namc_portal.core.models.io.users import DirectoryQuery, MemberSummary, ProfileUpdate, UserRead
from namc_portal.server.services.deps import CurrentUser, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["members"])


@router.get(
    "",
    response_model=ApiResponse[List[MemberSummary]],
    summary="Member Directory",
    description="Search active, verified members by name, company or email; filter by city and skill.",
)
async def directory(
    request: Request,
    user: CurrentUser,
    session: SessionDep,
    query: Annotated[DirectoryQuery, Query()],
):
    page = await UserRepository(session).search_directory(
        search=query.search, city=query.city, skill=query.skill, page=query.page, limit=query.limit
    )
    items = [MemberSummary.model_validate(member) for member in page.items]
    return ok(items, request=request, page=page)


@router.get("/me/profile", response_model=ApiResponse[UserRead], summary="My Profile")
async def my_profile(request: Request, user: CurrentUser):
    return ok(UserRead.model_validate(user), request=request)


@router.patch(
    "/me/profile",
    response_model=ApiResponse[UserRead],
    summary="Update My Profile",
    description="Change profile fields; omitted fields are left as they are, empty URLs clear the field.",
)
async def update_my_profile(body: ProfileUpdate, request: Request, user: CurrentUser, session: SessionDep):
    changes = body.model_dump(exclude_unset=True)
    skills = changes.pop("skills", None)
    for field, value in changes.items():
        setattr(user, field, value)
    if skills is not None:
        user.set_skills_list(skills)
    user = await UserRepository(session).update(user)
    logger.info(f"Member {user.id} updated profile fields: {sorted(body.model_fields_set)}")
    return ok(UserRead.model_validate(user), request=request, message="Profile updated successfully")


@router.get(
    "/{member_id}",
    response_model=ApiResponse[MemberSummary],
    summary="Member Profile",
    responses={404: {"description": "Member not found or inactive"}},
)
async def get_member(member_id: str, request: Request, user: CurrentUser, session: SessionDep):
    member = await UserRepository(session).get_by_id(member_id)
    if member is None or not member.is_active:
        raise NotFoundError("Member")
    return ok(MemberSummary.model_validate(member), request=request)
