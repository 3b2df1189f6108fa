"""
Admin endpoints.

Dashboard statistics, the audit log, member and content management and the
California contractor registry (search, edit, invite, export). Every write is
recorded as an ``AdminAction`` and mirrored to the audit logger.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import Response

from namc_portal.core.database.base import utc_now
from namc_portal.core.database.entities.content import Announcement, Resource
from namc_portal.core.database.entities.contractors import OutreachStatus
from namc_portal.core.database.entities.events import Event
from namc_portal.core.database.entities.projects import Project
from namc_portal.core.database.entities.users import MemberType, User
from namc_portal.core.database.repositories.admin_actions import AdminActionRepository
from namc_portal.core.database.repositories.content import AnnouncementRepository, ResourceRepository
from namc_portal.core.database.repositories.contractors import ContractorRepository
from namc_portal.core.database.repositories.events import EventRepository
from namc_portal.core.database.repositories.messages import MessageRepository
from namc_portal.core.database.repositories.projects import ProjectRepository, ServiceRequestRepository
from namc_portal.core.database.repositories.users import UserRepository
from namc_portal.core.errors import ConflictError, NotFoundError, ValidationError
from namc_portal.core.logging_config import get_logger
from namc_portal.core.models.io.admin import (
    AdminActionRead,
    ContractorStats,
    DashboardStats,
    MemberStats,
)
from namc_portal.core.models.io.common import ApiResponse, ok
from namc_portal.core.models.io.content import (
    AnnouncementCreate,
    AnnouncementRead,
    ResourceCreate,
    ResourceRead,
)
from namc_portal.core.models.io.contractors import (
    ContractorDetail,
    ContractorExportParams,
    ContractorRead,
    ContractorSearchParams,
    ContractorUpdate,
    LinkedMember,
)
from namc_portal.core.models.io.events import EventCreate, EventRead
from namc_portal.core.models.io.projects import ProjectCreate, ProjectRead, ProjectUpdate
from namc_portal.core.models.io.users import AdminMemberCreate, AdminMemberUpdate, UserRead
from namc_portal.security.passwords import hash_password
from namc_portal.server.services.contractor_export import export_filename, to_csv
from namc_portal.server.services.deps import AdminUser, EmailServiceDep, SessionDep, request_ip

logger = get_logger(__name__)

router = APIRouter(tags=["admin"])

RECENT_ACTIONS = 10
NEW_MEMBER_DAYS = 30


async def _audit(
    session,
    request: Request,
    admin: User,
    action: str,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    await AdminActionRepository(session).record(
        admin_id=admin.id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        details=details,
        ip_address=request_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


# ----------------------------------------------------------------------
# Dashboard and audit log
# ----------------------------------------------------------------------


@router.get(
    "/dashboard",
    response_model=ApiResponse[DashboardStats],
    summary="Admin Dashboard",
    description="Member, project, event, contractor and messaging counts plus the latest admin actions.",
)
async def dashboard(request: Request, admin: AdminUser, session: SessionDep):
    users = UserRepository(session)
    contractors = ContractorRepository(session)
    stats = DashboardStats(
        members=MemberStats(
            total=await users.count_all(),
            active=await users.count_active(),
            pending_verification=await users.count_pending_verification(),
            admins=await users.count_admins(),
            new_last_30_days=await users.count_joined_since(NEW_MEMBER_DAYS),
        ),
        projects_by_status=await ProjectRepository(session).count_by_status(),
        upcoming_events=await EventRepository(session).count_upcoming(),
        open_service_requests=await ServiceRequestRepository(session).count_open(),
        contractors=ContractorStats(
            total=await contractors.count(),
            with_email=await contractors.count_with_email(),
            by_outreach_status=await contractors.count_by_outreach_status(),
        ),
        unread_messages=await MessageRepository(session).count_all_unread(),
        recent_actions=[
            AdminActionRead.model_validate(a) for a in await AdminActionRepository(session).recent(RECENT_ACTIONS)
        ],
    )
    return ok(stats, request=request)


@router.get("/audit-logs", response_model=ApiResponse[List[AdminActionRead]], summary="Audit Log")
async def audit_logs(
    request: Request,
    admin: AdminUser,
    session: SessionDep,
    action: Optional[str] = None,
    admin_id: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
):
    result = await AdminActionRepository(session).search(action=action, admin_id=admin_id, page=page, limit=limit)
    return ok([AdminActionRead.model_validate(a) for a in result.items], request=request, page=result)


# ----------------------------------------------------------------------
# Members
# ----------------------------------------------------------------------


@router.post(
    "/members",
    response_model=ApiResponse[UserRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Member",
    description="Create a verified member account, optionally with the admin role.",
    responses={409: {"description": "Email already registered"}},
)
async def create_member(body: AdminMemberCreate, request: Request, admin: AdminUser, session: SessionDep):
    users = UserRepository(session)
    email = body.email.lower()
    if await users.get_by_email(email) is not None:
        raise ConflictError("An account with this email already exists")
    member = User(
        email=email,
        password_hash=hash_password(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
        company=body.company,
        phone=body.phone,
        member_type=MemberType.ADMIN.value if body.make_admin else MemberType.REGULAR.value,
        is_active=True,
        is_verified=True,
    )
    member = await users.create(member)
    await _audit(session, request, admin, "MEMBER_CREATED", "user", member.id, {"member_type": member.member_type})
    return ok(UserRead.model_validate(member), request=request, message="Member created")


@router.patch(
    "/members/{member_id}",
    response_model=ApiResponse[UserRead],
    summary="Update Member",
    description="Change a member's role, active flag or verification flag.",
)
async def update_member(
    member_id: str, body: AdminMemberUpdate, request: Request, admin: AdminUser, session: SessionDep
):
    users = UserRepository(session)
    member = await users.get_by_id(member_id)
    if member is None:
        raise NotFoundError("Member")
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if member.id == admin.id:
        if changes.get("is_active") is False:
            raise ValidationError("You cannot deactivate your own account")
        if changes.get("member_type", MemberType.ADMIN.value) != MemberType.ADMIN.value:
            raise ValidationError("You cannot remove your own admin role")
    for field, value in changes.items():
        setattr(member, field, value)
    member = await users.update(member)
    await _audit(session, request, admin, "MEMBER_UPDATED", "user", member.id, changes)
    return ok(UserRead.model_validate(member), request=request, message="Member updated")


# ----------------------------------------------------------------------
# Content
# ----------------------------------------------------------------------


@router.post(
    "/projects",
    response_model=ApiResponse[ProjectRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Project",
)
async def create_project(body: ProjectCreate, request: Request, admin: AdminUser, session: SessionDep):
    data = body.model_dump(exclude={"skills_required"})
    project = Project(created_by_id=admin.id, **data)
    project.set_skills_required_list(body.skills_required)
    project = await ProjectRepository(session).create(project)
    await _audit(session, request, admin, "PROJECT_CREATED", "project", project.id, {"title": project.title})
    return ok(ProjectRead.model_validate(project), request=request, message="Project created")


@router.patch("/projects/{project_id}", response_model=ApiResponse[ProjectRead], summary="Update Project")
async def update_project(
    project_id: str, body: ProjectUpdate, request: Request, admin: AdminUser, session: SessionDep
):
    projects = ProjectRepository(session)
    project = await projects.get_by_id(project_id)
    if project is None:
        raise NotFoundError("Project")
    changes = body.model_dump(exclude_unset=True)
    skills = changes.pop("skills_required", None)
    for field, value in changes.items():
        setattr(project, field, value)
    if skills is not None:
        project.set_skills_required_list(skills)
    project = await projects.update(project)
    await _audit(session, request, admin, "PROJECT_UPDATED", "project", project.id, body.model_dump(exclude_unset=True))
    return ok(ProjectRead.model_validate(project), request=request, message="Project updated")


@router.post(
    "/events",
    response_model=ApiResponse[EventRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Event",
)
async def create_event(body: EventCreate, request: Request, admin: AdminUser, session: SessionDep):
    event = await EventRepository(session).create(Event(created_by_id=admin.id, **body.model_dump()))
    await _audit(session, request, admin, "EVENT_CREATED", "event", event.id, {"title": event.title})
    return ok(EventRead.model_validate(event), request=request, message="Event created")


@router.post(
    "/announcements",
    response_model=ApiResponse[AnnouncementRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Announcement",
)
async def create_announcement(body: AnnouncementCreate, request: Request, admin: AdminUser, session: SessionDep):
    announcement = Announcement(
        created_by_id=admin.id,
        published_at=utc_now() if body.is_published else None,
        **body.model_dump(),
    )
    announcement = await AnnouncementRepository(session).create(announcement)
    await _audit(
        session, request, admin, "ANNOUNCEMENT_CREATED", "announcement", announcement.id, {"title": announcement.title}
    )
    return ok(AnnouncementRead.model_validate(announcement), request=request, message="Announcement created")


@router.post(
    "/resources",
    response_model=ApiResponse[ResourceRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create Resource",
)
async def create_resource(body: ResourceCreate, request: Request, admin: AdminUser, session: SessionDep):
    resource = await ResourceRepository(session).create(Resource(created_by_id=admin.id, **body.model_dump()))
    await _audit(session, request, admin, "RESOURCE_CREATED", "resource", resource.id, {"title": resource.title})
    return ok(ResourceRead.model_validate(resource), request=request, message="Resource created")


# ----------------------------------------------------------------------
# California contractors
# ----------------------------------------------------------------------


@router.get(
    "/contractors",
    response_model=ApiResponse[List[ContractorRead]],
    summary="Search Contractors",
    description="Filter, sort and page through the California contractor registry.",
)
async def list_contractors(
    request: Request,
    admin: AdminUser,
    session: SessionDep,
    params: Annotated[ContractorSearchParams, Query()],
):
    result = await ContractorRepository(session).search(params)
    return ok([ContractorRead.model_validate(c) for c in result.items], request=request, page=result)


@router.get(
    "/contractors/export",
    summary="Export Contractors",
    description="All contractors matching the filters, as a CSV download or a JSON list.",
    responses={200: {"content": {"text/csv": {}}, "description": "CSV file or JSON envelope"}},
)
async def export_contractors(
    request: Request,
    admin: AdminUser,
    session: SessionDep,
    params: Annotated[ContractorExportParams, Query()],
):
    contractors = await ContractorRepository(session).export(params)
    filters = params.model_dump(mode="json", exclude={"format", "sort_by", "sort_order"}, exclude_none=True)
    await _audit(
        session,
        request,
        admin,
        "CONTRACTOR_DATA_EXPORTED",
        "california_contractor",
        None,
        {"format": params.format, "count": len(contractors), "filters": filters},
    )
    logger.info(f"Admin {admin.id} exported {len(contractors)} contractors as {params.format}")

    if params.format == "json":
        data = [ContractorRead.model_validate(c) for c in contractors]
        return ok(data, request=request, message=f"Exported {len(contractors)} contractors")

    return Response(
        content=to_csv(contractors),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(utc_now())}"'},
    )


async def _contractor_or_404(session, contractor_id: str):
    contractor = await ContractorRepository(session).get_by_id(contractor_id)
    if contractor is None:
        raise NotFoundError("Contractor")
    return contractor


@router.get("/contractors/{contractor_id}", response_model=ApiResponse[ContractorDetail], summary="Get Contractor")
async def get_contractor(contractor_id: str, request: Request, admin: AdminUser, session: SessionDep):
    contractor = await _contractor_or_404(session, contractor_id)
    detail = ContractorDetail.model_validate(contractor)
    if contractor.namc_member_id:
        member = await UserRepository(session).get_by_id(contractor.namc_member_id)
        if member is not None:
            detail.namc_member = LinkedMember(
                id=member.id,
                first_name=member.first_name,
                last_name=member.last_name,
                email=member.email,
                company=member.company,
            )
    return ok(detail, request=request)


@router.put(
    "/contractors/{contractor_id}",
    response_model=ApiResponse[ContractorRead],
    summary="Update Contractor",
    description="Update outreach and contact fields; fields outside the allow-list are ignored.",
)
async def update_contractor(
    contractor_id: str, body: ContractorUpdate, request: Request, admin: AdminUser, session: SessionDep
):
    contractor = await _contractor_or_404(session, contractor_id)
    changes = body.model_dump(exclude_unset=True)
    tags = changes.pop("campaign_tags", None)
    for field, value in changes.items():
        if isinstance(value, OutreachStatus):
            value = value.value
        setattr(contractor, field, value)
    if tags is not None:
        contractor.set_campaign_tags_list(tags)
    contractor = await ContractorRepository(session).update(contractor)
    await _audit(
        session,
        request,
        admin,
        "CONTRACTOR_UPDATED",
        "california_contractor",
        contractor.id,
        body.model_dump(mode="json", exclude_unset=True),
    )
    return ok(ContractorRead.model_validate(contractor), request=request, message="Contractor updated")


@router.post(
    "/contractors/{contractor_id}/invite",
    response_model=ApiResponse[ContractorRead],
    summary="Invite Contractor",
    description="Email a membership invitation and record the contact attempt.",
    responses={400: {"description": "Contractor has no email address"}},
)
async def invite_contractor(
    contractor_id: str, request: Request, admin: AdminUser, session: SessionDep, email_service: EmailServiceDep
):
    contractor = await _contractor_or_404(session, contractor_id)
    if not contractor.email:
        raise ValidationError("Contractor has no email address")
    result = await email_service.send_contractor_invitation(contractor.email, contractor.business_name)
    if not result.success:
        raise ValidationError(result.error or "Invitation could not be sent", {"rate_limited": result.rate_limited})

    contractor.contact_attempts += 1
    contractor.last_contact_date = utc_now()
    if contractor.outreach_status == OutreachStatus.NOT_CONTACTED.value:
        contractor.outreach_status = OutreachStatus.CONTACTED.value
    contractor = await ContractorRepository(session).update(contractor)
    await _audit(
        session,
        request,
        admin,
        "CONTRACTOR_INVITED",
        "california_contractor",
        contractor.id,
        {"email": contractor.email, "message_id": result.message_id},
    )
    return ok(ContractorRead.model_validate(contractor), request=request, message="Invitation sent")
