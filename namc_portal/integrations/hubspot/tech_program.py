"""
TECH Clean California program service.

Program contractors are HubSpot contacts carrying a ``tech_program_status``
property; their projects are stored locally. Admins see every contractor
and project, members only their own.
"""

from __future__ import annotations

from collections import Counter
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from namc_portal.core.database.entities.tech_projects import TechProject
from namc_portal.core.database.entities.users import User
from namc_portal.core.database.repositories.tech_projects import TechProjectRepository
from namc_portal.core.logging_config import get_logger
from namc_portal.core.models.io.tech import (
    TechContractor,
    TechContractorStatus,
    TechDashboard,
    TechDashboardSummary,
    TechEnrollRequest,
    TechProjectCreate,
)

from .client import HubSpotClient
from .models import HubSpotObject

logger = get_logger(__name__)

TECH_STATUS_PROPERTY = "tech_program_status"
TECH_CERTIFICATIONS_PROPERTY = "tech_certifications"
TECH_CONTACT_PROPERTIES = (
    "email",
    "firstname",
    "lastname",
    "company",
    "phone",
    TECH_STATUS_PROPERTY,
    TECH_CERTIFICATIONS_PROPERTY,
)
CONTACT_PAGE_SIZE = 100
RECENT_CONTRACTORS = 5


def contact_to_tech_contractor(contact: HubSpotObject) -> TechContractor:
    """Map a HubSpot contact onto a TECH contractor record."""
    name = f"{contact.prop('firstname')} {contact.prop('lastname')}".strip()
    raw_status = contact.prop(TECH_STATUS_PROPERTY).upper()
    try:
        status = TechContractorStatus(raw_status)
    except ValueError:
        status = TechContractorStatus.PENDING
    certifications = [c.strip() for c in contact.prop(TECH_CERTIFICATIONS_PROPERTY).split(",") if c.strip()]
    return TechContractor(
        id=contact.id,
        name=name or contact.prop("email"),
        email=contact.prop("email"),
        company=contact.prop("company"),
        phone=contact.prop("phone"),
        status=status,
        certifications=certifications,
        hubspot_id=contact.id,
        created_at=contact.created_at,
        updated_at=contact.updated_at,
    )


def _is_admin(user: User) -> bool:
    return user.is_admin


class TechProgramService:
    def __init__(self, hubspot: Optional[HubSpotClient], session: AsyncSession) -> None:
        self.hubspot = hubspot
        self.projects = TechProjectRepository(session)

    async def list_contractors(self, user: User) -> List[TechContractor]:
        contacts = await self.hubspot.list_contacts(limit=CONTACT_PAGE_SIZE, properties=TECH_CONTACT_PROPERTIES)
        contractors = [contact_to_tech_contractor(c) for c in contacts if c.properties.get(TECH_STATUS_PROPERTY)]
        if not _is_admin(user):
            contractors = [c for c in contractors if c.email.lower() == user.email.lower()]
        logger.debug(f"TECH contractors visible to {user.id}: {len(contractors)}")
        return contractors

    async def enroll(self, user: User, request: TechEnrollRequest) -> TechContractor:
        """Register the caller as an active TECH contractor in HubSpot."""
        contact, created = await self.hubspot.upsert_contact(
            user.email,
            {
                "firstname": user.first_name,
                "lastname": user.last_name,
                "company": request.company or user.company,
                "phone": request.phone or user.phone,
                TECH_STATUS_PROPERTY: TechContractorStatus.ACTIVE.value,
                TECH_CERTIFICATIONS_PROPERTY: ",".join(request.certifications) or None,
            },
        )
        logger.info(f"TECH enrollment for user {user.id}: hubspot_id={contact.id} created={created}")
        return contact_to_tech_contractor(contact)

    async def list_projects(self, user: User) -> List[TechProject]:
        return await self.projects.for_contractor(None if _is_admin(user) else user.id)

    async def create_project(self, user: User, request: TechProjectCreate) -> TechProject:
        project = TechProject(contractor_id=user.id, status="inquiry", **request.model_dump())
        return await self.projects.create(project)

    async def dashboard(self, user: User) -> TechDashboard:
        contractors = await self.list_contractors(user)
        projects = await self.list_projects(user)

        by_status = {status.value: 0 for status in TechContractorStatus}
        by_status.update(Counter(c.status.value for c in contractors))
        recent = sorted(
            contractors,
            key=lambda c: (c.updated_at or c.created_at).timestamp() if (c.updated_at or c.created_at) else 0.0,
            reverse=True,
        )[:RECENT_CONTRACTORS]

        summary = TechDashboardSummary(
            total_contractors=len(contractors),
            active_contractors=by_status[TechContractorStatus.ACTIVE.value],
            pending_contractors=by_status[TechContractorStatus.PENDING.value],
            total_certifications=sum(len(c.certifications) for c in contractors),
            total_projects=len(projects),
            total_estimated_incentive=round(sum(p.estimated_incentive for p in projects), 2),
        )
        return TechDashboard(
            summary=summary,
            contractors_by_status=by_status,
            projects_by_status=dict(Counter(p.status for p in projects)),
            recent_contractors=recent,
        )
