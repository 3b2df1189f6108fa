"""Project and service request repositories."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.projects import (
    Project,
    ProjectStatus,
    ProjectVisibility,
    ServiceRequest,
    ServiceRequestStatus,
)
from .base import Page, QueryBuilder, SQLModelRepository

MEMBER_VISIBLE = (ProjectVisibility.PUBLIC.value, ProjectVisibility.MEMBERS_ONLY.value)
MEMBER_STATUSES = (ProjectStatus.PUBLISHED.value, ProjectStatus.BIDDING_OPEN.value)


class ProjectRepository(SQLModelRepository[Project]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Project)

    def _member_visible(self):
        return select(Project).where(Project.visibility.in_(MEMBER_VISIBLE), Project.status.in_(MEMBER_STATUSES))

    async def list_for_members(
        self, *, category: Optional[str] = None, search: Optional[str] = None, page: int = 1, limit: int = 20
    ) -> Page[Project]:
        stmt = self._member_visible()
        if category:
            stmt = stmt.where(Project.category == category)
        if search:
            stmt = stmt.where(
                or_(QueryBuilder.contains(Project.title, search), QueryBuilder.contains(Project.description, search))
            )
        stmt = stmt.order_by(Project.created_at.desc(), Project.id)
        return await self.paginate(stmt, page, limit)

    async def get_for_members(self, project_id: str) -> Optional[Project]:
        result = await self.session.execute(self._member_visible().where(Project.id == project_id))
        return result.scalar_one_or_none()

    async def count_by_status(self) -> Dict[str, int]:
        rows = (await self.session.execute(select(Project.status, func.count()).group_by(Project.status))).all()
        counts = {status.value: 0 for status in ProjectStatus}
        counts.update({status: int(total) for status, total in rows})
        return counts

    async def sync_candidate_ids(self, *, full_sync: bool, since: datetime) -> List[str]:
        stmt = select(Project.id)
        if not full_sync:
            stmt = stmt.where(or_(Project.updated_at >= since, Project.hubspot_deal_id.is_(None)))
        result = await self.session.execute(stmt.order_by(Project.created_at, Project.id))
        return list(result.scalars().all())


class ServiceRequestRepository(SQLModelRepository[ServiceRequest]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ServiceRequest)

    async def search(self, *, requester_id: Optional[str], page: int, limit: int) -> Page[ServiceRequest]:
        """Service requests, newest first; ``requester_id=None`` lists everyone's."""
        stmt = select(ServiceRequest)
        if requester_id is not None:
            stmt = stmt.where(ServiceRequest.requester_id == requester_id)
        stmt = stmt.order_by(ServiceRequest.created_at.desc(), ServiceRequest.id)
        return await self.paginate(stmt, page, limit)

    async def count_open(self) -> int:
        return await self.count(ServiceRequest.status == ServiceRequestStatus.OPEN.value)

    async def sync_candidate_ids(self, *, full_sync: bool, since: datetime) -> List[str]:
        stmt = select(ServiceRequest.id)
        if not full_sync:
            stmt = stmt.where(or_(ServiceRequest.updated_at >= since, ServiceRequest.hubspot_deal_id.is_(None)))
        result = await self.session.execute(stmt.order_by(ServiceRequest.created_at, ServiceRequest.id))
        return list(result.scalars().all())
