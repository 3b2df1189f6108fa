"""Announcement and resource repositories."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..base import utc_now
from ..entities.content import Announcement, Resource
from .base import SQLModelRepository


class AnnouncementRepository(SQLModelRepository[Announcement]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Announcement)

    async def active(self, limit: int = 20) -> List[Announcement]:
        """Published, unexpired announcements, newest first."""
        stmt = (
            select(Announcement)
            .where(
                Announcement.is_published == True,  # noqa: E712
                or_(Announcement.expires_at.is_(None), Announcement.expires_at > utc_now()),
            )
            .order_by(Announcement.published_at.desc(), Announcement.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class ResourceRepository(SQLModelRepository[Resource]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Resource)

    async def visible(self, *, include_private: bool, category: Optional[str] = None) -> List[Resource]:
        stmt = select(Resource)
        if not include_private:
            stmt = stmt.where(Resource.is_public == True)  # noqa: E712
        if category:
            stmt = stmt.where(Resource.category == category)
        result = await self.session.execute(stmt.order_by(Resource.category, Resource.title))
        return list(result.scalars().all())
