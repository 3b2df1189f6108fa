"""TECH project repository."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.tech_projects import TechProject
from .base import SQLModelRepository


class TechProjectRepository(SQLModelRepository[TechProject]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, TechProject)

    async def for_contractor(self, contractor_id: Optional[str]) -> List[TechProject]:
        """Projects of one contractor, or all projects when ``contractor_id`` is None."""
        stmt = select(TechProject)
        if contractor_id is not None:
            stmt = stmt.where(TechProject.contractor_id == contractor_id)
        result = await self.session.execute(stmt.order_by(TechProject.created_at.desc()))
        return list(result.scalars().all())
