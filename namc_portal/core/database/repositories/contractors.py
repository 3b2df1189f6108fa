"""
California contractor repository.

Builds the filtered/sorted queries behind the admin contractor list and the
CSV/JSON export, and the outreach counters used by the admin dashboard.
"""

from __future__ import annotations

from typing import Dict, List

from sqlalchemy import and_, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from namc_portal.core.models.io.contractors import (
    ContractorFilters,
    ContractorSearchParams,
)

from ..entities.contractors import CaliforniaContractor, OutreachStatus
from .base import Page, QueryBuilder, SQLModelRepository


class ContractorRepository(SQLModelRepository[CaliforniaContractor]):
    """Repository for the California contractor registry."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CaliforniaContractor)

    @staticmethod
    def _filtered(filters: ContractorFilters):
        model = CaliforniaContractor
        stmt = select(model)
        if filters.search:
            stmt = stmt.where(
                or_(
                    QueryBuilder.contains(model.business_name, filters.search),
                    QueryBuilder.contains(model.dba_name, filters.search),
                    QueryBuilder.contains(model.license_number, filters.search),
                    QueryBuilder.contains(model.email, filters.search),
                )
            )
        if filters.city:
            stmt = stmt.where(QueryBuilder.contains(model.city, filters.city))
        if filters.county:
            stmt = stmt.where(QueryBuilder.contains(model.county, filters.county))
        if filters.classification:
            # classifications is an encoded JSON list; match the quoted code
            stmt = stmt.where(model.classifications.contains(f'"{filters.classification}"', autoescape=True))
        if filters.license_status:
            stmt = stmt.where(model.license_status == filters.license_status)
        if filters.has_email is True:
            stmt = stmt.where(and_(model.email.is_not(None), model.email != ""))
        elif filters.has_email is False:
            stmt = stmt.where(or_(model.email.is_(None), model.email == ""))
        if filters.has_phone is True:
            stmt = stmt.where(and_(model.phone.is_not(None), model.phone != ""))
        elif filters.has_phone is False:
            stmt = stmt.where(or_(model.phone.is_(None), model.phone == ""))
        if filters.outreach_status is not None:
            stmt = stmt.where(model.outreach_status == filters.outreach_status.value)
        return stmt

    async def search(self, params: ContractorSearchParams) -> Page[CaliforniaContractor]:
        """One page of contractors matching ``params``, sorted as requested."""
        column = getattr(CaliforniaContractor, params.sort_by.value)
        order = column.desc() if params.sort_order == "desc" else column.asc()
        stmt = self._filtered(params).order_by(order, CaliforniaContractor.id)
        return await self.paginate(stmt, params.page, params.limit)

    async def export(self, filters: ContractorFilters) -> List[CaliforniaContractor]:
        """All contractors matching ``filters`` ordered by business name, unpaginated."""
        stmt = self._filtered(filters).order_by(CaliforniaContractor.business_name, CaliforniaContractor.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_with_email(self) -> int:
        model = CaliforniaContractor
        return await self.count(model.email.is_not(None), model.email != "")

    async def count_by_outreach_status(self) -> Dict[str, int]:
        stmt = select(CaliforniaContractor.outreach_status, func.count()).group_by(
            CaliforniaContractor.outreach_status
        )
        rows = (await self.session.execute(stmt)).all()
        counts = {status.value: 0 for status in OutreachStatus}
        counts.update({status: int(total) for status, total in rows})
        return counts
