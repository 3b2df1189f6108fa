"""
Member repository.

Data access for member accounts: lookups by email and one-time tokens, the
member directory search, dashboard counts and the incremental selection used
by the HubSpot sync.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..base import utc_now
from ..entities.users import MemberType, User
from .base import Page, QueryBuilder, SQLModelRepository


class UserRepository(SQLModelRepository[User]):
    """Repository for member accounts."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a member by email; the lookup is case-insensitive."""
        stmt = select(User).where(User.email == email.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_verification_token(self, token: str) -> Optional[User]:
        """Get the member holding an unexpired email verification token."""
        stmt = select(User).where(
            User.email_verification_token == token,
            User.email_verification_expires > utc_now(),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_reset_token(self, token: str) -> Optional[User]:
        """Get the member holding an unexpired password reset token."""
        stmt = select(User).where(
            User.password_reset_token == token,
            User.password_reset_expires > utc_now(),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def search_directory(
        self,
        *,
        search: Optional[str] = None,
        city: Optional[str] = None,
        skill: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[User]:
        """Search active, verified members for the member directory.

        Args:
            search: Substring matched against name, company and email
            city: Substring matched against city
            skill: Substring matched against the encoded skills list
            page: 1-based page number
            limit: Page size

        Returns:
            One page of members ordered by last then first name
        """
        stmt = select(User).where(User.is_active == True, User.is_verified == True)  # noqa: E712
        if search:
            stmt = stmt.where(
                or_(
                    QueryBuilder.contains(User.first_name, search),
                    QueryBuilder.contains(User.last_name, search),
                    QueryBuilder.contains(User.company, search),
                    QueryBuilder.contains(User.email, search),
                )
            )
        if city:
            stmt = stmt.where(QueryBuilder.contains(User.city, city))
        if skill:
            stmt = stmt.where(QueryBuilder.contains(User.skills, skill))
        stmt = stmt.order_by(User.last_name, User.first_name, User.id)
        return await self.paginate(stmt, page, limit)

    async def sync_candidate_ids(self, *, full_sync: bool, since: datetime) -> List[str]:
        """Ids of members due for a CRM push.

        Incremental runs pick members updated after ``since`` or never synced;
        full runs pick everyone. The id list is taken once up front, so rows
        leaving the selection mid-run (once they get a HubSpot id) do not
        shift later batches.
        """
        stmt = select(User.id)
        if not full_sync:
            stmt = stmt.where(or_(User.updated_at >= since, User.hubspot_contact_id.is_(None)))
        result = await self.session.execute(stmt.order_by(User.created_at, User.id))
        return list(result.scalars().all())

    async def count_all(self) -> int:
        return await self.count()

    async def count_active(self) -> int:
        return await self.count(User.is_active == True)  # noqa: E712

    async def count_pending_verification(self) -> int:
        return await self.count(User.is_verified == False)  # noqa: E712

    async def count_admins(self) -> int:
        return await self.count(User.member_type == MemberType.ADMIN.value)

    async def count_joined_since(self, days: int) -> int:
        return await self.count(User.created_at >= utc_now() - timedelta(days=days))
