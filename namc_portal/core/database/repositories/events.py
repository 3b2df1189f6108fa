"""Event and registration repositories."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..base import utc_now
from ..entities.events import Event, EventRegistration, EventStatus, RegistrationStatus
from .base import Page, SQLModelRepository

OPEN_STATUSES = (EventStatus.PUBLISHED.value, EventStatus.REGISTRATION_OPEN.value)


class EventRepository(SQLModelRepository[Event]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Event)

    async def upcoming(self, page: int, limit: int, event_type: Optional[str] = None) -> Page[Event]:
        """Published events that have not started yet, soonest first."""
        stmt = select(Event).where(Event.status.in_(OPEN_STATUSES), Event.start_date >= utc_now())
        if event_type:
            stmt = stmt.where(Event.type == event_type)
        stmt = stmt.order_by(Event.start_date, Event.id)
        return await self.paginate(stmt, page, limit)

    async def count_upcoming(self) -> int:
        return await self.count(Event.status.in_(OPEN_STATUSES), Event.start_date >= utc_now())

    async def claim_seat(self, event_id: str) -> bool:
        """
        Take one seat with a single conditional UPDATE.

        Returns:
            False when the event is already at ``max_capacity``
        """
        stmt = (
            update(Event)
            .where(Event.id == event_id)
            .where(or_(Event.max_capacity.is_(None), Event.current_capacity < Event.max_capacity))
            .values(current_capacity=Event.current_capacity + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def release_seat(self, event_id: str) -> None:
        stmt = (
            update(Event)
            .where(Event.id == event_id, Event.current_capacity > 0)
            .values(current_capacity=Event.current_capacity - 1)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)


class EventRegistrationRepository(SQLModelRepository[EventRegistration]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, EventRegistration)

    async def get_for(self, event_id: str, user_id: str) -> Optional[EventRegistration]:
        stmt = select(EventRegistration).where(
            EventRegistration.event_id == event_id, EventRegistration.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def for_user(self, user_id: str) -> List[EventRegistration]:
        stmt = (
            select(EventRegistration)
            .where(
                EventRegistration.user_id == user_id,
                EventRegistration.status != RegistrationStatus.CANCELLED.value,
            )
            .order_by(EventRegistration.registered_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_for_user(self, user_id: str) -> int:
        return await self.count(
            EventRegistration.user_id == user_id,
            EventRegistration.status != RegistrationStatus.CANCELLED.value,
        )
