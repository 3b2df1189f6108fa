"""
Event and event registration entities.

``current_capacity`` counts active registrations; the registration endpoints
keep it in step with the registration rows.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Text, UniqueConstraint
from sqlmodel import Field

from ..base import Base, new_id, utc_now


class EventStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    REGISTRATION_OPEN = "REGISTRATION_OPEN"
    REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class RegistrationStatus(str, Enum):
    REGISTERED = "REGISTERED"
    CANCELLED = "CANCELLED"
    ATTENDED = "ATTENDED"


class EventBase(Base):
    title: str = Field(max_length=200)
    description: str = Field(sa_type=Text)
    type: str = Field(default="NETWORKING", max_length=50)
    start_date: datetime = Field(sa_type=DateTime)
    end_date: Optional[datetime] = Field(sa_type=DateTime, default=None)
    registration_deadline: Optional[datetime] = Field(sa_type=DateTime, default=None)
    max_capacity: Optional[int] = Field(default=None, ge=1)
    location: Optional[str] = Field(default=None, max_length=255)
    is_virtual: bool = Field(default=False)
    virtual_url: Optional[str] = Field(default=None, max_length=500)
    price: float = Field(default=0.0, ge=0)
    member_price: Optional[float] = Field(default=None, ge=0)


class Event(EventBase, table=True):
    """Table: events"""

    __tablename__ = "events"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    status: str = Field(default=EventStatus.DRAFT.value, max_length=30, index=True)
    current_capacity: int = Field(default=0, ge=0)
    created_by_id: Optional[str] = Field(default=None, foreign_key="users.id", max_length=32)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    @property
    def is_full(self) -> bool:
        return self.max_capacity is not None and self.current_capacity >= self.max_capacity


class EventRegistration(Base, table=True):
    """One row per (event, member); cancelling keeps the row with a CANCELLED status.

    Table: event_registrations
    """

    __tablename__ = "event_registrations"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_registrations_event_user"),
        {"extend_existing": True},
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    event_id: str = Field(foreign_key="events.id", max_length=32, index=True)
    user_id: str = Field(foreign_key="users.id", max_length=32, index=True)
    status: str = Field(default=RegistrationStatus.REGISTERED.value, max_length=20)
    registered_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})
