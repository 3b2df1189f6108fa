"""
Project and service request entities.

Projects are opportunities published to members; service requests are
members asking NAMC for help (bonding, financing, estimating...). Both are
mirrored to HubSpot as deals by the batch sync.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import DateTime, Text
from sqlmodel import Field

from ..base import Base, dump_json_list, load_json_list, new_id, utc_now


class ProjectStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    BIDDING_OPEN = "BIDDING_OPEN"
    BIDDING_CLOSED = "BIDDING_CLOSED"
    AWARDED = "AWARDED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ProjectVisibility(str, Enum):
    PUBLIC = "PUBLIC"
    MEMBERS_ONLY = "MEMBERS_ONLY"
    INVITE_ONLY = "INVITE_ONLY"
    PRIVATE = "PRIVATE"


class ServiceRequestStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ProjectBase(Base):
    title: str = Field(max_length=200)
    description: str = Field(sa_type=Text)
    category: str = Field(max_length=100)
    location: Optional[str] = Field(default=None, max_length=200)
    budget_min: Optional[float] = Field(default=None, ge=0)
    budget_max: Optional[float] = Field(default=None, ge=0)
    estimated_value: Optional[float] = Field(default=None, ge=0)
    deadline_date: Optional[datetime] = Field(sa_type=DateTime, default=None)
    start_date: Optional[datetime] = Field(sa_type=DateTime, default=None)
    bonding_required: bool = Field(default=False)
    priority: str = Field(default="MEDIUM", max_length=20)
    client_name: Optional[str] = Field(default=None, max_length=200)


class Project(ProjectBase, table=True):
    """Table: projects"""

    __tablename__ = "projects"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    skills_required: str = Field(default="[]", sa_type=Text, description="JSON array of required skills")
    status: str = Field(default=ProjectStatus.DRAFT.value, max_length=20, index=True)
    visibility: str = Field(default=ProjectVisibility.MEMBERS_ONLY.value, max_length=20)
    application_count: int = Field(default=0)
    created_by_id: Optional[str] = Field(default=None, foreign_key="users.id", max_length=32)
    hubspot_deal_id: Optional[str] = Field(default=None, max_length=64)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def get_skills_required_list(self) -> List[str]:
        return load_json_list(self.skills_required)

    def set_skills_required_list(self, skills: List[str]) -> None:
        self.skills_required = dump_json_list(skills)


class ServiceRequestBase(Base):
    title: str = Field(max_length=200)
    description: str = Field(sa_type=Text)
    service_type: str = Field(max_length=100)
    urgency: str = Field(default="MEDIUM", max_length=20)
    expected_start_date: Optional[datetime] = Field(sa_type=DateTime, default=None)
    min_budget: Optional[float] = Field(default=None, ge=0)
    max_budget: Optional[float] = Field(default=None, ge=0)


class ServiceRequest(ServiceRequestBase, table=True):
    """Table: service_requests"""

    __tablename__ = "service_requests"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    requester_id: str = Field(foreign_key="users.id", max_length=32, index=True)
    status: str = Field(default=ServiceRequestStatus.OPEN.value, max_length=20)
    estimated_savings: Optional[float] = Field(default=None)
    actual_savings: Optional[float] = Field(default=None)
    hubspot_deal_id: Optional[str] = Field(default=None, max_length=64)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})
