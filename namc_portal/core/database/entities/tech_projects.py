"""TECH Clean California project entity."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field

from ..base import Base, new_id, utc_now


class TechProject(Base, table=True):
    """A heat-pump incentive project submitted by a member contractor.

    Table: tech_projects
    """

    __tablename__ = "tech_projects"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    contractor_id: str = Field(foreign_key="users.id", max_length=32, index=True)
    title: str = Field(default="New TECH Project", max_length=200)
    type: str = Field(default="hvac", max_length=50)
    status: str = Field(default="inquiry", max_length=30)
    customer_id: Optional[str] = Field(default=None, max_length=64)
    estimated_incentive: float = Field(default=0.0, ge=0)
    installation_street: Optional[str] = Field(default=None, max_length=255)
    installation_city: Optional[str] = Field(default=None, max_length=100)
    installation_state: Optional[str] = Field(default="CA", max_length=50)
    installation_zip: Optional[str] = Field(default=None, max_length=20)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})
