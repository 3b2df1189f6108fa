"""Project and service request I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from namc_portal.core.database.base import load_json_list

from . import validators

_PROJECT_STATUS = "^(DRAFT|PUBLISHED|BIDDING_OPEN|BIDDING_CLOSED|AWARDED|COMPLETED|CANCELLED)$"
_VISIBILITY = "^(PUBLIC|MEMBERS_ONLY|INVITE_ONLY|PRIVATE)$"


class ProjectRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    category: str
    location: Optional[str] = None
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    estimated_value: Optional[float] = None
    deadline_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    skills_required: List[str] = Field(default_factory=list)
    bonding_required: bool
    status: str
    priority: str
    visibility: str
    client_name: Optional[str] = None
    application_count: int
    created_at: datetime

    @field_validator("skills_required", mode="before")
    @classmethod
    def _decode(cls, value):
        return load_json_list(value) if isinstance(value, str) else value or []


class ProjectCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    category: str = Field(min_length=1, max_length=100)
    location: Optional[str] = None
    budget_min: Optional[float] = Field(default=None, ge=0)
    budget_max: Optional[float] = Field(default=None, ge=0)
    estimated_value: Optional[float] = Field(default=None, ge=0)
    deadline_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    skills_required: List[str] = Field(default_factory=list)
    bonding_required: bool = False
    status: str = Field(default="DRAFT", pattern=_PROJECT_STATUS)
    priority: str = "MEDIUM"
    visibility: str = Field(default="MEMBERS_ONLY", pattern=_VISIBILITY)
    client_name: Optional[str] = None


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    budget_min: Optional[float] = Field(default=None, ge=0)
    budget_max: Optional[float] = Field(default=None, ge=0)
    estimated_value: Optional[float] = Field(default=None, ge=0)
    deadline_date: Optional[datetime] = None
    skills_required: Optional[List[str]] = None
    status: Optional[str] = Field(default=None, pattern=_PROJECT_STATUS)
    priority: Optional[str] = None
    visibility: Optional[str] = Field(default=None, pattern=_VISIBILITY)

    @field_validator(
        "title", "description", "category", "skills_required", "status", "priority", "visibility", mode="before"
    )
    @classmethod
    def _required(cls, value):
        return validators.check_not_null(value)


class ServiceRequestCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    service_type: str = Field(min_length=1, max_length=100)
    urgency: str = Field(default="MEDIUM", pattern="^(LOW|MEDIUM|HIGH|URGENT)$")
    expected_start_date: Optional[datetime] = None
    min_budget: Optional[float] = Field(default=None, ge=0)
    max_budget: Optional[float] = Field(default=None, ge=0)


class ServiceRequestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    requester_id: str
    title: str
    description: str
    service_type: str
    urgency: str
    status: str
    expected_start_date: Optional[datetime] = None
    min_budget: Optional[float] = None
    max_budget: Optional[float] = None
    created_at: datetime
