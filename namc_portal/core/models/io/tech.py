"""TECH Clean California I/O models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TechContractorStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    INACTIVE = "INACTIVE"


class TechContractor(BaseModel):
    """A TECH program participant as recorded in HubSpot."""

    id: str
    name: str
    email: str
    company: str = ""
    phone: str = ""
    status: TechContractorStatus = TechContractorStatus.PENDING
    certifications: List[str] = Field(default_factory=list)
    hubspot_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TechEnrollRequest(BaseModel):
    company: Optional[str] = None
    phone: Optional[str] = None
    certifications: List[str] = Field(default_factory=list)


class TechProjectCreate(BaseModel):
    title: str = Field(default="New TECH Project", min_length=1, max_length=200)
    type: str = Field(default="hvac", max_length=50)
    customer_id: Optional[str] = None
    estimated_incentive: float = Field(default=0.0, ge=0)
    installation_street: Optional[str] = None
    installation_city: Optional[str] = None
    installation_state: Optional[str] = "CA"
    installation_zip: Optional[str] = None


class TechProjectRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    contractor_id: str
    title: str
    type: str
    status: str
    customer_id: Optional[str] = None
    estimated_incentive: float
    installation_street: Optional[str] = None
    installation_city: Optional[str] = None
    installation_state: Optional[str] = None
    installation_zip: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TechDashboardSummary(BaseModel):
    total_contractors: int
    active_contractors: int
    pending_contractors: int
    total_certifications: int
    total_projects: int
    total_estimated_incentive: float


class TechDashboard(BaseModel):
    summary: TechDashboardSummary
    contractors_by_status: Dict[str, int]
    projects_by_status: Dict[str, int]
    recent_contractors: List[TechContractor]
