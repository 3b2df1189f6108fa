"""
California contractor admin I/O models.

``ContractorUpdate`` doubles as the allow-list of fields outreach staff may
change; anything else in the request body is ignored.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from namc_portal.core.database.base import load_json_list
from namc_portal.core.database.entities.contractors import OutreachStatus

from . import validators


class ContractorSortField(str, Enum):
    BUSINESS_NAME = "business_name"
    CITY = "city"
    LICENSE_NUMBER = "license_number"
    CREATED_AT = "created_at"


class ContractorFilters(BaseModel):
    """Filters shared by the paginated list and the export."""

    search: Optional[str] = None
    city: Optional[str] = None
    county: Optional[str] = None
    classification: Optional[str] = None
    license_status: Optional[str] = None
    has_email: Optional[bool] = None
    has_phone: Optional[bool] = None
    outreach_status: Optional[OutreachStatus] = None
    sort_by: ContractorSortField = ContractorSortField.BUSINESS_NAME
    sort_order: Literal["asc", "desc"] = "asc"


class ContractorSearchParams(ContractorFilters):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=25, ge=1, le=100)


class ContractorExportParams(ContractorFilters):
    format: Literal["csv", "json"] = "csv"


class LinkedMember(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    company: Optional[str] = None


class ContractorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    license_number: str
    business_name: str
    dba_name: Optional[str] = None
    email: Optional[str] = None
    email_validated: bool
    email_confidence: Optional[float] = None
    phone: Optional[str] = None
    phone_validated: bool
    website: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: str
    zip_code: Optional[str] = None
    county: Optional[str] = None
    license_status: str
    license_type: Optional[str] = None
    issue_date: Optional[datetime] = None
    expire_date: Optional[datetime] = None
    primary_classification: Optional[str] = None
    classifications: List[str] = Field(default_factory=list)
    business_type: Optional[str] = None
    years_in_business: Optional[int] = None
    employee_count: Optional[int] = None
    priority_score: float
    data_quality_score: float
    outreach_status: str
    last_contact_date: Optional[datetime] = None
    contact_attempts: int
    campaign_tags: List[str] = Field(default_factory=list)
    lead_score: Optional[int] = None
    membership_interest: Optional[str] = None
    is_namc_member: bool
    namc_member_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("classifications", "campaign_tags", mode="before")
    @classmethod
    def _decode(cls, value):
        return load_json_list(value) if isinstance(value, str) else value or []


class ContractorDetail(ContractorRead):
    namc_member: Optional[LinkedMember] = None


class ContractorUpdate(BaseModel):
    email: Optional[EmailStr] = None
    email_validated: Optional[bool] = None
    phone: Optional[str] = None
    phone_validated: Optional[bool] = None
    website: Optional[str] = None
    outreach_status: Optional[OutreachStatus] = None
    contact_attempts: Optional[int] = Field(default=None, ge=0)
    last_contact_date: Optional[datetime] = None
    campaign_tags: Optional[List[str]] = None
    lead_score: Optional[int] = Field(default=None, ge=0, le=100)
    membership_interest: Optional[str] = Field(default=None, max_length=32)
    notes: Optional[str] = Field(default=None, max_length=5000)
    priority_score: Optional[float] = Field(default=None, ge=0, le=100)

    @field_validator(
        "email_validated",
        "phone_validated",
        "outreach_status",
        "contact_attempts",
        "campaign_tags",
        "priority_score",
        mode="before",
    )
    @classmethod
    def _required(cls, value):
        return validators.check_not_null(value)

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: Optional[str]) -> Optional[str]:
        return validators.check_phone(value)

    @field_validator("website")
    @classmethod
    def _website(cls, value: Optional[str]) -> Optional[str]:
        return validators.check_url(value, "website URL")
