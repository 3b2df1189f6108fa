"""
California contractor entity.

Rows are imported from the CSLB license registry and enriched by outreach
staff (contact validation, campaign tags, lead scoring). ``license_number``
is the natural key of the registry record.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import DateTime, Text
from sqlmodel import Field

from ..base import Base, dump_json_list, load_json_list, new_id, utc_now


class OutreachStatus(str, Enum):
    NOT_CONTACTED = "NOT_CONTACTED"
    CONTACTED = "CONTACTED"
    RESPONDED = "RESPONDED"
    MEMBER = "MEMBER"


class CaliforniaContractor(Base, table=True):
    """Table: california_contractors"""

    __tablename__ = "california_contractors"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    license_number: str = Field(max_length=32, unique=True, index=True, nullable=False)
    business_name: str = Field(max_length=255, index=True)
    dba_name: Optional[str] = Field(default=None, max_length=255)

    # Contact data and its provenance
    email: Optional[str] = Field(default=None, max_length=255)
    email_validated: bool = Field(default=False)
    email_confidence: Optional[float] = Field(default=None)
    email_source: Optional[str] = Field(default=None, max_length=64)
    phone: Optional[str] = Field(default=None, max_length=32)
    phone_validated: bool = Field(default=False)
    phone_source: Optional[str] = Field(default=None, max_length=64)
    website: Optional[str] = Field(default=None, max_length=255)

    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100, index=True)
    state: str = Field(default="CA", max_length=2)
    zip_code: Optional[str] = Field(default=None, max_length=10)
    county: Optional[str] = Field(default=None, max_length=100)

    # License registry data
    license_status: str = Field(default="ACTIVE", max_length=32)
    license_type: Optional[str] = Field(default=None, max_length=64)
    issue_date: Optional[datetime] = Field(sa_type=DateTime, default=None)
    expire_date: Optional[datetime] = Field(sa_type=DateTime, default=None)
    primary_classification: Optional[str] = Field(default=None, max_length=16)
    classifications: str = Field(default="[]", sa_type=Text, description="JSON array of CSLB classifications")
    business_type: Optional[str] = Field(default=None, max_length=64)
    years_in_business: Optional[int] = Field(default=None)
    employee_count: Optional[int] = Field(default=None)

    # Outreach
    priority_score: float = Field(default=0.0)
    data_quality_score: float = Field(default=0.0)
    outreach_status: str = Field(default=OutreachStatus.NOT_CONTACTED.value, max_length=20, index=True)
    last_contact_date: Optional[datetime] = Field(sa_type=DateTime, default=None)
    contact_attempts: int = Field(default=0)
    campaign_tags: str = Field(default="[]", sa_type=Text, description="JSON array of campaign tags")
    lead_score: Optional[int] = Field(default=None)
    membership_interest: Optional[str] = Field(default=None, max_length=32)

    is_namc_member: bool = Field(default=False)
    namc_member_id: Optional[str] = Field(default=None, foreign_key="users.id", max_length=32)
    notes: Optional[str] = Field(default=None, sa_type=Text)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def get_classifications_list(self) -> List[str]:
        return load_json_list(self.classifications)

    def set_classifications_list(self, classifications: List[str]) -> None:
        self.classifications = dump_json_list(classifications)

    def get_campaign_tags_list(self) -> List[str]:
        return load_json_list(self.campaign_tags)

    def set_campaign_tags_list(self, tags: List[str]) -> None:
        self.campaign_tags = dump_json_list(tags)
