"""Pydantic views of HubSpot CRM payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class HubSpotObject(BaseModel):
    """A CRM object (contact, deal...) as returned by the v3 objects API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    properties: Dict[str, Optional[str]] = Field(default_factory=dict)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    archived: bool = False

    def prop(self, name: str, default: str = "") -> str:
        value = self.properties.get(name)
        return default if value is None else str(value)


class HubSpotObjectPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    results: list[HubSpotObject] = Field(default_factory=list)
    total: Optional[int] = None


class AccountDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    portal_id: Optional[int] = Field(default=None, alias="portalId")
    account_type: Optional[str] = Field(default=None, alias="accountType")
    time_zone: Optional[str] = Field(default=None, alias="timeZone")


class EmailSendResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: Optional[str] = None
    status_id: Optional[str] = Field(default=None, alias="statusId")
