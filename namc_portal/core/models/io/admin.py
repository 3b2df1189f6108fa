"""Admin dashboard and audit log I/O models."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class AdminActionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    admin_id: str
    action: str
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime

    @field_validator("details", mode="before")
    @classmethod
    def _decode(cls, value):
        if isinstance(value, str):
            try:
                decoded = json.loads(value)
            except json.JSONDecodeError:
                return {"raw": value}
            return decoded if isinstance(decoded, dict) else {"value": decoded}
        return value


class MemberStats(BaseModel):
    total: int
    active: int
    pending_verification: int
    admins: int
    new_last_30_days: int


class ContractorStats(BaseModel):
    total: int
    with_email: int
    by_outreach_status: Dict[str, int]


class DashboardStats(BaseModel):
    members: MemberStats
    projects_by_status: Dict[str, int]
    upcoming_events: int
    open_service_requests: int
    contractors: ContractorStats
    unread_messages: int
    recent_actions: List[AdminActionRead]
