"""
Admin audit log entity.

Every state-changing admin request writes one row so the dashboard can show
who changed what, alongside the ``namc_portal.audit`` log stream.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Text
from sqlmodel import Field

from ..base import Base, new_id, utc_now


class AdminAction(Base, table=True):
    """Table: admin_actions"""

    __tablename__ = "admin_actions"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    admin_id: str = Field(foreign_key="users.id", max_length=32, index=True)
    action: str = Field(max_length=64, index=True)
    target_type: Optional[str] = Field(default=None, max_length=64)
    target_id: Optional[str] = Field(default=None, max_length=64)
    details: Optional[str] = Field(default=None, sa_type=Text, description="JSON object with action context")
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, index=True)
