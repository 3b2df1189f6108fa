"""Direct member-to-member message entity."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Text
from sqlmodel import Field

from ..base import Base, new_id, utc_now


class MessageStatus(str, Enum):
    SENT = "SENT"
    DELIVERED = "DELIVERED"
    READ = "READ"
    ARCHIVED = "ARCHIVED"


class Message(Base, table=True):
    """Table: messages"""

    __tablename__ = "messages"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    sender_id: str = Field(foreign_key="users.id", max_length=32, index=True)
    receiver_id: str = Field(foreign_key="users.id", max_length=32, index=True)
    subject: Optional[str] = Field(default=None, max_length=200)
    content: str = Field(sa_type=Text)
    status: str = Field(default=MessageStatus.SENT.value, max_length=20)
    sent_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    read_at: Optional[datetime] = Field(sa_type=DateTime, default=None)
