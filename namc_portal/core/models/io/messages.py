"""Messaging I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    receiver_id: str = Field(min_length=1)
    subject: Optional[str] = Field(default=None, max_length=200)
    content: str = Field(min_length=1, max_length=5000)


class MessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    sender_id: str
    receiver_id: str
    subject: Optional[str] = None
    content: str
    status: str
    sent_at: datetime
    read_at: Optional[datetime] = None


class UnreadCount(BaseModel):
    unread: int
