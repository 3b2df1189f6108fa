"""Announcement and resource library entities."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Text
from sqlmodel import Field

from ..base import Base, new_id, utc_now


class AnnouncementBase(Base):
    title: str = Field(max_length=200)
    content: str = Field(sa_type=Text)
    priority: str = Field(default="NORMAL", max_length=20)
    is_published: bool = Field(default=True)
    expires_at: Optional[datetime] = Field(sa_type=DateTime, default=None)


class Announcement(AnnouncementBase, table=True):
    """Table: announcements"""

    __tablename__ = "announcements"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    published_at: Optional[datetime] = Field(sa_type=DateTime, default=None)
    created_by_id: Optional[str] = Field(default=None, foreign_key="users.id", max_length=32)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)


class ResourceBase(Base):
    title: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, sa_type=Text)
    category: str = Field(max_length=100)
    url: str = Field(max_length=500)
    is_public: bool = Field(default=False)


class Resource(ResourceBase, table=True):
    """Table: resources"""

    __tablename__ = "resources"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    created_by_id: Optional[str] = Field(default=None, foreign_key="users.id", max_length=32)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
