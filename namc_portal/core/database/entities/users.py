"""
Member account entity.

A user is a registered contractor (``REGULAR``) or an administrator
(``admin``). Besides profile data the row carries the login lockout counters,
the email verification and password reset tokens, and the HubSpot contact id
written back by the CRM sync.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import DateTime, Text
from sqlmodel import Field

from ..base import Base, dump_json_list, load_json_list, new_id, utc_now


class MemberType(str, Enum):
    REGULAR = "REGULAR"
    ADMIN = "admin"


class UserBase(Base):
    """Profile fields shared by the entity and its API schemas."""

    email: str = Field(max_length=255, description="Lower-cased login email")
    first_name: str = Field(max_length=50)
    last_name: str = Field(max_length=50)
    company: Optional[str] = Field(default=None, max_length=100)
    title: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=50)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    bio: Optional[str] = Field(default=None, sa_type=Text)
    website: Optional[str] = Field(default=None, max_length=255)
    linkedin: Optional[str] = Field(default=None, max_length=255)


class User(UserBase, table=True):
    """Persistent member account.

    Table: users
    """

    __tablename__ = "users"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)
    email: str = Field(max_length=255, unique=True, index=True)
    password_hash: str = Field(max_length=255)

    skills: str = Field(default="[]", sa_type=Text, description="JSON array of skill names")
    member_type: str = Field(default=MemberType.REGULAR.value, max_length=20)
    member_since: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    is_active: bool = Field(default=True)
    is_verified: bool = Field(default=False)

    # Login lockout bookkeeping
    failed_login_attempts: int = Field(default=0)
    locked_until: Optional[datetime] = Field(sa_type=DateTime, default=None)
    last_failed_login: Optional[datetime] = Field(sa_type=DateTime, default=None)
    last_successful_login: Optional[datetime] = Field(sa_type=DateTime, default=None)

    # One-time tokens
    email_verification_token: Optional[str] = Field(default=None, max_length=128, index=True)
    email_verification_expires: Optional[datetime] = Field(sa_type=DateTime, default=None)
    password_reset_token: Optional[str] = Field(default=None, max_length=128, index=True)
    password_reset_expires: Optional[datetime] = Field(sa_type=DateTime, default=None)

    hubspot_contact_id: Optional[str] = Field(default=None, max_length=64)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.member_type == MemberType.ADMIN.value

    def get_skills_list(self) -> List[str]:
        """Get skills as a list."""
        return load_json_list(self.skills)

    def set_skills_list(self, skills: List[str]) -> None:
        """Set skills from a list."""
        self.skills = dump_json_list(skills)
