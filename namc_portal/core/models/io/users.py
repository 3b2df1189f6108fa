"""
Member I/O models for API requests and responses.

These schemas define the contract for member profiles, the directory and
profile updates. JSON-encoded list columns are decoded on the way out.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from namc_portal.core.database.base import load_json_list

from . import validators


def _decode_list(value):
    if isinstance(value, str):
        return load_json_list(value)
    return value or []


class UserRead(BaseModel):
    """Full profile as seen by the member themselves and by admins."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str
    last_name: str
    company: Optional[str] = None
    title: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    linkedin: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    member_type: str
    member_since: datetime
    is_active: bool
    is_verified: bool
    last_successful_login: Optional[datetime] = None
    created_at: datetime

    @field_validator("skills", mode="before")
    @classmethod
    def _decode_skills(cls, value):
        return _decode_list(value)


class MemberSummary(BaseModel):
    """Directory card: what one member sees about another."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str
    last_name: str
    company: Optional[str] = None
    title: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    linkedin: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    member_since: datetime

    @field_validator("skills", mode="before")
    @classmethod
    def _decode_skills(cls, value):
        return _decode_list(value)


class ProfileUpdate(BaseModel):
    """Fields a member may change on their own profile."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company: Optional[str] = Field(default=None, max_length=validators.COMPANY_MAX_LENGTH)
    title: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = None
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=50)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    bio: Optional[str] = Field(default=None, max_length=validators.BIO_MAX_LENGTH)
    website: Optional[str] = None
    linkedin: Optional[str] = None
    skills: Optional[List[str]] = None

    @field_validator("first_name")
    @classmethod
    def _first_name(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else validators.check_name(value, "First name")

    @field_validator("last_name")
    @classmethod
    def _last_name(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else validators.check_name(value, "Last name")

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: Optional[str]) -> Optional[str]:
        return validators.check_phone(value)

    @field_validator("website")
    @classmethod
    def _website(cls, value: Optional[str]) -> Optional[str]:
        return validators.check_url(value, "website URL")

    @field_validator("linkedin")
    @classmethod
    def _linkedin(cls, value: Optional[str]) -> Optional[str]:
        return validators.check_url(value, "LinkedIn URL")

    @field_validator("skills")
    @classmethod
    def _skills(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return validators.check_skills(value)


class DirectoryQuery(BaseModel):
    search: Optional[str] = None
    city: Optional[str] = None
    skill: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class AdminMemberCreate(BaseModel):
    """Admin-created accounts are verified immediately."""

    email: EmailStr
    password: str
    first_name: str
    last_name: str
    company: Optional[str] = None
    phone: Optional[str] = None
    make_admin: bool = False

    @field_validator("password")
    @classmethod
    def _password(cls, value: str) -> str:
        return validators.check_password(value)

    @field_validator("first_name", "last_name")
    @classmethod
    def _names(cls, value: str) -> str:
        return validators.check_name(value)

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: Optional[str]) -> Optional[str]:
        return validators.check_phone(value)


class AdminMemberUpdate(BaseModel):
    member_type: Optional[str] = Field(default=None, pattern="^(REGULAR|admin)$")
    is_active: Optional[bool] = None
    is_verified: Optional[bool] = None
