"""Authentication request and response models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from . import validators
from .users import UserRead


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, description="Password is required")
    remember_me: bool = False


class RegisterRequest(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr
    password: str
    phone: Optional[str] = None
    company: str
    title: Optional[str] = Field(default=None, max_length=100)
    agree_to_terms: bool

    @field_validator("first_name")
    @classmethod
    def _first_name(cls, value: str) -> str:
        return validators.check_name(value, "First name")

    @field_validator("last_name")
    @classmethod
    def _last_name(cls, value: str) -> str:
        return validators.check_name(value, "Last name")

    @field_validator("password")
    @classmethod
    def _password(cls, value: str) -> str:
        return validators.check_password(value)

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: Optional[str]) -> Optional[str]:
        return validators.check_phone(value)

    @field_validator("company")
    @classmethod
    def _company(cls, value: str) -> str:
        return validators.check_company(value)

    @field_validator("agree_to_terms")
    @classmethod
    def _terms(cls, value: bool) -> bool:
        if not value:
            raise ValueError("You must agree to the terms and conditions")
        return value


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    password: str

    @field_validator("password")
    @classmethod
    def _password(cls, value: str) -> str:
        return validators.check_password(value)


class VerifyEmailRequest(BaseModel):
    token: str = Field(min_length=1)


class AuthPayload(BaseModel):
    user: UserRead
    token: str


class RegisterPayload(BaseModel):
    user: UserRead
    email_sent: bool


class ResetTokenInfo(BaseModel):
    valid: bool
    email: str
    first_name: str
    expires_at: Optional[datetime] = None
