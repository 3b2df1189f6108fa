"""
Field validation rules shared by the request schemas.

Each ``check_*`` function returns the cleaned value or raises ``ValueError``
so it can be used directly inside pydantic ``field_validator`` hooks.
"""

from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import urlparse

NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-\(\)]+$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]+$")

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
NAME_MAX_LENGTH = 50
COMPANY_MAX_LENGTH = 100
BIO_MAX_LENGTH = 1000
MAX_SKILLS = 20
SKILL_MAX_LENGTH = 50


def check_name(value: str, label: str = "Name") -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{label} is required")
    if len(value) > NAME_MAX_LENGTH:
        raise ValueError(f"{label} must be less than {NAME_MAX_LENGTH} characters")
    if not NAME_PATTERN.match(value):
        raise ValueError(f"{label} can only contain letters, spaces, hyphens, and apostrophes")
    return value


def check_password(value: str) -> str:
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(value) > PASSWORD_MAX_LENGTH:
        raise ValueError(f"Password must be less than {PASSWORD_MAX_LENGTH} characters")
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(
            "Password must contain at least one lowercase letter, one uppercase letter, "
            "one number, and one special character"
        )
    return value


def check_phone(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    value = value.strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError("Invalid phone number format")
    if not 10 <= len(value) <= 20:
        raise ValueError("Phone number must be between 10 and 20 characters")
    return value


def check_company(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Company name is required")
    if len(value) > COMPANY_MAX_LENGTH:
        raise ValueError(f"Company name must be less than {COMPANY_MAX_LENGTH} characters")
    return value


def check_url(value: Optional[str], label: str = "URL") -> Optional[str]:
    """Accept empty values (cleared field) or absolute http(s) URLs."""
    if value is None or not value.strip():
        return None
    value = value.strip()
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid {label}")
    return value


def check_skills(values: Optional[List[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    if len(values) > MAX_SKILLS:
        raise ValueError(f"Maximum {MAX_SKILLS} skills allowed")
    cleaned = []
    for skill in values:
        skill = skill.strip()
        if len(skill) > SKILL_MAX_LENGTH:
            raise ValueError(f"Each skill must be less than {SKILL_MAX_LENGTH} characters")
        if skill:
            cleaned.append(skill)
    return cleaned


def check_not_null(value):
    """Reject an explicit ``null`` for a field that cannot be cleared."""
    if value is None:
        raise ValueError("Field cannot be null")
    return value
