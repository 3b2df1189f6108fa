"""
Password hashing and strength checks.

Hashes use bcrypt with the cost factor from ``PASSWORD_HASH_ROUNDS``. bcrypt
only reads the first 72 bytes of its input, so longer passwords are cut to
that length explicitly before hashing and verifying.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass, field
from typing import List

import bcrypt

from namc_portal.core.logging_config import get_logger
from namc_portal.server.core.config import settings

logger = get_logger(__name__)

BCRYPT_MAX_BYTES = 72

_COMMON_PATTERNS = (
    re.compile(r"123456"),
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"qwerty", re.IGNORECASE),
    re.compile(r"abc123", re.IGNORECASE),
    re.compile(r"(.)\1{2,}"),
)


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash ``password`` with a fresh salt."""
    rounds = settings.jwt.password_hash_rounds
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against a stored bcrypt hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("ascii"))
    except (ValueError, TypeError):
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def generate_secure_token(length: int = 32) -> str:
    """Random hex token of ``length`` characters for email verification and reset links."""
    return secrets.token_hex((length + 1) // 2)[:length]


@dataclass
class PasswordStrength:
    is_valid: bool
    score: int
    feedback: List[str] = field(default_factory=list)


def validate_password_strength(password: str) -> PasswordStrength:
    """Score a password from 0 to 6 and list what would make it stronger."""
    feedback: List[str] = []
    score = 0

    if len(password) >= 8:
        score += 1
    else:
        feedback.append("Password must be at least 8 characters long")
    if len(password) >= 12:
        score += 1

    if re.search(r"[a-z]", password):
        score += 1
    else:
        feedback.append("Password must contain lowercase letters")
    if re.search(r"[A-Z]", password):
        score += 1
    else:
        feedback.append("Password must contain uppercase letters")
    if re.search(r"\d", password):
        score += 1
    else:
        feedback.append("Password must contain numbers")
    if re.search(r"[^a-zA-Z0-9]", password):
        score += 1
    else:
        feedback.append("Password must contain special characters")

    if any(pattern.search(password) for pattern in _COMMON_PATTERNS):
        score = max(0, score - 2)
        feedback.append("Password contains common patterns")

    return PasswordStrength(is_valid=not feedback and score >= 4, score=score, feedback=feedback)
