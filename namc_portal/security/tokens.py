"""
Session token issuing and verification.

Tokens are HS256 JWTs signed with ``JWT_SECRET`` carrying the member id,
email and member type. There is no server-side revocation: a token stays
valid until it expires.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from namc_portal.core.errors import AuthenticationError, ConfigurationError
from namc_portal.server.core.config import settings

ALGORITHM = "HS256"
MIN_SECRET_LENGTH = 32


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    member_type: str
    issued_at: datetime
    expires_at: datetime


def _secret() -> str:
    secret = settings.jwt.secret
    if not secret:
        raise ConfigurationError("JWT_SECRET environment variable is required")
    if len(secret) < MIN_SECRET_LENGTH:
        raise ConfigurationError(f"JWT_SECRET must be at least {MIN_SECRET_LENGTH} characters long")
    return secret


def generate_token(user_id: str, email: str, member_type: str) -> str:
    """Issue a signed session token valid for ``JWT_EXPIRES_DAYS`` days."""
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "email": email,
        "member_type": member_type,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt.expires_days),
    }
    return jwt.encode(payload, _secret(), algorithm=ALGORITHM)


def verify_token(token: str) -> TokenClaims:
    """Decode and validate a session token.

    Raises:
        AuthenticationError: The token is expired, tampered with or malformed.
        ConfigurationError: ``JWT_SECRET`` is missing or too short.
    """
    try:
        payload = jwt.decode(
            token,
            _secret(),
            algorithms=[ALGORITHM],
            options={"require": ["exp", "iat", "user_id"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Session has expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid session token") from e

    try:
        return TokenClaims(
            user_id=str(payload["user_id"]),
            email=str(payload.get("email", "")),
            member_type=str(payload.get("member_type", "")),
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (TypeError, ValueError, OverflowError) as e:
        raise AuthenticationError("Invalid session token") from e
