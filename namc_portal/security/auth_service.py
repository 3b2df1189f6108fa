"""
Authentication service.

Credential checks with login lockout, token-to-user resolution and role
predicates. Every outcome of a login attempt is written to the audit log.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from namc_portal.core.database.base import utc_now
from namc_portal.core.database.entities.users import MemberType, User
from namc_portal.core.database.repositories.users import UserRepository
from namc_portal.core.errors import AuthenticationError
from namc_portal.core.logging_config import get_logger, log_auth_action

from .passwords import verify_password
from .tokens import TokenClaims, generate_token, verify_token

logger = get_logger(__name__)

MAX_FAILED_ATTEMPTS = 5
LOCKOUT_DURATION = timedelta(minutes=15)


def is_admin(user: Optional[User]) -> bool:
    return user is not None and user.member_type == MemberType.ADMIN.value


def can_access_admin(user: Optional[User]) -> bool:
    """Admins may use admin routes only while active and verified."""
    return is_admin(user) and user.is_active and user.is_verified


def issue_token(user: User) -> str:
    return generate_token(user.id, user.email, user.member_type)


class AuthService:
    """Login, lockout and session resolution on top of the member repository."""

    def __init__(self, session: AsyncSession) -> None:
        self.users = UserRepository(session)

    async def authenticate(self, email: str, password: str, ip_address: Optional[str] = None) -> Optional[User]:
        """Check credentials and maintain the lockout counters.

        Args:
            email: Login email (case-insensitive)
            password: Plain-text password
            ip_address: Client address, for the audit log

        Returns:
            The member on success, ``None`` on any failure. Callers must not
            tell the client which check failed.
        """
        email = email.strip().lower()
        user = await self.users.get_by_email(email)
        if user is None:
            log_auth_action("LOGIN_FAILED", email=email, reason="unknown_email", ip_address=ip_address)
            return None

        now = utc_now()
        if user.locked_until is not None and user.locked_until > now:
            log_auth_action("LOGIN_BLOCKED", user_id=user.id, email=email, reason="locked", ip_address=ip_address)
            return None
        if user.locked_until is not None:
            # Lock has lapsed; the next bad password starts a fresh count.
            user.locked_until = None
            user.failed_login_attempts = 0

        if not user.is_active:
            log_auth_action("LOGIN_BLOCKED", user_id=user.id, email=email, reason="inactive", ip_address=ip_address)
            return None

        if not verify_password(password, user.password_hash):
            user.failed_login_attempts += 1
            user.last_failed_login = now
            if user.failed_login_attempts >= MAX_FAILED_ATTEMPTS:
                user.locked_until = now + LOCKOUT_DURATION
                logger.warning(f"Account locked after {user.failed_login_attempts} failed logins: user_id={user.id}")
                log_auth_action(
                    "ACCOUNT_LOCKED",
                    user_id=user.id,
                    email=email,
                    attempts=user.failed_login_attempts,
                    ip_address=ip_address,
                )
            await self.users.update(user)
            log_auth_action(
                "LOGIN_FAILED",
                user_id=user.id,
                email=email,
                reason="bad_password",
                attempts=user.failed_login_attempts,
                ip_address=ip_address,
            )
            return None

        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_successful_login = now
        user = await self.users.update(user)
        log_auth_action("LOGIN_SUCCESS", user_id=user.id, email=email, ip_address=ip_address)
        return user

    async def resolve_claims(self, claims: TokenClaims) -> Optional[User]:
        """Load the member named by verified claims if they may still sign in."""
        user = await self.users.get_by_id(claims.user_id)
        if user is None or not user.is_active or not user.is_verified:
            return None
        return user

    async def get_user_from_token(self, token: Optional[str]) -> Optional[User]:
        """Resolve a raw session token to an active, verified member.

        Expired, tampered or malformed tokens and unknown or disabled members
        all yield ``None``.
        """
        if not token:
            return None
        try:
            claims = verify_token(token)
        except AuthenticationError as e:
            logger.debug(f"Rejected session token: {e.message}")
            return None
        return await self.resolve_claims(claims)
