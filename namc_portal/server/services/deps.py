"""
FastAPI dependencies.

Session resolution for API endpoints (cookie or bearer token), role checks,
and access to the shared rate limiter, email service and HubSpot client.
"""

from __future__ import annotations

from typing import Annotated, AsyncGenerator, List, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from namc_portal.core.database import get_session
from namc_portal.core.database.entities.users import User
from namc_portal.core.errors import AuthenticationError, AuthorizationError, ExternalServiceError
from namc_portal.integrations.hubspot.client import HubSpotClient
from namc_portal.integrations.hubspot.email import EmailService
from namc_portal.security.auth_service import AuthService, can_access_admin
from namc_portal.security.rate_limit import RateLimiter
from namc_portal.security.route_access import client_ip
from namc_portal.security.tokens import TokenClaims, verify_token
from namc_portal.server.core.config import settings
from namc_portal.server.core.constant import AUTH_COOKIE_NAME

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def session_tokens(request: Request) -> List[str]:
    """Candidate session tokens: the auth cookie first, then ``Authorization: Bearer``."""
    tokens = []
    cookie = request.cookies.get(AUTH_COOKIE_NAME)
    if cookie:
        tokens.append(cookie)
    scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
    credentials = credentials.strip()
    if scheme.lower() == "bearer" and credentials and credentials not in tokens:
        tokens.append(credentials)
    return tokens


def _first_valid_claims(tokens: List[str]) -> TokenClaims:
    """Claims of the first token that verifies; a stale cookie falls through to the bearer token."""
    error = AuthenticationError()
    for token in tokens:
        try:
            return verify_token(token)
        except AuthenticationError as e:
            error = e
    raise error


def request_ip(request: Request) -> str:
    return client_ip(request.headers, request.client.host if request.client else None)


async def get_current_user(request: Request, session: SessionDep) -> User:
    claims = _first_valid_claims(session_tokens(request))
    user = await AuthService(session).resolve_claims(claims)
    if user is None:
        raise AuthenticationError("User not found or inactive")
    return user


async def get_optional_user(request: Request, session: SessionDep) -> Optional[User]:
    service = AuthService(session)
    for token in session_tokens(request):
        user = await service.get_user_from_token(token)
        if user is not None:
            return user
    return None


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]


async def require_admin(user: CurrentUser) -> User:
    if not can_access_admin(user):
        raise AuthorizationError("Admin access required")
    return user


AdminUser = Annotated[User, Depends(require_admin)]


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]


def get_email_service(limiter: RateLimiterDep) -> EmailService:
    return EmailService(settings, rate_limiter=limiter)


EmailServiceDep = Annotated[EmailService, Depends(get_email_service)]


async def get_hubspot_client() -> AsyncGenerator[HubSpotClient, None]:
    """A HubSpot client for the duration of one request.

    Raises:
        ExternalServiceError: 503 when ``HUBSPOT_API_KEY`` is not configured
    """
    if not settings.hubspot.api_key:
        raise ExternalServiceError("HubSpot", "HUBSPOT_API_KEY is not configured", status_code=503)
    async with HubSpotClient.from_config(settings.hubspot) as client:
        yield client


HubSpotDep = Annotated[HubSpotClient, Depends(get_hubspot_client)]
