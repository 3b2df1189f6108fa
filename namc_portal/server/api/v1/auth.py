"""
Authentication endpoints.

Login and logout with the ``namc-auth-token`` session cookie, registration
with email verification, password reset, and the current-user lookup.
"""

from __future__ import annotations

from datetime import timedelta
from html import escape

from fastapi import APIRouter, Query, Request, Response, status
from fastapi.responses import HTMLResponse

from namc_portal.core.database.base import utc_now
from namc_portal.core.database.entities.users import MemberType, User
from namc_portal.core.database.repositories.users import UserRepository
from namc_portal.core.errors import AuthenticationError, AuthorizationError, ConflictError, ValidationError
from namc_portal.core.logging_config import get_logger, log_auth_action
from namc_portal.core.models.io.auth import (
    AuthPayload,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterPayload,
    RegisterRequest,
    ResetPasswordRequest,
    ResetTokenInfo,
    VerifyEmailRequest,
)
from namc_portal.core.models.io.common import ApiResponse, ok
from namc_portal.core.models.io.users import UserRead
from namc_portal.security.auth_service import AuthService, issue_token
from namc_portal.security.passwords import generate_secure_token, hash_password
from namc_portal.server.core.config import settings
from namc_portal.server.core.constant import AUTH_COOKIE_NAME
from namc_portal.server.services.deps import CurrentUser, EmailServiceDep, SessionDep, request_ip

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])

SESSION_DAYS = 7
REMEMBER_ME_DAYS = 30
VERIFICATION_TTL = timedelta(hours=24)
RESET_TTL = timedelta(hours=1)
FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent."


def set_session_cookie(response: Response, token: str, remember_me: bool) -> None:
    days = REMEMBER_ME_DAYS if remember_me else SESSION_DAYS
    response.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        max_age=days * 24 * 3600,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(AUTH_COOKIE_NAME, path="/", httponly=True, samesite="strict")


@router.post(
    "/login",
    response_model=ApiResponse[AuthPayload],
    summary="Sign In",
    description="Check credentials, set the session cookie and return the member with their token.",
    responses={401: {"description": "Invalid email or password"}, 403: {"description": "Email not verified"}},
)
async def login(body: LoginRequest, request: Request, response: Response, session: SessionDep):
    """
    Sign in with email and password.

    Five consecutive failures lock the account for 15 minutes. The error never
    says which part of the credentials was wrong.
    """
    user = await AuthService(session).authenticate(body.email, body.password, ip_address=request_ip(request))
    if user is None:
        raise AuthenticationError("Invalid email or password")
    if not user.is_verified:
        raise AuthorizationError("Please verify your email address before signing in")

    token = issue_token(user)
    set_session_cookie(response, token, body.remember_me)
    return ok(AuthPayload(user=UserRead.model_validate(user), token=token), request=request, message="Login successful")


@router.post(
    "/register",
    response_model=ApiResponse[RegisterPayload],
    summary="Register",
    description="Create a member account and send the verification and welcome emails.",
    responses={409: {"description": "Email already registered"}},
)
async def register(body: RegisterRequest, request: Request, session: SessionDep, email_service: EmailServiceDep):
    users = UserRepository(session)
    email = body.email.lower()
    if await users.get_by_email(email) is not None:
        raise ConflictError("An account with this email already exists")

    user = User(
        email=email,
        password_hash=hash_password(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        company=body.company,
        title=body.title,
        member_type=MemberType.REGULAR.value,
        is_active=True,
        is_verified=False,
        email_verification_token=generate_secure_token(),
        email_verification_expires=utc_now() + VERIFICATION_TTL,
    )
    user = await users.create(user)
    log_auth_action("REGISTER", user_id=user.id, email=user.email, ip_address=request_ip(request))

    verification = await email_service.send_verification(user.email, user.first_name, user.email_verification_token)
    if not verification.success:
        logger.warning(f"Verification email to {user.email} failed: {verification.error}")
    welcome = await email_service.send_welcome(user.email, user.first_name)
    if not welcome.success:
        logger.warning(f"Welcome email to {user.email} failed: {welcome.error}")

    return ok(
        RegisterPayload(user=UserRead.model_validate(user), email_sent=verification.success),
        request=request,
        message="Registration successful. Please check your email to verify your account.",
    )


@router.post("/logout", response_model=ApiResponse[None], summary="Sign Out")
async def logout(request: Request, response: Response):
    clear_session_cookie(response)
    return ok(request=request, message="Logged out successfully")


@router.get(
    "/me",
    response_model=ApiResponse[UserRead],
    summary="Current Member",
    description="The member owning the session cookie or bearer token.",
    responses={401: {"description": "Missing or invalid session"}},
)
async def me(request: Request, user: CurrentUser):
    return ok(UserRead.model_validate(user), request=request)


@router.post("/forgot-password", response_model=ApiResponse[None], summary="Request Password Reset")
async def forgot_password(
    body: ForgotPasswordRequest, request: Request, session: SessionDep, email_service: EmailServiceDep
):
    """Always answers with the same message so the endpoint cannot be used to probe for accounts."""
    users = UserRepository(session)
    user = await users.get_by_email(body.email)
    if user is not None and user.is_active:
        user.password_reset_token = generate_secure_token()
        user.password_reset_expires = utc_now() + RESET_TTL
        user = await users.update(user)
        log_auth_action("PASSWORD_RESET_REQUESTED", user_id=user.id, email=user.email, ip_address=request_ip(request))
        result = await email_service.send_password_reset(user.email, user.first_name, user.password_reset_token)
        if not result.success:
            logger.warning(f"Password reset email to {user.email} failed: {result.error}")
    return ok(request=request, message=FORGOT_PASSWORD_MESSAGE)


@router.get(
    "/reset-password",
    response_model=ApiResponse[ResetTokenInfo],
    summary="Check Reset Token",
    responses={400: {"description": "Invalid or expired token"}},
)
async def check_reset_token(request: Request, session: SessionDep, token: str = Query(min_length=1)):
    user = await UserRepository(session).get_by_reset_token(token)
    if user is None:
        raise ValidationError("Invalid or expired reset token")
    info = ResetTokenInfo(valid=True, email=user.email, first_name=user.first_name, expires_at=user.password_reset_expires)
    return ok(info, request=request)


@router.post(
    "/reset-password",
    response_model=ApiResponse[None],
    summary="Reset Password",
    responses={400: {"description": "Invalid or expired token"}},
)
async def reset_password(body: ResetPasswordRequest, request: Request, session: SessionDep):
    users = UserRepository(session)
    user = await users.get_by_reset_token(body.token)
    if user is None:
        raise ValidationError("Invalid or expired reset token")
    user.password_hash = hash_password(body.password)
    user.password_reset_token = None
    user.password_reset_expires = None
    user.failed_login_attempts = 0
    user.locked_until = None
    await users.update(user)
    log_auth_action("PASSWORD_RESET", user_id=user.id, email=user.email, ip_address=request_ip(request))
    return ok(request=request, message="Password has been reset. You can now sign in.")


async def _verify(session, token: str) -> User:
    users = UserRepository(session)
    user = await users.get_by_verification_token(token)
    if user is None:
        raise ValidationError("Invalid or expired verification token")
    user.is_verified = True
    user.email_verification_token = None
    user.email_verification_expires = None
    user = await users.update(user)
    log_auth_action("EMAIL_VERIFIED", user_id=user.id, email=user.email)
    return user


@router.post(
    "/verify-email",
    response_model=ApiResponse[UserRead],
    summary="Verify Email",
    responses={400: {"description": "Invalid or expired token"}},
)
async def verify_email(body: VerifyEmailRequest, request: Request, session: SessionDep):
    user = await _verify(session, body.token)
    return ok(UserRead.model_validate(user), request=request, message="Email verified successfully")


_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>{title} | NAMC NorCal</title></head>
<body>
<h1>{title}</h1>
<p>{message}</p>
<p><a href="{link}">{link_text}</a></p>
</body>
</html>
"""


@router.get("/verify-email", response_class=HTMLResponse, summary="Verify Email (link)")
async def verify_email_link(session: SessionDep, token: str = Query(default="")):
    """Target of the link in the verification email; answers with a small HTML page."""
    app_url = settings.email.app_url
    try:
        user = await _verify(session, token) if token else None
    except ValidationError:
        user = None
    if user is None:
        page = _PAGE.format(
            title="Verification failed",
            message="This verification link is invalid or has expired.",
            link=escape(f"{app_url}/login"),
            link_text="Back to sign in",
        )
        return HTMLResponse(page, status_code=status.HTTP_400_BAD_REQUEST)
    page = _PAGE.format(
        title="Email verified",
        message=f"Thanks, {escape(user.first_name)}. Your email address is verified and you can now sign in.",
        link=escape(f"{app_url}/login"),
        link_text="Sign in",
    )
    return HTMLResponse(page)
