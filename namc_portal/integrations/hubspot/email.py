"""
Transactional email through HubSpot single-send.

In the development environment, or when no HubSpot key is configured, emails
are written to the log instead of being sent. Sending never raises: callers
get an ``EmailResult`` and decide whether a failure matters.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from namc_portal.core.logging_config import get_logger
from namc_portal.server.core.config import Settings, settings

from .client import HubSpotClient
from .errors import HubSpotApiError

logger = get_logger(__name__)


class EmailTemplate(str, Enum):
    WELCOME = "welcome"
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"
    CONTRACTOR_INVITATION = "contractor_invitation"
    EVENT_REGISTRATION = "event_registration"
    ADMIN_NOTIFICATION = "admin_notification"


TEMPLATE_SUBJECTS = {
    EmailTemplate.WELCOME: "Welcome to NAMC NorCal, {first_name}!",
    EmailTemplate.EMAIL_VERIFICATION: "Verify your NAMC NorCal email address",
    EmailTemplate.PASSWORD_RESET: "Reset your NAMC NorCal password",
    EmailTemplate.CONTRACTOR_INVITATION: "Join NAMC NorCal - Exclusive Contractor Network",
    EmailTemplate.EVENT_REGISTRATION: "Event registration confirmation: {event_title}",
    EmailTemplate.ADMIN_NOTIFICATION: "[NAMC Admin] {subject}",
}


@dataclass
class EmailResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    rate_limited: bool = False
    retry_after: Optional[int] = None


class EmailService:
    """Renders template variables and hands them to HubSpot (or the log)."""

    def __init__(
        self,
        app_settings: Settings = settings,
        *,
        rate_limiter=None,
        hubspot: Optional[HubSpotClient] = None,
    ) -> None:
        self.settings = app_settings
        self.rate_limiter = rate_limiter
        self.hubspot = hubspot

    def _template_id(self, template: EmailTemplate) -> Optional[str]:
        email = self.settings.email
        return {
            EmailTemplate.WELCOME: email.welcome_template_id,
            EmailTemplate.EMAIL_VERIFICATION: email.verification_template_id,
            EmailTemplate.PASSWORD_RESET: email.password_reset_template_id,
            EmailTemplate.CONTRACTOR_INVITATION: email.contractor_invitation_template_id,
            EmailTemplate.EVENT_REGISTRATION: email.event_registration_template_id,
            EmailTemplate.ADMIN_NOTIFICATION: email.admin_notification_template_id,
        }[template]

    def _delivers_for_real(self) -> bool:
        return not self.settings.is_development and bool(self.settings.hubspot.api_key or self.hubspot)

    async def send(self, template: EmailTemplate, to: str, variables: Dict[str, Any]) -> EmailResult:
        """Send one templated email to ``to``.

        Args:
            template: Which template to use
            to: Recipient address
            variables: Template variables, passed to HubSpot as custom properties

        Returns:
            The delivery outcome
        """
        if self.rate_limiter is not None:
            limit = await self.rate_limiter.check_email(to)
            if not limit.allowed:
                logger.warning(f"Email rate limit exceeded for recipient {to}")
                return EmailResult(
                    success=False,
                    error="Too many emails sent to this address. Please try again later.",
                    rate_limited=True,
                    retry_after=limit.retry_after,
                )

        subject = TEMPLATE_SUBJECTS[template].format_map(_Defaulting(variables))

        if not self._delivers_for_real():
            message_id = f"dev-{uuid.uuid4().hex[:12]}"
            logger.info(
                f"Email (not sent, development mode): template={template.value} to={to} subject={subject!r}",
                extra={"template": template.value, "to": to, "variables": variables, "message_id": message_id},
            )
            return EmailResult(success=True, message_id=message_id)

        template_id = self._template_id(template)
        if not template_id:
            logger.error(f"No HubSpot template configured for {template.value}")
            return EmailResult(success=False, error=f"Email template {template.value} is not configured")

        client = self.hubspot or HubSpotClient.from_config(self.settings.hubspot)
        try:
            result = await client.send_transactional_email(
                email_id=template_id,
                to=to,
                from_address=f"{self.settings.email.from_name} <{self.settings.email.from_email}>",
                reply_to=self.settings.email.reply_to,
                custom_properties={**variables, "subject": subject},
            )
        except HubSpotApiError as e:
            logger.error(f"Failed to send {template.value} email to {to}: {e}", extra={"details": e.details})
            return EmailResult(success=False, error=str(e))
        finally:
            if self.hubspot is None:
                await client.aclose()

        logger.info(f"Sent {template.value} email to {to}")
        return EmailResult(success=True, message_id=result.status_id)

    # ------------------------------------------------------------------
    # Template helpers
    # ------------------------------------------------------------------

    async def send_welcome(self, to: str, first_name: str) -> EmailResult:
        return await self.send(
            EmailTemplate.WELCOME,
            to,
            {"first_name": first_name, "dashboard_url": f"{self.settings.email.app_url}/dashboard"},
        )

    async def send_verification(self, to: str, first_name: str, token: str) -> EmailResult:
        return await self.send(
            EmailTemplate.EMAIL_VERIFICATION,
            to,
            {"first_name": first_name, "verification_url": f"{self.settings.email.app_url}/verify-email?token={token}"},
        )

    async def send_password_reset(self, to: str, first_name: str, token: str) -> EmailResult:
        return await self.send(
            EmailTemplate.PASSWORD_RESET,
            to,
            {"first_name": first_name, "reset_url": f"{self.settings.email.app_url}/reset-password?token={token}"},
        )

    async def send_contractor_invitation(self, to: str, business_name: str) -> EmailResult:
        return await self.send(
            EmailTemplate.CONTRACTOR_INVITATION,
            to,
            {"business_name": business_name, "register_url": f"{self.settings.email.app_url}/register"},
        )

    async def send_event_registration(self, to: str, first_name: str, event_title: str, start_date: str) -> EmailResult:
        return await self.send(
            EmailTemplate.EVENT_REGISTRATION,
            to,
            {"first_name": first_name, "event_title": event_title, "event_date": start_date},
        )

    async def send_admin_notification(self, to: str, subject: str, message: str) -> EmailResult:
        return await self.send(EmailTemplate.ADMIN_NOTIFICATION, to, {"subject": subject, "message": message})


class _Defaulting(dict):
    """``str.format_map`` mapping that leaves unknown placeholders empty."""

    def __missing__(self, key: str) -> str:
        return ""
