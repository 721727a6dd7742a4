"""
Outbound email through the Resend HTTP API.

Routes depend on ``get_email_client`` so tests can substitute a recording
fake. The client raises ``EmailDeliveryError``; whether that error fails
the request is decided by the caller.
"""

from __future__ import annotations

from html import escape
from typing import Dict, List, Optional

import httpx

from takt.core.errors import EmailDeliveryError
from takt.core.logging_config import get_logger
from takt.server.core.config import EmailConfig, settings

logger = get_logger(__name__)


class EmailClient:
    """Thin async client for the Resend send-email endpoint."""

    def __init__(self, config: EmailConfig, timeout: float = 10.0) -> None:
        self.config = config
        self.timeout = timeout

    @property
    def app_url(self) -> str:
        return self.config.app_url.rstrip("/")

    async def send(self, to: List[str], subject: str, html: str) -> Optional[str]:
        """
        Send one message.

        Returns:
            The provider message id, when the provider returns one

        Raises:
            EmailDeliveryError: When no API key is configured or the provider rejects the request
        """
        if not self.config.api_key:
            raise EmailDeliveryError("Email provider is not configured (RESEND_API_KEY is unset)")

        payload = {"from": self.config.sender, "to": to, "subject": subject, "html": html}
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.config.api_url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Email delivery failed for subject '{subject}': {e}")
            raise EmailDeliveryError(f"Failed to send email: {e}") from e

        message_id = response.json().get("id")
        logger.info(f"Email sent: subject='{subject}' recipients={len(to)} id={message_id}")
        return message_id

    async def send_password_reset(self, email: str, first_name: str, token: str) -> Optional[str]:
        reset_url = f"{self.app_url}/reset-password?token={token}"
        html = (
            f"<p>Hi {escape(first_name)},</p>"
            "<p>We received a request to reset your Takt password. "
            f'<a href="{reset_url}">Reset your password</a>. This link expires in 1 hour.</p>'
            "<p>If you did not request this, you can ignore this email.</p>"
        )
        return await self.send([email], "Reset your Takt password", html)

    async def send_otp(self, email: str, first_name: str, code: str, expiry_minutes: int) -> Optional[str]:
        html = (
            f"<p>Hi {escape(first_name)},</p>"
            f"<p>Your Takt verification code is <strong>{code}</strong>. "
            f"It expires in {expiry_minutes} minutes.</p>"
        )
        return await self.send([email], "Your Takt verification code", html)

    async def send_invitation(self, email: str, organization_name: str, inviter_name: str, token: str) -> Optional[str]:
        invite_url = f"{self.app_url}/invite/{token}"
        html = (
            f"<p>{escape(inviter_name)} invited you to join <strong>{escape(organization_name)}</strong> on Takt.</p>"
            f'<p><a href="{invite_url}">Accept the invitation</a></p>'
        )
        return await self.send([email], f"You're invited to join {organization_name} on Takt", html)

    async def send_contact_enquiry(self, to: str, fields: Dict[str, str]) -> Optional[str]:
        """Forward a landing-page contact form to the sales inbox."""
        rows = "".join(
            f"<tr><td><strong>{escape(label)}</strong></td><td>{escape(value)}</td></tr>" for label, value in fields.items()
        )
        subject = f"Contact request from {fields.get('Company', 'unknown company')}"
        return await self.send([to], subject, f"<table>{rows}</table>")


def get_email_client() -> EmailClient:
    """FastAPI dependency returning a client bound to the current settings."""
    return EmailClient(settings.email)
