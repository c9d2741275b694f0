"""SMTP delivery of verification and password reset emails."""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from urllib.parse import quote

from showerlog.config import Settings, get_settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the SMTP server rejects or cannot accept a message."""


VERIFICATION_TEMPLATE = """
<div style="max-width: 600px; margin: 0 auto; padding: 20px; font-family: Arial, sans-serif;">
  <h2>Welcome to {app_name}!</h2>
  <p>Please click the link below to verify your email address:</p>
  <p><a href="{url}">Verify Email</a></p>
  <p>If the link doesn't work, copy and paste this address into your browser:</p>
  <p style="word-break: break-all;">{url}</p>
</div>
"""

RESET_TEMPLATE = """
<div style="max-width: 600px; margin: 0 auto; padding: 20px; font-family: Arial, sans-serif;">
  <h2>Password Reset Request</h2>
  <p>You requested to reset your password. Click the link below to set a new password:</p>
  <p><a href="{url}">Reset Password</a></p>
  <p>If the link doesn't work, copy and paste this address into your browser:</p>
  <p style="word-break: break-all;">{url}</p>
  <p>This link will expire in {minutes} minutes.</p>
  <p>If you didn't request this, please ignore this email.</p>
</div>
"""


class EmailService:
    """Sends transactional emails with links back to the frontend."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def _link(self, path: str, token: str) -> str:
        return f"{self.settings.app_url.rstrip('/')}{path}?token={quote(token)}"

    def _send_sync(self, to_email: str, subject: str, html: str) -> None:
        settings = self.settings
        from_email = settings.smtp_from or settings.smtp_user or f"no-reply@{settings.smtp_host}"

        msg = MIMEMultipart()
        msg["From"] = from_email
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(html, "html"))

        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            if settings.smtp_user and settings.smtp_password:
                server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(from_email, [to_email], msg.as_string())

    async def send(self, to_email: str, subject: str, html: str) -> None:
        """Deliver one message; SMTP runs in a worker thread."""
        try:
            await asyncio.to_thread(self._send_sync, to_email, subject, html)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send '%s' email: %s", subject, e)
            raise EmailDeliveryError(str(e)) from e
        logger.info("Sent '%s' email", subject)

    async def send_verification_email(self, to_email: str, token: str) -> None:
        url = self._link("/verify-email", token)
        await self.send(
            to_email,
            f"Verify your email - {self.settings.app_name}",
            VERIFICATION_TEMPLATE.format(app_name=self.settings.app_name, url=url),
        )

    async def send_password_reset_email(self, to_email: str, token: str) -> None:
        url = self._link("/reset-password", token)
        await self.send(
            to_email,
            f"Reset your password - {self.settings.app_name}",
            RESET_TEMPLATE.format(url=url, minutes=self.settings.password_reset_expire_minutes),
        )


def get_email_service() -> EmailService:
    """FastAPI dependency; overridden in tests."""
    return EmailService()
