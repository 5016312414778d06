"""Outbound email for password reset and email verification links."""

import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from infographic_api.config import Settings

logger = logging.getLogger("infographic_api")


class EmailDeliveryError(Exception):
    """Raised when the email provider rejects or fails a send."""


class EmailService:
    """Sends transactional email via SendGrid.

    Without an API key the links are written to the server log instead, which
    is how local development picks them up.
    """

    def __init__(self, settings: Settings) -> None:
        self.api_key = settings.SENDGRID_API_KEY
        self.from_email = settings.EMAIL_FROM
        self.app_name = "Infographic Studio"

    def send_password_reset(self, to_email: str, name: str, reset_url: str) -> None:
        html = (
            f"<p>Hi {name},</p>"
            f"<p>Forgot your password? Submit a PATCH request with your new password to: "
            f'<a href="{reset_url}">{reset_url}</a></p>'
            "<p>This link is valid for 10 minutes. If you didn't forget your password, please ignore this email.</p>"
        )
        self._send(to_email, f"{self.app_name} - Your password reset token", html, reset_url, "PASSWORD RESET")

    def send_email_verification(self, to_email: str, name: str, verify_url: str) -> None:
        html = (
            f"<p>Welcome to {self.app_name}, {name}!</p>"
            f'<p>Please confirm your email address: <a href="{verify_url}">{verify_url}</a></p>'
            "<p>This link is valid for 24 hours.</p>"
        )
        self._send(to_email, f"{self.app_name} - Verify your email", html, verify_url, "EMAIL VERIFICATION")

    def _send(self, to_email: str, subject: str, html: str, link: str, label: str) -> None:
        if not self.api_key:
            logger.info("%s for %s: %s", label, to_email, link)
            return

        message = Mail(from_email=self.from_email, to_emails=to_email, subject=subject, html_content=html)
        try:
            SendGridAPIClient(self.api_key).send(message)
        except Exception as exc:
            logger.exception("Email send failed: %s", exc)
            raise EmailDeliveryError(str(exc)) from exc
