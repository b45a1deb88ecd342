"""Verification email delivery over SMTP."""
from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from starlette.concurrency import run_in_threadpool

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "Whisperbox - Verification Code"


class MailDeliveryError(Exception):
    """Raised when the SMTP server refuses or cannot take the message."""


def render_verification_email(username: str, code: str) -> str:
    """Return the HTML body carrying the one-time code."""

    return f"""
    <!DOCTYPE html>
    <html lang="en">
    <head>
      <meta charset="UTF-8">
      <title>Verification Code</title>
    </head>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
      <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2>Hello {username},</h2>
        <p>Thank you for registering. Please use the following verification code to complete your registration:</p>
        <p style="font-size: 24px; font-weight: bold; color: #007bff;">{code}</p>
        <p>If you did not request this code, please ignore this email.</p>
      </div>
    </body>
    </html>
    """


class VerificationMailer:
    """Sends sign-up verification codes through the configured SMTP account."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def build_message(self, email: str, username: str, code: str) -> EmailMessage:
        sender = self.settings.mail_from or self.settings.smtp_username
        msg = EmailMessage()
        msg["From"] = sender
        msg["To"] = email
        msg["Subject"] = VERIFICATION_SUBJECT
        msg.set_content(f"Hello {username}, your verification code is {code}.")
        msg.add_alternative(render_verification_email(username, code), subtype="html")
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP_SSL(self.settings.smtp_host, self.settings.smtp_port) as server:
            if self.settings.smtp_username:
                server.login(self.settings.smtp_username, self.settings.smtp_password)
            server.send_message(msg)

    async def send_verification_email(self, email: str, username: str, code: str) -> None:
        """Deliver the code; blocking SMTP I/O runs in the threadpool."""

        msg = self.build_message(email, username, code)
        try:
            await run_in_threadpool(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Error sending verification email to %s: %s", email, exc)
            raise MailDeliveryError("Failed to send verification email") from exc
        logger.info("Verification email sent to %s", email)


def get_mailer() -> VerificationMailer:
    """Dependency returning the SMTP mailer."""

    return VerificationMailer(get_settings())
