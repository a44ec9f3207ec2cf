# filename: app/services/mailer.py
"""
Outgoing mail (password-reset notifications).

Design:
- One SmtpMailer per process, built from Settings by the application factory.
- Each send opens its own SMTP connection with a timeout; nothing is retried.
- Every transport failure surfaces as MailDeliveryError so callers can roll
  back whatever they did before dispatching.

Public API:
    build_reset_url(frontend_url, token) -> str
    render_password_reset_email(user_name, reset_url, ttl_minutes) -> str
    SmtpMailer(settings).send_password_reset(to_email, user_name, reset_url)
    SmtpMailer(settings).verify()
"""

from __future__ import annotations

import logging
import os
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import Settings

logger = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")

_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html"]),
)

RESET_SUBJECT = "Password Reset Request - Expensia"

# UnicodeError: smtplib ascii-encodes credentials during AUTH
SMTP_ERRORS = (smtplib.SMTPException, OSError, UnicodeError)


class MailDeliveryError(Exception):
    """The message could not be handed to the mail server."""


def build_reset_url(frontend_url: str, token: str) -> str:
    return f"{frontend_url.rstrip('/')}/reset-password/{token}"


def render_password_reset_email(user_name: str, reset_url: str, ttl_minutes: int = 60) -> str:
    template = _env.get_template("emails/password_reset.html")
    return template.render(
        user_name=user_name,
        reset_url=reset_url,
        ttl_minutes=ttl_minutes,
    )


class SmtpMailer:
    def __init__(self, settings: Settings):
        self.host = settings.email_host
        self.port = settings.email_port
        self.user = settings.email_user
        self._password = settings.email_password
        self.from_name = settings.email_from_name
        self.timeout = settings.email_timeout
        self.reset_ttl_minutes = settings.reset_token_ttl_minutes

    def _connect(self) -> smtplib.SMTP:
        smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls()
                smtp.ehlo()
            smtp.login(self.user, self._password)
        except SMTP_ERRORS:
            smtp.close()
            raise
        return smtp

    def verify(self) -> None:
        """Open an authenticated connection and close it again."""
        try:
            smtp = self._connect()
            smtp.quit()
        except SMTP_ERRORS as e:
            raise MailDeliveryError(f"SMTP verification failed: {e}") from e

    def send_password_reset(self, to_email: str, user_name: str, reset_url: str) -> None:
        msg = EmailMessage()
        msg["Subject"] = RESET_SUBJECT
        msg["From"] = formataddr((self.from_name, self.user))
        msg["To"] = to_email
        msg.set_content(
            f"Hello {user_name},\n\n"
            f"Reset your password here: {reset_url}\n\n"
            f"This link expires in {self.reset_ttl_minutes} minutes. "
            "If you didn't request a reset, ignore this email."
        )
        msg.add_alternative(
            render_password_reset_email(user_name, reset_url, self.reset_ttl_minutes),
            subtype="html",
        )

        try:
            smtp = self._connect()
            try:
                smtp.send_message(msg)
            finally:
                smtp.quit()
        except SMTP_ERRORS as e:
            logger.error("Password reset email could not be sent: %r", e)
            raise MailDeliveryError("Password reset email could not be sent") from e

        logger.info("Password reset email dispatched")


def build_mailer(settings: Settings) -> Optional[SmtpMailer]:
    """SmtpMailer if credentials are configured, otherwise None."""
    if not settings.email_configured:
        return None
    return SmtpMailer(settings)
