"""Email delivery over SMTP, plus the password-reset message template."""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import TYPE_CHECKING, Protocol

from app.core.errors import EmailDeliveryError, EmailNotConfiguredError

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    """Anything that can deliver an HTML email or raise EmailDeliveryError."""

    @property
    def is_configured(self) -> bool: ...

    def send(self, to: str, subject: str, html_body: str) -> None: ...


class SmtpEmailSender:
    """Sends HTML email through an SMTP relay (STARTTLS + login when credentials are set)."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str | None,
        password: str | None,
        sender: str | None = None,
        use_tls: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self._password = password
        self.sender = sender or username
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SmtpEmailSender":
        password = (
            settings.SMTP_PASSWORD.get_secret_value()
            if settings.SMTP_PASSWORD is not None
            else None
        )
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=password,
            sender=settings.EMAIL_FROM,
            use_tls=settings.SMTP_USE_TLS,
            timeout=settings.SMTP_TIMEOUT_SEC,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.username and self._password and self.sender)

    def send(self, to: str, subject: str, html_body: str) -> None:
        """Deliver one message. Raises EmailDeliveryError on any SMTP or network failure."""
        if not self.is_configured:
            raise EmailNotConfiguredError()

        msg = MIMEMultipart("alternative")
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                server.login(self.username, self._password)
                server.send_message(msg, to_addrs=[to])
        except (smtplib.SMTPException, OSError, ValueError) as e:
            logger.error(
                "Email delivery failed",
                extra={"smtp_host": self.host, "error_type": type(e).__name__},
            )
            raise EmailDeliveryError() from e

        logger.info("Email sent", extra={"smtp_host": self.host, "subject": subject})


def build_reset_link(frontend_url: str, token: str) -> str:
    return f"{frontend_url.rstrip('/')}/reset-password?token={token}"


def render_reset_email(
    fullname: str, reset_link: str, product_name: str, expire_minutes: int
) -> tuple[str, str]:
    """Return (subject, html_body) for a password reset message."""
    name = html.escape(fullname or "User")
    product = html.escape(product_name)
    link = html.escape(reset_link, quote=True)
    if expire_minutes % 60 == 0:
        hours = expire_minutes // 60
        lifetime = f"{hours} hour" if hours == 1 else f"{hours} hours"
    else:
        lifetime = f"{expire_minutes} minutes"
    subject = f"Password Reset - {product_name}"
    body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">Password Reset Request</h2>
  <p>Hello {name},</p>
  <p>You requested a password reset for your {product} account.</p>
  <p>Click the button below to reset your password:</p>
  <a href="{link}"
     style="display: inline-block; background-color: #007bff; color: white; padding: 12px 24px; text-decoration: none; border-radius: 4px; margin: 20px 0;">
    Reset Password
  </a>
  <p>Or copy and paste this link in your browser:</p>
  <p style="word-break: break-all; color: #666;">{link}</p>
  <p style="color: #999; font-size: 12px;">This link will expire in {lifetime}.</p>
  <p style="color: #999; font-size: 12px;">If you didn't request this, please ignore this email.</p>
</div>
"""
    return subject, body
