"""Service for sending emails."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional
from urllib.parse import urlencode

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_username: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: str = "Accounts",
        confirm_base_url: str = "http://localhost:8000",
        reset_base_url: str = "http://localhost:3000",
        timeout: float = 10.0,
    ):
        self.smtp_host = smtp_host or ""
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username or ""
        self.smtp_password = smtp_password or ""
        self.from_email = from_email or ""
        self.from_name = from_name
        self.confirm_base_url = confirm_base_url.rstrip("/")
        self.reset_base_url = reset_base_url.rstrip("/")
        self.timeout = timeout
        self.enabled = bool(self.smtp_host and self.smtp_username and self.from_email)

    def confirmation_link(self, token: str) -> str:
        return f"{self.confirm_base_url}/api/auth/confirm-email?{urlencode({'token': token})}"

    def reset_link(self, token: str) -> str:
        return f"{self.reset_base_url}/reset-password?{urlencode({'token': token})}"

    def send_confirmation_email(self, to_email: str, token: str) -> bool:
        """
        Send the email confirmation link.

        Args:
            to_email: Recipient email
            token: Raw confirmation token embedded in the link

        Returns:
            True if sent successfully, False otherwise
        """
        url = self.confirmation_link(token)
        return self.send(
            to_email,
            "Confirm your email",
            f'<p>Click to confirm your email: <a href="{url}">Confirm</a></p>',
        )

    def send_password_reset_email(self, to_email: str, token: str) -> bool:
        """Send the password reset link."""
        url = self.reset_link(token)
        return self.send(
            to_email,
            "Reset your password",
            f'<p>Click to reset your password: <a href="{url}">Reset Password</a></p>',
        )

    def send(self, to: str, subject: str, html: str) -> bool:
        if not self.enabled:
            # Development mode: the message (and its link) only goes to the log.
            logger.info("[EMAIL] To: %s | Subject: %s | %s", to, subject, html)
            return True
        return self._send_email(to, subject, html)

    def _send_email(self, to_email: str, subject: str, html_body: str) -> bool:
        """
        Send an email via SMTP.

        Returns:
            True if sent successfully, False otherwise
        """
        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{self.from_name} <{self.from_email}>"
            msg["To"] = to_email

            msg.attach(MIMEText(html_body, "html", "utf-8"))

            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

            return True

        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send email to %s", to_email)
            return False
