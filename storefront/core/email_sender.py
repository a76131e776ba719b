"""
Email Sender Abstraction

Provides an interface for sending emails. ConsoleEmailSender logs messages
for development; SmtpEmailSender delivers through the SMTP_* settings.
"""

from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional
import logging
import smtplib

from .config import settings

logger = logging.getLogger(__name__)


class EmailSender(ABC):
    """Abstract base class for email senders"""

    configured: bool = False

    @abstractmethod
    def send_email(
        self,
        to_email: str,
        subject: str,
        body_text: str,
        body_html: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> bool:
        """
        Send an email

        Args:
            to_email: Recipient email address
            subject: Email subject
            body_text: Plain text email body
            body_html: Optional HTML email body
            reply_to: Optional Reply-To address

        Returns:
            True if email was sent successfully, False otherwise
        """
        pass


class ConsoleEmailSender(EmailSender):
    """Console-based email sender for development - logs email to console"""

    def send_email(
        self,
        to_email: str,
        subject: str,
        body_text: str,
        body_html: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> bool:
        logger.info("=" * 80)
        logger.info(f"[EMAIL] To: {to_email}")
        if reply_to:
            logger.info(f"[EMAIL] Reply-To: {reply_to}")
        logger.info(f"[EMAIL] Subject: {subject}")
        logger.info(f"[EMAIL] Body (text):\n{body_text}")
        logger.info("=" * 80)
        return True


class SmtpEmailSender(EmailSender):
    """Delivers mail over SMTP with STARTTLS (or implicit TLS on port 465)."""

    configured = True

    def __init__(self, host: str, port: int, username: str, password: str, timeout: int = 30):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout

    def send_email(
        self,
        to_email: str,
        subject: str,
        body_text: str,
        body_html: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> bool:
        msg = MIMEMultipart("alternative")
        msg["From"] = self.username
        msg["To"] = to_email
        msg["Subject"] = subject
        if reply_to:
            msg["Reply-To"] = reply_to
        msg.attach(MIMEText(body_text, "plain"))
        if body_html:
            msg.attach(MIMEText(body_html, "html"))

        try:
            implicit_tls = self.port == 465
            smtp_class = smtplib.SMTP_SSL if implicit_tls else smtplib.SMTP
            with smtp_class(self.host, self.port, timeout=self.timeout) as server:
                if not implicit_tls:
                    server.starttls()
                server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP delivery to {to_email} failed: {e}")
            return False

        logger.info(f"Email sent to {to_email}: {subject}")
        return True


def create_email_sender(config=None) -> EmailSender:
    """Build the sender for this process: SMTP when fully configured, console otherwise."""
    config = config or settings
    if config.smtp_enabled:
        return SmtpEmailSender(
            config.SMTP_HOST,
            config.SMTP_PORT,
            config.SMTP_USER,
            config.SMTP_PASSWORD,
        )
    return ConsoleEmailSender()
