"""SMTP mail transport (aiosmtplib)."""
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import aiosmtplib

from app.config import settings

logger = logging.getLogger(__name__)


class MailService:
    """Async SMTP sender configured from settings.

    Transport errors propagate so the queue can retry the delivery.
    """

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.start_tls = settings.SMTP_START_TLS
        self.from_email = settings.MAIL_FROM
        self.from_name = settings.MAIL_FROM_NAME

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host)

    def build_message(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject
        # multipart/alternative: the last part is the preferred one
        if text_content:
            message.attach(MIMEText(text_content, "plain", "utf-8"))
        message.attach(MIMEText(html_content, "html", "utf-8"))
        return message

    async def send(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        """Send one message. Returns False when SMTP is not configured."""
        if not self.is_configured:
            logger.warning("SMTP not configured, skipping email '%s' to %s", subject, to_email)
            return False

        message = self.build_message(to_email, subject, html_content, text_content)
        await aiosmtplib.send(
            message,
            hostname=self.smtp_host,
            port=self.smtp_port,
            username=self.smtp_user or None,
            password=self.smtp_password or None,
            start_tls=self.start_tls,
        )
        logger.info("Sent email '%s' to %s", subject, to_email)
        return True


mail_service = MailService()
