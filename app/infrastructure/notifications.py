import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from starlette.concurrency import run_in_threadpool

from app.core.config import Settings

logger = logging.getLogger(__name__)


class EmailService:
    """Sends HTML email over SMTP. Failures are logged and reported as False, never raised."""

    def __init__(self, settings: Settings):
        self.host = settings.EMAIL_HOST
        self.port = settings.EMAIL_PORT
        self.username = settings.EMAIL_USER
        self.password = settings.EMAIL_PASSWORD
        self.timeout = settings.EMAIL_TIMEOUT_SECONDS
        self.doctor_email = settings.DOCTOR_EMAIL

    @property
    def is_configured(self) -> bool:
        return bool(self.username and self.password)

    def _build_message(self, to: str, subject: str, html_content: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.username
        msg["To"] = to
        msg.attach(MIMEText(html_content, "html"))
        return msg

    def _send_sync(self, to: str, subject: str, html_content: str) -> None:
        msg = self._build_message(to, subject, html_content)
        context = ssl.create_default_context()
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            server.starttls(context=context)
            server.login(self.username, self.password)
            server.sendmail(self.username, [to], msg.as_string())

    async def send(self, to: Optional[str], subject: str, html_content: str) -> bool:
        if not to:
            logger.warning(f"No recipient for email '{subject}', skipping")
            return False
        if not self.is_configured:
            logger.warning(f"Email credentials not configured, not sending '{subject}' to {to}")
            return False

        try:
            await run_in_threadpool(self._send_sync, to, subject, html_content)
        except Exception as e:
            logger.error(f"Failed to send email '{subject}' to {to}: {e}")
            return False

        logger.info(f"Sent email '{subject}' to {to}")
        return True

    async def send_to_doctor(self, subject: str, html_content: str) -> bool:
        if not self.doctor_email:
            logger.warning(f"DOCTOR_EMAIL not configured, skipping doctor notification '{subject}'")
            return False
        return await self.send(self.doctor_email, subject, html_content)
