# backend/modules/feedback/services/notification_service.py

import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Dict, Any, Optional
from datetime import datetime

from core.config import Settings, get_settings
from modules.feedback.schemas.feedback_schemas import NotificationIntent
from modules.feedback.templates.email_templates import render_notification_email

logger = logging.getLogger(__name__)


class EmailBackend:
    """Email notification backend using SMTP"""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_username = settings.smtp_username or ""
        self.smtp_password = settings.smtp_password or ""
        self.use_tls = settings.smtp_use_tls
        self.from_email = settings.from_email
        self.from_name = settings.from_name

    @property
    def configured(self) -> bool:
        return bool(self.smtp_host)

    async def send_email(self, to_email: str, subject: str, html_content: str,
                         text_content: Optional[str] = None) -> Dict[str, Any]:
        """Send email using SMTP"""
        if not self.configured:
            logger.warning("SMTP not configured, skipping email")
            return {"success": False, "error": "Email not configured", "provider": "smtp"}

        try:
            message = MIMEMultipart('alternative')
            message['Subject'] = subject
            message['From'] = f"{self.from_name} <{self.from_email}>"
            message['To'] = to_email

            # Add text part
            if text_content:
                message.attach(MIMEText(text_content, 'plain'))

            # Add HTML part
            message.attach(MIMEText(html_content, 'html'))

            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                if self.use_tls:
                    server.starttls()
                if self.smtp_username and self.smtp_password:
                    server.login(self.smtp_username, self.smtp_password)
                server.send_message(message)

            return {
                "success": True,
                "message_id": f"email_{datetime.utcnow().timestamp()}",
                "provider": "smtp"
            }

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return {
                "success": False,
                "error": str(e),
                "provider": "smtp"
            }


class NotificationService:
    """Delivers response notification intents"""

    def __init__(self, email_backend: Optional[EmailBackend] = None,
                 settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.email_backend = email_backend or EmailBackend(self.settings)

    async def dispatch(self, intent: NotificationIntent) -> Dict[str, Any]:
        """Send ``intent`` by email. Failures are reported, never raised."""
        if not self.settings.notifications_enabled:
            logger.info(f"Notifications disabled; not sending to {intent.recipient}")
            return {"success": False, "error": "Notifications disabled"}

        email = render_notification_email(
            intent.subject, intent.body, self.email_backend.from_name
        )
        result = await self.email_backend.send_email(
            to_email=intent.recipient,
            subject=email["subject"],
            html_content=email["html_content"],
            text_content=email["text_content"],
        )

        if result.get("success"):
            logger.info(f"Sent response notification to {intent.recipient}")
        else:
            logger.warning(
                f"Response notification to {intent.recipient} not sent: {result.get('error')}"
            )
        return result


def get_notification_service() -> NotificationService:
    """Get notification service instance"""
    return NotificationService()
