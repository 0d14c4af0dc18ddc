# backend/smarttutor/services/email.py
"""
Email delivery for SmartTutor.

``EmailService`` sends through the Resend API; ``ConsoleEmailService`` only
logs and is used in development, tests, and whenever no API key is set.
``build_email_service`` picks one from configuration.
"""

import logging
import re
from typing import Any, Dict, Optional, Protocol, Union

import resend

from ..core.config import settings
from ..core.exceptions import ServiceException
from .base import BaseService

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> Any:
        ...


def html_to_text(html_content: str) -> str:
    """Convert HTML content to plain text for better deliverability."""
    text = re.sub(r"<[^>]+>", "", html_content)
    return re.sub(r"\s+", " ", text).strip()


class EmailService(BaseService):
    """Service for sending emails using the Resend API."""

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        super().__init__(None)

        api_key = api_key or (
            settings.resend_api_key.get_secret_value() if settings.resend_api_key else None
        )
        if not api_key:
            raise ServiceException("Resend API key not configured")

        resend.api_key = api_key
        self.from_email = from_email or settings.from_email

    @BaseService.measure_operation("send_email")
    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send an email using Resend.

        Returns:
            Dict containing the Resend API response

        Raises:
            ServiceException: If email sending fails
        """
        email_data = {
            "from": self.from_email,
            "to": to_email,
            "subject": subject,
            "html": html_content,
            "text": text_content or html_to_text(html_content),
        }
        try:
            response = resend.Emails.send(email_data)
        except Exception as e:
            self.logger.error(f"Failed to send email to {to_email}: {str(e)}")
            self.log_operation("email_failed", to_email=to_email, subject=subject, error=str(e))
            raise ServiceException(f"Email sending failed: {str(e)}") from e

        self.log_operation("email_sent", to_email=to_email, subject=subject)
        return response


class ConsoleEmailService:
    """Log-only email sender used when no real provider is configured."""

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        logger.info(
            f"[console email] to={to_email} subject={subject!r}",
            extra={"to_email": to_email, "subject": subject},
        )
        return True


def build_email_service() -> Union[EmailService, ConsoleEmailService]:
    if settings.email_provider == "resend" and settings.resend_api_key:
        return EmailService()
    if settings.email_provider == "resend":
        logger.warning("EMAIL_PROVIDER=resend but RESEND_API_KEY is unset; using console email")
    return ConsoleEmailService()
