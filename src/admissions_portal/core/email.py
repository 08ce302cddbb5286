"""
Email Transport using Resend

Raw delivery only. Rendering and recipient resolution live in the
notifications module, which talks to whatever EmailTransport it was given.
"""

import asyncio
import logging
from typing import Protocol

import resend

from admissions_portal.core.errors import NotificationError

logger = logging.getLogger(__name__)


class EmailTransport(Protocol):
    """Anything that can deliver one HTML email. Raises NotificationError on failure."""

    async def send(self, to_email: str, subject: str, html_content: str) -> None: ...


class ResendEmailTransport:
    """
    Sends email through the Resend API.

    Without an API key the message is logged and dropped so local
    environments work without credentials.
    """

    def __init__(self, api_key: str | None, from_address: str):
        self.api_key = api_key
        self.from_address = from_address
        if not api_key:
            logger.warning("RESEND_API_KEY not set - emails will be logged instead of sent")

    async def send(self, to_email: str, subject: str, html_content: str) -> None:
        if not self.api_key:
            logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
            return

        params: resend.Emails.SendParams = {
            "from": self.from_address,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        try:
            # The SDK reads the module-level key; set it per call so transports stay independent
            resend.api_key = self.api_key
            # Run sync Resend call in thread pool to avoid blocking event loop
            email = await asyncio.to_thread(resend.Emails.send, params)
        except Exception as e:
            raise NotificationError(f"Failed to send email to {to_email}: {e}") from e

        logger.info(f"Email sent successfully to {to_email}, id: {email.get('id')}")
