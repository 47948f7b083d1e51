"""
Email Service
Transactional email through the Resend HTTP API
"""

import httpx
import logging
from typing import Optional

from cms.errors import EmailDeliveryError

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"

class EmailService:
    """
    Narrow outbound-email sink: send(to, subject, text)

    Without an API key messages are only logged, which is how local
    development receives verification codes.
    """

    def __init__(
        self,
        api_key: Optional[str],
        sender: str,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key
        self.sender = sender
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def send(self, to: str, subject: str, text: str) -> None:
        """
        Send a plain-text email

        Raises:
            EmailDeliveryError: if the API rejects the message
        """
        if not self.enabled:
            logger.info(f"Email delivery disabled, message for {to}: {subject} - {text}")
            return

        async with httpx.AsyncClient(timeout=10.0, transport=self.transport) as client:
            response = await client.post(
                RESEND_URL,
                json={
                    "from": self.sender,
                    "to": to,
                    "subject": subject,
                    "text": text
                },
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json"
                }
            )

        if response.status_code >= 400:
            raise EmailDeliveryError(f"Resend rejected email to {to}: {response.status_code} {response.text}")

        logger.info(f"Sent email to {to}: {subject}")
