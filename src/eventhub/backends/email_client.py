"""Mailgun delivery backend"""

import logging
from typing import Dict, Optional

from mailgun.client import Client

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("mailgun_api_key", "mailgun_domain", "sender_email")


class EmailDeliveryError(RuntimeError):
    """Mailgun refused the message or could not be reached."""


class EmailClient:
    """Thin wrapper over the Mailgun messages API.

    A client built from incomplete settings can still be constructed, so the
    API boots without mail configured; every send then fails with
    ``EmailDeliveryError`` instead.
    """

    def __init__(self, config: dict):
        self.domain = config.get("mailgun_domain")
        self.sender_email = config.get("sender_email")
        self.missing = [key for key in REQUIRED_KEYS if not config.get(key)]

        self.client = None
        if not self.missing:
            self.client = Client(auth=("api", config["mailgun_api_key"]))
        else:
            logger.warning(f"Mailgun disabled, missing settings: {self.missing}")

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def send_email(
        self,
        to: str,
        text: str,
        subject: str,
        html: Optional[str] = None,
        tag: str = "transactional",
    ) -> Dict:
        """
        Deliver one message.

        Args:
            to: Recipient address
            text: Plain-text body
            subject: Subject line
            html: Optional HTML alternative
            tag: Mailgun tag, one per message kind

        Returns:
            Parsed Mailgun response (contains the message ``id``)

        Raises:
            EmailDeliveryError: Not configured, rejected or unreachable
        """
        if not self.configured:
            raise EmailDeliveryError(f"Email backend not configured: {self.missing}")

        data = {
            "from": self.sender_email,
            "to": to,
            "subject": subject,
            "text": text,
            "o:tag": tag,
        }
        if html:
            data["html"] = html

        try:
            resp = self.client.messages.create(data=data, domain=self.domain)
        except Exception as e:
            raise EmailDeliveryError(f"Mailgun unreachable: {e}") from e

        body = resp.json()
        if resp.status_code != 200:
            raise EmailDeliveryError(f"Mailgun rejected message ({resp.status_code}): {body}")

        logger.info(f"Mailgun accepted {tag} email to {to}: {body.get('id', 'unknown')}")
        return body
