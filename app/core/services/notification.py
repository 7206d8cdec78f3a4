from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx

from app.core.config import settings, notification_logger
from app.core.enums import AlertSeverity
from app.core.services.base import HTTPClientService
from app.core.utils import truncate

# Discord rejects embed field values longer than this
FIELD_VALUE_LIMIT = 1024
FOOTER_TEXT = "OTP Server Health Monitor"


@dataclass
class NotificationField:
    name: str
    value: str
    inline: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value": truncate(self.value, FIELD_VALUE_LIMIT) or "-",
            "inline": self.inline,
        }


class NotificationService(HTTPClientService):
    """
    Posts structured messages to a Discord-style webhook.

    Sending never raises: delivery problems are logged and reported through
    the boolean return value, so health reporting and alerting keep going.
    """

    _webhook_url: str = settings.NOTIFICATION_WEBHOOK_URL
    _client_timeout: float = settings.HEALTH_PROBE_TIMEOUT_SECONDS
    _logger = notification_logger

    @classmethod
    async def init(
        cls,
        webhook_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initializes the notification service.

        Args:
            webhook_url (str | None): Webhook endpoint. An empty string disables sending.
            transport (httpx.AsyncBaseTransport | None): Custom transport (tests).
        """
        if webhook_url is not None:
            cls._webhook_url = webhook_url
        cls._transport = transport
        await cls.aclose()
        cls._init_client()
        cls._initialized = True

    @staticmethod
    def build_payload(
        title: str,
        description: str,
        severity: AlertSeverity,
        fields: list[NotificationField],
        timestamp: datetime | None = None,
    ) -> dict[str, Any]:
        """Render one embed message."""
        return {
            "embeds": [
                {
                    "title": title,
                    "description": description,
                    "color": severity.value,
                    "fields": [field.to_dict() for field in fields],
                    "timestamp": (timestamp or datetime.now(timezone.utc)).isoformat(),
                    "footer": {"text": FOOTER_TEXT},
                }
            ]
        }

    @classmethod
    async def send(
        cls,
        title: str,
        description: str,
        severity: AlertSeverity,
        fields: list[NotificationField] | None = None,
        timestamp: datetime | None = None,
    ) -> bool:
        """
        Send a message to the webhook.

        Args:
            title (str): Embed title.
            description (str): Free text.
            severity (AlertSeverity): Embed colour.
            fields (list[NotificationField] | None): Name/value pairs.
            timestamp (datetime | None): Event time. Defaults to now.

        Returns:
            bool: True if the webhook accepted the message.
        """
        if not cls._webhook_url:
            notification_logger.warning(
                "Notification webhook not configured, skipping notification"
            )
            return False

        payload = cls.build_payload(title, description, severity, fields or [], timestamp)
        try:
            response = await cls._get_client().post(cls._webhook_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            notification_logger.error(
                f"Failed to send notification '{title}': {type(e).__name__} - {str(e)}"
            )
            return False

        notification_logger.info(f"Notification sent: {title}")
        return True
