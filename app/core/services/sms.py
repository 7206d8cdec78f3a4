import asyncio
from dataclasses import dataclass
from typing import Any

import httpx

from app.core.config import settings, sms_logger
from app.core.exceptions.types import SMSTimeoutException, SMSTransportException
from app.core.services.base import HTTPClientService
from app.core.utils import mask_phone


@dataclass
class SMSResult:
    """Normalized outcome of one gateway call.

    Attributes:
        success: True only when the provider reported an accepted message.
        provider_response: Parsed response body, kept for the OTP session.
        reason: Provider's failure description when ``success`` is False.
    """

    success: bool
    provider_response: dict[str, Any] | None = None
    reason: str | None = None


class SMSService(HTTPClientService):
    """
    Client for the MiMSMS-style JSON SMS gateway.

    Every call is bounded by ``SMS_TIMEOUT_SECONDS``. A timeout raises
    ``SMSTimeoutException`` and a network failure raises
    ``SMSTransportException``; a provider-side refusal is returned as an
    unsuccessful ``SMSResult``.
    """

    _api_url: str = settings.SMS_API_URL
    _username: str = settings.SMS_USERNAME
    _api_key: str = settings.SMS_API_KEY
    _sender_name: str = settings.SMS_SENDER_NAME
    _transaction_type: str = settings.SMS_TRANSACTION_TYPE
    _timeout_seconds: float = settings.SMS_TIMEOUT_SECONDS
    _otp_template: str = settings.OTP_SMS_TEMPLATE
    _logger = sms_logger

    # Exact pair the gateway documents for an accepted message
    SUCCESS_STATUS_CODE = "200"
    SUCCESS_STATUS = "Success"

    @classmethod
    async def init(
        cls,
        api_url: str | None = None,
        username: str | None = None,
        api_key: str | None = None,
        sender_name: str | None = None,
        transaction_type: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initializes the SMS service with the provided configuration.

        Parameters left as None keep their current value. Any existing HTTP
        client is closed and replaced.

        Args:
            api_url (str | None): Gateway endpoint.
            username (str | None): Gateway account name.
            api_key (str | None): Gateway API key.
            sender_name (str | None): Registered sender id.
            transaction_type (str | None): "T" for transactional messages.
            timeout_seconds (float | None): Round-trip bound for one call.
            transport (httpx.AsyncBaseTransport | None): Custom transport (tests).

        Returns:
            None
        """
        if api_url is not None:
            cls._api_url = api_url
        if username is not None:
            cls._username = username
        if api_key is not None:
            cls._api_key = api_key
        if sender_name is not None:
            cls._sender_name = sender_name
        if transaction_type is not None:
            cls._transaction_type = transaction_type
        if timeout_seconds is not None:
            cls._timeout_seconds = timeout_seconds
        cls._transport = transport
        await cls.aclose()
        # httpx's own timeout sits above the wait_for bound
        cls._client_timeout = cls._timeout_seconds + 5
        cls._init_client()
        cls._initialized = True

    @classmethod
    def build_payload(cls, phone_number: str, message: str) -> dict[str, str]:
        """Gateway request body; the number is sent without its leading '+'."""
        return {
            "UserName": cls._username,
            "Apikey": cls._api_key,
            "MobileNumber": phone_number.lstrip("+"),
            "CampaignId": "null",
            "SenderName": cls._sender_name,
            "TransactionType": cls._transaction_type,
            "Message": message,
        }

    @classmethod
    def is_success(cls, body: dict[str, Any]) -> bool:
        """Collapse the provider's status code/string pair into one boolean."""
        return (
            str(body.get("statusCode")) == cls.SUCCESS_STATUS_CODE
            and str(body.get("status")) == cls.SUCCESS_STATUS
        )

    @classmethod
    async def send(cls, phone_number: str, message: str) -> SMSResult:
        """
        Send ``message`` to ``phone_number`` through the gateway.

        Args:
            phone_number (str): Destination, with or without a leading '+'.
            message (str): Free-text body.

        Returns:
            SMSResult: Normalized provider outcome.

        Raises:
            SMSTimeoutException: The round trip exceeded the configured bound.
            SMSTransportException: The gateway could not be reached.
        """
        client = cls._get_client()
        payload = cls.build_payload(phone_number, message)
        masked = mask_phone(phone_number)

        try:
            response = await asyncio.wait_for(
                client.post(cls._api_url, json=payload),
                timeout=cls._timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            sms_logger.error(
                f"SMS gateway timed out after {cls._timeout_seconds}s for {masked}"
            )
            raise SMSTimeoutException() from e
        except httpx.HTTPError as e:
            sms_logger.error(
                f"SMS gateway unreachable for {masked}: {type(e).__name__} - {str(e)}"
            )
            raise SMSTransportException(f"SMS gateway unreachable: {str(e)}") from e

        try:
            body = response.json()
        except ValueError:
            body = {"statusCode": str(response.status_code), "raw": response.text}
        if not isinstance(body, dict):
            body = {"statusCode": str(response.status_code), "raw": body}

        if cls.is_success(body):
            sms_logger.info(f"SMS accepted by gateway for {masked}")
            return SMSResult(success=True, provider_response=body)

        reason = str(body.get("responseResult") or body.get("raw") or "Unknown error")
        sms_logger.warning(f"SMS rejected by gateway for {masked}: {reason}")
        return SMSResult(success=False, provider_response=body, reason=reason)

    @classmethod
    async def send_otp(cls, phone_number: str, code: str) -> SMSResult:
        """Send an OTP code using the configured message template."""
        return await cls.send(phone_number, cls._otp_template.format(code=code))

    @classmethod
    async def send_alert(cls, phone_number: str, text: str) -> SMSResult:
        """Send a one-line operator alert."""
        return await cls.send(phone_number, text)
