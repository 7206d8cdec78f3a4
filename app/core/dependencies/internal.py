import hmac
from typing import Annotated

from fastapi import Depends, Header

from app.core.config import request_logger, settings
from app.core.exceptions.types import InvalidHealthAPIKeyException


async def verify_health_api_key(
    x_api_key: Annotated[str | None, Header()] = None,
) -> str | None:
    """
    Verify the shared secret guarding health endpoints.

    This dependency validates the X-API-Key header against HEALTH_API_KEY.
    When no key is configured the request is let through with a warning.

    Args:
        x_api_key: The API key from the X-API-Key header.

    Returns:
        The validated API key, or None when no key is configured.

    Raises:
        InvalidHealthAPIKeyException: If the key is missing or invalid.
    """
    if not settings.HEALTH_API_KEY:
        request_logger.warning(
            "HEALTH_API_KEY not configured, health endpoint is unprotected"
        )
        return None

    if not x_api_key or not hmac.compare_digest(
        x_api_key.encode(), settings.HEALTH_API_KEY.encode()
    ):
        request_logger.warning("Health API request with missing or invalid X-API-Key")
        raise InvalidHealthAPIKeyException("Unauthorized: Invalid or missing API key")

    return x_api_key


# Type alias for health API authentication
HealthAPIKeyDep = Annotated[str | None, Depends(verify_health_api_key)]

__all__ = [
    "verify_health_api_key",
    "HealthAPIKeyDep",
]
