"""
Test suite for application settings.

Run tests:
    pytest tests/core/test_config.py -v
"""

from pydantic import ValidationError
import pytest

from app.core.config import Settings


class TestProductionSecrets:
    """Production refuses to start with default secrets."""

    def test_defaults_allowed_outside_production(self):
        s = Settings(ENVIRONMENT="development", HEALTH_API_KEY="")
        assert s.JWT_SECRET_KEY == "your_jwt_secret_key"

    def test_defaults_rejected_in_production(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(
                ENVIRONMENT="production",
                JWT_SECRET_KEY="your_jwt_secret_key",
                REFRESH_TOKEN_SECRET_KEY="your_refresh_token_secret_key",
                HEALTH_API_KEY="",
            )

        message = str(exc_info.value)
        assert "JWT_SECRET_KEY" in message
        assert "REFRESH_TOKEN_SECRET_KEY" in message
        assert "HEALTH_API_KEY" in message

    def test_production_with_secrets(self):
        s = Settings(
            ENVIRONMENT="production",
            JWT_SECRET_KEY="a",
            REFRESH_TOKEN_SECRET_KEY="b",
            HEALTH_API_KEY="c",
        )
        assert s.ENVIRONMENT == "production"
