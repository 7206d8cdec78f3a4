from functools import lru_cache
import logging

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.logger import setup_logger, init_sentry


class Settings(BaseSettings):
    # Application settings
    ENVIRONMENT: str = "development"  # Options: development, test, production
    APP_NAME: str = "OTP Gateway"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = """
Phone-number login service.

## Key Capabilities

| Area | Description |
|------|-------------|
| **OTP** | Request, resend and verify 6-digit SMS codes bound to an opaque session id. |
| **Tokens** | JWT access tokens plus a single stored refresh token per phone number. |
| **Health** | In-process request/error/SMS counters, hourly webhook reports and critical alerts. |
"""
    DEBUG: bool = False

    # Infrastructure flags
    ENABLE_SCHEDULER: bool = True

    # Database settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./otp_gateway.db"

    # JWT settings
    JWT_SECRET_KEY: str = "your_jwt_secret_key"
    REFRESH_TOKEN_SECRET_KEY: str = "your_refresh_token_secret_key"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # OTP settings
    OTP_EXPIRY_MINUTES: int = 5
    OTP_SMS_TEMPLATE: str = "Your verification code is {code}"

    # SMS gateway settings
    SMS_API_URL: str = "https://api.mimsms.com/api/SmsSending/SMS"
    SMS_USERNAME: str = ""
    SMS_API_KEY: str = ""
    SMS_SENDER_NAME: str = ""
    SMS_TRANSACTION_TYPE: str = "T"  # Transactional
    SMS_TIMEOUT_SECONDS: float = 15.0

    # Health monitoring settings
    NOTIFICATION_WEBHOOK_URL: str = ""
    ADMIN_PHONE: str = ""
    LOG_RETENTION_DAYS: int = 7
    HEALTH_API_KEY: str = ""  # Empty lets report-now through, outside production
    IP_PROBE_URL: str = "https://api.ipify.org?format=json"
    HEALTH_PROBE_TIMEOUT_SECONDS: float = 5.0

    # Sentry settings
    SENTRY_DSN: str = ""
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    model_config: SettingsConfigDict = SettingsConfigDict(  # type: ignore
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _validate_production_secrets(self) -> "Settings":
        """Ensure insecure default secrets are overridden in production."""
        if self.ENVIRONMENT != "production":
            return self

        insecure_defaults: dict[str, str] = {
            "JWT_SECRET_KEY": "your_jwt_secret_key",
            "REFRESH_TOKEN_SECRET_KEY": "your_refresh_token_secret_key",
            "HEALTH_API_KEY": "",
        }

        still_default = [
            name
            for name, default_val in insecure_defaults.items()
            if getattr(self, name) == default_val
        ]

        if still_default:
            raise ValueError(
                f"ENVIRONMENT is 'production' but the following secrets still "
                f"have their insecure default values: {', '.join(still_default)}. "
                f"Set them via environment variables or .env file."
            )

        return self


@lru_cache()
def get_settings() -> Settings:
    return Settings()  # type: ignore


settings = get_settings()

if not settings.DEBUG:
    init_sentry(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )

# One logger per component, each with its own file and Sentry tag
app_logger = setup_logger(
    name="app_logger",
    log_file="logs/app.log",
    level=logging.INFO,
    sentry_tag="app",
)
database_logger = setup_logger(
    name="database_logger",
    log_file="logs/database.log",
    level=logging.INFO,
    sentry_tag="database",
)
request_logger = setup_logger(
    name="request_logger",
    log_file="logs/requests.log",
    level=logging.INFO,
    sentry_tag="request",
)
auth_logger = setup_logger(
    name="auth_logger",
    log_file="logs/auth.log",
    level=logging.INFO,
    sentry_tag="auth",
)
sms_logger = setup_logger(
    name="sms_logger",
    log_file="logs/sms.log",
    level=logging.INFO,
    sentry_tag="sms",
)
notification_logger = setup_logger(
    name="notification_logger",
    log_file="logs/notification.log",
    level=logging.INFO,
    sentry_tag="notification",
)
health_logger = setup_logger(
    name="health_logger",
    log_file="logs/health.log",
    level=logging.INFO,
    sentry_tag="health",
)
scheduler_logger = setup_logger(
    name="scheduler_logger",
    log_file="logs/scheduler.log",
    level=logging.INFO,
    sentry_tag="scheduler",
)
utils_logger = setup_logger(
    name="utils_logger",
    log_file="logs/utils.log",
    level=logging.INFO,
    sentry_tag="utils",
)

__all__ = [
    "settings",
    "get_settings",
    "app_logger",
    "database_logger",
    "request_logger",
    "auth_logger",
    "sms_logger",
    "notification_logger",
    "health_logger",
    "scheduler_logger",
    "utils_logger",
]
