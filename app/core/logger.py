"""
Component loggers and Sentry wiring for the OTP gateway.

Each component (OTP flow, SMS gateway, notifications, health monitor,
scheduler, ...) gets its own named logger with a rotating file under
``logs/``. When a Sentry DSN is configured, ERROR records from any of
them become Sentry events and lower levels become breadcrumbs.
"""

import logging
from logging.handlers import RotatingFileHandler
import os
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

_sentry_initialized = False


def init_sentry(
    dsn: str,
    environment: str = "development",
    traces_sample_rate: float = 1.0,
) -> bool:
    """
    Start Sentry error tracking for this process.

    Only the first call with a non-empty DSN has an effect; an empty DSN
    leaves Sentry off, which is the default for local runs and tests.

    Args:
        dsn (str): Project DSN. Empty disables Sentry.
        environment (str): Environment tag reported with every event.
        traces_sample_rate (float): Share of requests traced (0.0 to 1.0).

    Returns:
        bool: True if this call turned Sentry on.
    """
    global _sentry_initialized

    if _sentry_initialized or not dsn:
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=traces_sample_rate,
        integrations=[
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            AsyncioIntegration(),
        ],
    )

    _sentry_initialized = True
    return True


def setup_logger(
    name: str,
    log_file: str,
    level: int = logging.INFO,
    sentry_tag: Optional[str] = None,
) -> logging.Logger:
    """
    Build the logger of one gateway component.

    Records go to ``log_file`` (rotated at 5 MB, 3 backups) and to the
    console. Calling this again for an existing name returns the logger
    unchanged.

    Args:
        name (str): Logger name, e.g. ``"sms_logger"``.
        log_file (str): Path of the rotating log file; its directory is created.
        level (int, optional): Minimum level. Defaults to logging.INFO.
        sentry_tag (str, optional): Component tag set on Sentry scope (e.g. "sms", "health").

    Returns:
        logging.Logger: The component logger.
    """
    if sentry_tag and _sentry_initialized:
        sentry_sdk.set_tag("component", sentry_tag)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    console_handler = logging.StreamHandler()

    for handler in (file_handler, console_handler):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
