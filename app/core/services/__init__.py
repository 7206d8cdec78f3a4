from app.core.services.alerts import (
    CRITICAL_ERROR_TYPES,
    AlertContext,
    AlertDispatcher,
)
from app.core.services.base import HTTPClientService, SingletonService
from app.core.services.health import HealthMonitor, report_severity
from app.core.services.ledger import ErrorEntry, RequestEntry, TimeWindowLedger
from app.core.services.notification import NotificationField, NotificationService
from app.core.services.otp import LoginResult, OTPService
from app.core.services.sms import SMSResult, SMSService

__all__ = [
    # Core services
    "HTTPClientService",
    "SingletonService",
    "NotificationService",
    "NotificationField",
    "SMSService",
    "SMSResult",
    "OTPService",
    "LoginResult",
    # Health telemetry
    "HealthMonitor",
    "report_severity",
    "TimeWindowLedger",
    "RequestEntry",
    "ErrorEntry",
    # Alerts
    "AlertDispatcher",
    "AlertContext",
    "CRITICAL_ERROR_TYPES",
]
