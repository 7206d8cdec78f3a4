from enum import Enum


class DispatchStatus(str, Enum):
    """Whether the SMS gateway accepted the code of an OTP session."""

    NOT_SENT = "not_sent"
    SENT = "sent"
    SEND_FAILED = "send_failed"


class HealthLogType(str, Enum):
    """Kind of persisted health log entry."""

    HOURLY_REPORT = "hourly_report"
    CRITICAL_ALERT = "critical_alert"


class ErrorType(str, Enum):
    """Error kinds fed to the health monitor."""

    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    SMS_SEND_FAILURE = "sms_send_failure"
    STORE_CONNECTION_ERROR = "store_connection_error"
    API_OUTAGE = "api_outage"
    SERVICE_UNAVAILABLE = "service_unavailable"


class AlertSeverity(int, Enum):
    """Embed colour of a notification, by severity."""

    RED = 0xFF0000
    AMBER = 0xFFA500
    GREEN = 0x00FF00
