from fastapi import status


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code or status.HTTP_500_INTERNAL_SERVER_ERROR
        self.details = details
        super().__init__(message)


class DatabaseException(AppException):
    """Exception raised for database-related errors."""

    def __init__(self, message: str = "A database error occurred."):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class BadRequestException(AppException):
    """Exception raised for bad request errors."""

    def __init__(self, message: str = "Bad request."):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class ValidationException(BadRequestException):
    """Exception raised when caller input is missing or malformed."""

    def __init__(self, message: str = "Invalid input."):
        super().__init__(message)


class NotFoundException(AppException):
    """Exception raised when a keyed resource does not exist.

    This API reports unknown keys as caller errors, hence 400.
    """

    def __init__(self, message: str = "Resource not found."):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class OTPSessionNotFoundException(NotFoundException):
    """Exception raised when no OTP session exists for a session id."""

    def __init__(self, message: str = "Session not found."):
        super().__init__(message)


class OTPExpiredException(AppException):
    """Exception raised when an OTP session is past its expiry."""

    def __init__(self, message: str = "OTP has expired. Please request a new one."):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class OTPInvalidException(AppException):
    """Exception raised when an OTP does not verify.

    Mismatch and expiry share this message so callers cannot tell them apart.
    """

    def __init__(self, message: str = "Invalid or expired OTP."):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class AuthenticationException(AppException):
    """Exception raised for authentication-related errors."""

    def __init__(self, message: str = "Authentication failed."):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class InvalidRefreshTokenException(AuthenticationException):
    """Exception raised when a refresh token is invalid or superseded."""

    def __init__(self, message: str = "Invalid refresh token."):
        super().__init__(message)


class InvalidHealthAPIKeyException(AuthenticationException):
    """Exception raised when the health API key header is missing or wrong."""

    def __init__(self, message: str = "Invalid or missing API key."):
        super().__init__(message)


class SMSException(AppException):
    """Base exception for SMS gateway failures.

    Carries the id of the OTP session that survived the failure, if any,
    so the caller can retry against it.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        session_id: str | None = None,
    ):
        super().__init__(message, status_code)
        self.session_id = session_id


class SMSDeliveryException(SMSException):
    """Exception raised when the provider rejected the message."""

    def __init__(
        self,
        message: str = "Failed to send OTP.",
        session_id: str | None = None,
    ):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, session_id)


class SMSTransportException(SMSException):
    """Exception raised when the SMS gateway could not be reached."""

    def __init__(
        self,
        message: str = "SMS gateway unreachable.",
        session_id: str | None = None,
    ):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, session_id)


class SMSTimeoutException(SMSException):
    """Exception raised when the SMS gateway did not answer in time."""

    def __init__(
        self,
        message: str = "SMS gateway timed out. Please retry.",
        session_id: str | None = None,
    ):
        super().__init__(message, status.HTTP_504_GATEWAY_TIMEOUT, session_id)


__all__ = [
    "AppException",
    "DatabaseException",
    "BadRequestException",
    "ValidationException",
    "NotFoundException",
    "OTPSessionNotFoundException",
    "OTPExpiredException",
    "OTPInvalidException",
    "AuthenticationException",
    "InvalidRefreshTokenException",
    "InvalidHealthAPIKeyException",
    "SMSException",
    "SMSDeliveryException",
    "SMSTransportException",
    "SMSTimeoutException",
]
