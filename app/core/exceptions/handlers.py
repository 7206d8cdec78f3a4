from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.config import request_logger
from app.core.enums import ErrorType
from app.core.exceptions.types import (
    AppException,
    AuthenticationException,
    DatabaseException,
    SMSException,
)
from app.core.services.alerts import AlertContext


def _endpoint(request: Request) -> str:
    return f"{request.method} {request.url.path}"


async def _observe(
    request: Request,
    message: str,
    status_code: int,
    error_type: ErrorType | None = None,
) -> None:
    """
    Record a handled error once with the health monitor, if one is attached.

    ``error_type`` replaces the generic ``client_error``/``server_error``
    kind; a critical type escalates to an alert.
    """
    monitor = getattr(request.app.state, "health_monitor", None)
    if monitor is None:
        return
    if error_type is None:
        error_type = ErrorType.SERVER_ERROR if status_code >= 500 else ErrorType.CLIENT_ERROR
    context = AlertContext(endpoint=_endpoint(request), status_code=status_code)
    await monitor.observe_error(error_type, message, context)


def _error_response(
    status_code: int, message: str, session_id: str | None = None
) -> JSONResponse:
    content: dict[str, str] = {"error": message}
    if session_id:
        content["sessionId"] = session_id
    return JSONResponse(status_code=status_code, content=content)


async def general_exception_handler(request: Request, exc: AppException):
    """
    Handles application exceptions by returning their message and status code.

    Args:
        request: The request object.
        exc (AppException): The exception instance.

    Returns:
        JSONResponse: ``{"error": message}`` with the exception's status code.
    """
    log = request_logger.error if exc.status_code >= 500 else request_logger.info
    log(f"{type(exc).__name__} on {_endpoint(request)}: {exc.message}")
    await _observe(request, exc.message, exc.status_code)
    return _error_response(exc.status_code, exc.message)


async def authentication_exception_handler(
    request: Request, exc: AuthenticationException
):
    request_logger.warning(f"AuthenticationException on {_endpoint(request)}: {exc.message}")
    await _observe(request, exc.message, exc.status_code)
    return _error_response(exc.status_code, exc.message)


async def sms_exception_handler(request: Request, exc: SMSException):
    """
    Handles SMS gateway failures.

    The response carries the surviving OTP session id so the client can
    retry against it.
    """
    request_logger.error(
        f"{type(exc).__name__} on {_endpoint(request)}: {exc.message} "
        f"(session: {exc.session_id})"
    )
    # Already recorded as sms_send_failure by the OTP service
    return _error_response(exc.status_code, exc.message, exc.session_id)


async def database_exception_handler(request: Request, exc: DatabaseException):
    """
    Handles store failures. They are escalated as ``store_connection_error``.

    The driver's message is logged but not returned to the client.
    """
    request_logger.error(f"DatabaseException on {_endpoint(request)}: {exc.message}")
    await _observe(
        request,
        exc.message,
        exc.status_code,
        error_type=ErrorType.STORE_CONNECTION_ERROR,
    )
    return _error_response(exc.status_code, "A database error occurred.")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 with the first failing field."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request."
    request_logger.info(f"Validation error on {_endpoint(request)}: {message}")
    await _observe(request, message, status.HTTP_400_BAD_REQUEST)
    return _error_response(status.HTTP_400_BAD_REQUEST, message)


async def unhandled_exception_handler(request: Request, exc: Exception):
    request_logger.exception(f"Unhandled error on {_endpoint(request)}: {exc}")
    await _observe(request, str(exc) or type(exc).__name__, 500)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred."
    )


exception_schema = {
    status.HTTP_400_BAD_REQUEST: {
        "description": "Invalid input, unknown session or invalid OTP",
        "content": {
            "application/json": {
                "example": {"error": "Invalid or expired OTP."},
            }
        },
    },
    status.HTTP_500_INTERNAL_SERVER_ERROR: {
        "description": "Internal Server Error",
        "content": {
            "application/json": {
                "example": {"error": "An unexpected error occurred."},
            }
        },
    },
}


__all__ = [
    "general_exception_handler",
    "authentication_exception_handler",
    "sms_exception_handler",
    "database_exception_handler",
    "validation_exception_handler",
    "unhandled_exception_handler",
    "exception_schema",
]
