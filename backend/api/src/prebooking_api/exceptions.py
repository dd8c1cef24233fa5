"""FastAPI exception handlers for converting BookingError to HTTP responses.

Domain errors (BookingError) become JSON responses shaped like ToolError.

The ErrorCode-to-HTTP status mapping follows REST conventions:
- 400 Bad Request: Validation failures, missing signature, unparseable webhook
- 401 Unauthorized: Webhook signature mismatch
- 404 Not Found: Booking not found
- 409 Conflict: Booking already paid
- 500 Internal Server Error: Provider and persistence failures

Usage:
    from prebooking_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from prebooking.models.errors import BookingError, ErrorCode
from prebooking.utils.logging import get_logger
from prebooking_api.models.common import format_validation_errors

logger = get_logger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Caller errors -> 400 Bad Request
    ErrorCode.VALIDATION_FAILED: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_PAYLOAD: HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_METADATA: HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_SIGNATURE: HTTP_400_BAD_REQUEST,
    # Signature mismatch -> 401 Unauthorized
    ErrorCode.INVALID_SIGNATURE: HTTP_401_UNAUTHORIZED,
    # Not found errors -> 404 Not Found
    ErrorCode.BOOKING_NOT_FOUND: HTTP_404_NOT_FOUND,
    # Paid bookings cannot start a new session -> 409 Conflict
    ErrorCode.BOOKING_ALREADY_PAID: HTTP_409_CONFLICT,
    # Upstream and store failures -> 500; error_code tells them apart
    ErrorCode.PROVIDER_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.PERSISTENCE_FAILED: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.SESSION_NOT_PERSISTED: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.CONCURRENT_UPDATE: HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode.

    Args:
        code: The ErrorCode to map

    Returns:
        HTTP status code, defaults to 400 if not explicitly mapped.
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Handle BookingError exceptions and convert to JSON response.

    Args:
        request: The incoming request (unused but required by FastAPI)
        exc: The BookingError exception

    Returns:
        JSONResponse with error details and appropriate status code.
    """
    status_code = get_http_status_for_error(exc.code)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s on %s: %s", exc.code.value, request.url.path, exc.details)
    tool_error = exc.to_tool_error()

    return JSONResponse(
        status_code=status_code,
        content=tool_error.model_dump(mode="json"),
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report missing or malformed request fields as 400 with field details."""
    body = format_validation_errors(exc.errors())
    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content=body.model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with a generic error response.

    Internal details are logged, never returned to the client.

    Args:
        request: The incoming request (unused but required by FastAPI)
        exc: The uncaught exception

    Returns:
        JSONResponse with 500 status and generic error message.
    """
    logger.exception("Unhandled exception: %s", exc)

    error_response = {
        "success": False,
        "error_code": "ERR_INTERNAL",
        "message": "An unexpected error occurred",
        "recovery": "Please try again later or contact support",
        "details": None,
    }

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(BookingError, booking_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
