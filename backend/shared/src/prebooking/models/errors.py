"""Standard error codes and exceptions for pre-booking payments.

All services raise BookingError subclasses so the HTTP layer can map
them to a consistent ToolError body and status code.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes."""

    # Caller errors
    VALIDATION_FAILED = "ERR_VALIDATION"
    INVALID_PAYLOAD = "ERR_INVALID_PAYLOAD"
    MISSING_METADATA = "ERR_MISSING_METADATA"

    # Webhook authentication
    MISSING_SIGNATURE = "ERR_SIGNATURE_MISSING"
    INVALID_SIGNATURE = "ERR_SIGNATURE_INVALID"

    # Booking state
    BOOKING_NOT_FOUND = "ERR_BOOKING_NOT_FOUND"
    BOOKING_ALREADY_PAID = "ERR_BOOKING_ALREADY_PAID"

    # Upstream provider
    PROVIDER_ERROR = "ERR_PROVIDER"

    # Persistence
    PERSISTENCE_FAILED = "ERR_PERSISTENCE"
    SESSION_NOT_PERSISTED = "ERR_SESSION_NOT_PERSISTED"
    CONCURRENT_UPDATE = "ERR_CONCURRENT_UPDATE"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_FAILED: "Request validation failed",
    ErrorCode.INVALID_PAYLOAD: "Webhook payload could not be parsed",
    ErrorCode.MISSING_METADATA: "Missing bookingId or userId in webhook metadata",
    ErrorCode.MISSING_SIGNATURE: "Missing webhook signature",
    ErrorCode.INVALID_SIGNATURE: "Invalid webhook signature",
    ErrorCode.BOOKING_NOT_FOUND: "Booking not found",
    ErrorCode.BOOKING_ALREADY_PAID: "Booking has already been paid",
    ErrorCode.PROVIDER_ERROR: "Payment provider request failed",
    ErrorCode.PERSISTENCE_FAILED: "Booking store operation failed",
    ErrorCode.SESSION_NOT_PERSISTED: (
        "Checkout session was created but could not be saved to the booking"
    ),
    ErrorCode.CONCURRENT_UPDATE: "Booking was modified concurrently",
}

# Recovery suggestions for callers and operators
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_FAILED: "Fix the request fields and try again",
    ErrorCode.INVALID_PAYLOAD: "Send a well-formed provider event envelope",
    ErrorCode.MISSING_METADATA: "Ensure the checkout session carries bookingId and userId",
    ErrorCode.MISSING_SIGNATURE: "Include the X-Signature header",
    ErrorCode.INVALID_SIGNATURE: "Verify webhook secret configuration",
    ErrorCode.BOOKING_NOT_FOUND: "Verify bookingId and userId",
    ErrorCode.BOOKING_ALREADY_PAID: "No further payment is required",
    ErrorCode.PROVIDER_ERROR: "Try again later",
    ErrorCode.PERSISTENCE_FAILED: "Try again later",
    ErrorCode.SESSION_NOT_PERSISTED: (
        "Reconcile the orphaned checkout session manually before retrying"
    ),
    ErrorCode.CONCURRENT_UPDATE: "Replay the event",
}


class ToolError(BaseModel):
    """Standard error response body."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ToolError":
        """Create a ToolError from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            A ToolError with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class BookingError(Exception):
    """Base exception raised by pre-booking payment operations."""

    default_code: ErrorCode = ErrorCode.VALIDATION_FAILED

    def __init__(
        self,
        code: Optional[ErrorCode] = None,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code or self.default_code
        self.message = ERROR_MESSAGES[self.code]
        self.recovery = ERROR_RECOVERY[self.code]
        self.details = details
        super().__init__(self.message)

    def to_tool_error(self) -> ToolError:
        """Convert this exception to a ToolError response body."""
        return ToolError.from_code(self.code, self.details)


class ValidationError(BookingError):
    """Caller supplied invalid or incomplete input. Not retryable."""

    default_code = ErrorCode.VALIDATION_FAILED


class AuthError(BookingError):
    """Webhook signature missing or wrong.

    Details never reveal whether a booking exists.
    """

    default_code = ErrorCode.INVALID_SIGNATURE


class NotFoundError(BookingError):
    """Booking does not exist for the owner."""

    default_code = ErrorCode.BOOKING_NOT_FOUND


class UpstreamError(BookingError):
    """Checkout provider call failed. Safe to retry the whole request."""

    default_code = ErrorCode.PROVIDER_ERROR

    def __init__(
        self,
        provider_status: Optional[int] = None,
        provider_body: Optional[str] = None,
        details: Optional[dict[str, str]] = None,
    ):
        self.provider_status = provider_status
        self.provider_body = provider_body
        merged = dict(details or {})
        if provider_status is not None:
            merged["provider_status"] = str(provider_status)
        if provider_body:
            merged["provider_body"] = provider_body[:500]
        super().__init__(ErrorCode.PROVIDER_ERROR, merged or None)


class PersistenceError(BookingError):
    """Booking store read or write failed.

    SESSION_NOT_PERSISTED marks the partial failure where the provider
    created a session that the booking does not point to.
    """

    default_code = ErrorCode.PERSISTENCE_FAILED

    def __init__(
        self,
        code: Optional[ErrorCode] = None,
        details: Optional[dict[str, str]] = None,
        session_id: Optional[str] = None,
        checkout_url: Optional[str] = None,
    ):
        self.session_id = session_id
        self.checkout_url = checkout_url
        merged = dict(details or {})
        if session_id:
            merged["checkout_session_id"] = session_id
        super().__init__(code, merged or None)
