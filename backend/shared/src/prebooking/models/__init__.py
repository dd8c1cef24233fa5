"""Pydantic models for pre-booking payment entities."""

from .booking import (
    BOOKING_MUTABLE_FIELDS,
    Booking,
    BookingRef,
    CheckoutSession,
    FareInfo,
    PaymentStatusView,
)
from .enums import (
    BoardingStatus,
    BookingStatus,
    PaymentMethodChoice,
    PaymentStatus,
    ProcessingResult,
    VerificationMode,
    WebhookEventType,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    AuthError,
    BookingError,
    ErrorCode,
    NotFoundError,
    PersistenceError,
    ToolError,
    UpstreamError,
    ValidationError,
)
from .webhook import WebhookEvent, WebhookEventRecord

__all__ = [
    # Enums
    "BoardingStatus",
    "BookingStatus",
    "PaymentMethodChoice",
    "PaymentStatus",
    "ProcessingResult",
    "VerificationMode",
    "WebhookEventType",
    # Booking
    "BOOKING_MUTABLE_FIELDS",
    "Booking",
    "BookingRef",
    "CheckoutSession",
    "FareInfo",
    "PaymentStatusView",
    # Webhook
    "WebhookEvent",
    "WebhookEventRecord",
    # Errors
    "AuthError",
    "BookingError",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "ErrorCode",
    "NotFoundError",
    "PersistenceError",
    "ToolError",
    "UpstreamError",
    "ValidationError",
]
