"""API-specific request/response models.

Modules:
- common: Validation error envelope
- payments: Checkout and webhook request/response models
"""

from prebooking_api.models.common import ValidationErrorResponse, format_validation_errors
from prebooking_api.models.payments import (
    CheckoutMetadata,
    CheckoutRequest,
    CheckoutResponse,
    WebhookResponse,
)

__all__ = [
    "CheckoutMetadata",
    "CheckoutRequest",
    "CheckoutResponse",
    "ValidationErrorResponse",
    "WebhookResponse",
    "format_validation_errors",
]
