"""Shared API request/response models.

Domain models (Booking, PaymentStatusView, etc.) are in prebooking.models
and should be imported from there. This module provides HTTP/API layer
specific concerns only.
"""

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Re-export ToolError for convenience - this is the standard error format
from prebooking.models.errors import ERROR_MESSAGES, ERROR_RECOVERY, ErrorCode, ToolError

__all__ = [
    "ErrorCode",
    "ToolError",
    "ValidationErrorResponse",
    "ValidationErrorDetail",
    "format_validation_errors",
]


class ValidationErrorDetail(BaseModel):
    """Detail of a single validation error."""

    model_config = ConfigDict(strict=True)

    loc: list[str] = Field(
        ...,
        description="Path to the field that failed validation",
        examples=[["body", "metadata", "bookingId"]],
    )
    msg: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Field required"],
    )
    type: str = Field(
        ...,
        description="Error type identifier",
        examples=["missing"],
    )


class ValidationErrorResponse(BaseModel):
    """Response body for request validation errors (HTTP 400).

    Same envelope as ToolError, with per-field details.
    """

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: str = ErrorCode.VALIDATION_FAILED.value
    message: str = ERROR_MESSAGES[ErrorCode.VALIDATION_FAILED]
    recovery: str = ERROR_RECOVERY[ErrorCode.VALIDATION_FAILED]
    details: list[ValidationErrorDetail] = Field(default_factory=list)


def format_validation_errors(errors: Sequence[Any]) -> ValidationErrorResponse:
    """Convert Pydantic validation errors to ValidationErrorResponse.

    Args:
        errors: Error dicts from RequestValidationError.errors()

    Returns:
        ValidationErrorResponse ready for JSON serialization.
    """
    details = [
        ValidationErrorDetail(
            loc=[str(loc) for loc in error.get("loc", [])],
            msg=str(error.get("msg", "")),
            type=str(error.get("type", "")),
        )
        for error in errors
    ]
    return ValidationErrorResponse(details=details)
