"""Payment endpoints for pre-booking checkout.

Provides REST endpoints for:
- Creating a PayMongo checkout session for a booking
- Polling a booking's payment status

Handlers are plain functions; FastAPI runs them in its threadpool since
the provider and DynamoDB calls block.
"""

from fastapi import APIRouter, Depends, Query

from prebooking.models import PaymentStatusView, ToolError
from prebooking.services.checkout_session import CheckoutSessionBuilder
from prebooking.services.payment_status import PaymentStatusService
from prebooking_api.dependencies import (
    get_checkout_session_builder,
    get_payment_status_service,
)
from prebooking_api.models.common import ValidationErrorResponse
from prebooking_api.models.payments import CheckoutRequest, CheckoutResponse

router = APIRouter(tags=["payments"])


@router.post(
    "/payment/checkout",
    summary="Create checkout session",
    description="""
Create a PayMongo checkout session for a pre-booking.

The booking moves to `payment_initiated` and stores the session id and
hosted checkout URL. Redirect URLs carry `bookingId` and `userId`.

**Notes:**
- Amount is in centavos and must be positive
- A booking that is already paid is refused with 409
- Creating another session for an unpaid booking replaces the previous one
""",
    response_model=CheckoutResponse,
    responses={
        400: {"description": "Missing or invalid fields", "model": ValidationErrorResponse},
        404: {"description": "Booking not found", "model": ToolError},
        409: {"description": "Booking already paid", "model": ToolError},
        500: {"description": "Provider or persistence failure", "model": ToolError},
    },
)
def create_checkout(
    body: CheckoutRequest,
    builder: CheckoutSessionBuilder = Depends(get_checkout_session_builder),
) -> CheckoutResponse:
    """Create a checkout session and return the hosted payment URL."""
    session = builder.create_session(body.booking_ref(), body.fare_info())
    return CheckoutResponse(checkout_url=session.checkout_url, checkout_id=session.session_id)


@router.get(
    "/payment/status/{booking_id}",
    summary="Get payment status",
    description="""
Get the current payment state of a pre-booking.

Read-only; bookings that never started a checkout report
`pending_payment` / `pending`.
""",
    response_model=PaymentStatusView,
    responses={
        400: {"description": "Missing userId", "model": ValidationErrorResponse},
        404: {"description": "Booking not found", "model": ToolError},
    },
)
def get_payment_status(
    booking_id: str,
    user_id: str = Query(..., alias="userId", min_length=1),
    status_service: PaymentStatusService = Depends(get_payment_status_service),
) -> PaymentStatusView:
    """Return the booking's payment status projection."""
    return status_service.get_status(user_id, booking_id)
