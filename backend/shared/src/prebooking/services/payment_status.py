"""Status Query Service: read-only payment state for polling clients."""

from typing import TYPE_CHECKING

from prebooking.models import (
    BoardingStatus,
    BookingStatus,
    NotFoundError,
    PaymentStatus,
    PaymentStatusView,
)

if TYPE_CHECKING:
    from .booking_store import BookingStore


class PaymentStatusService:
    """Projects a booking's payment fields into a PaymentStatusView."""

    def __init__(self, store: "BookingStore") -> None:
        self.store = store

    def get_status(self, owner_id: str, booking_id: str) -> PaymentStatusView:
        """Get the current payment state of a booking.

        Bookings without any payment fields yet report the pending
        defaults.

        Args:
            owner_id: Owning user id
            booking_id: Booking id within the owner

        Returns:
            PaymentStatusView for the booking

        Raises:
            NotFoundError: If the booking does not exist
        """
        booking = self.store.get(owner_id, booking_id)
        if booking is None:
            raise NotFoundError(details={"booking_id": booking_id})

        return PaymentStatusView(
            status=booking.status or BookingStatus.PENDING_PAYMENT.value,
            payment_status=booking.payment_status or PaymentStatus.PENDING.value,
            boarding_status=booking.boarding_status or BoardingStatus.PENDING.value,
            amount=booking.amount,
            currency=booking.currency,
            checkout_session_id=booking.checkout_session_id,
            checkout_url=booking.checkout_url,
            payment_provider_payment_id=booking.payment_provider_payment_id,
            payment_method=booking.payment_method,
            payment_error=booking.payment_error,
            paid_at=booking.paid_at,
            payment_initiated_at=booking.payment_initiated_at,
            payment_failed_at=booking.payment_failed_at,
            payment_expired_at=booking.payment_expired_at,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )
