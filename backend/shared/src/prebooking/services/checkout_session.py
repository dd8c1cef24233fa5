"""Checkout Session Builder.

Turns a booking and its fare into a PayMongo checkout session and stores
the session pointer on the booking. The booking's metadata bag travels
with the session; it is the only way a later webhook can find the
booking again.
"""

import datetime as dt
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

from prebooking.models import (
    Booking,
    BookingError,
    BookingRef,
    BookingStatus,
    CheckoutSession,
    ErrorCode,
    FareInfo,
    NotFoundError,
    PaymentStatus,
    PersistenceError,
    UpstreamError,
    ValidationError,
)
from prebooking.utils.logging import get_logger, log_payment_operation

from .paymongo_service import PayMongoServiceError

if TYPE_CHECKING:
    from prebooking.config import PaymentSettings

    from .booking_store import BookingStore
    from .paymongo_service import PayMongoService

logger = get_logger(__name__)

LINE_ITEM_NAME = "B-GO Bus Pre-booking"
DEFAULT_SOURCE = "flutter_app"


def build_redirect_urls(base_url: str, ref: BookingRef) -> tuple[str, str]:
    """Success and cancel URLs carrying the booking context.

    Returns:
        Tuple of (success_url, cancel_url)
    """
    query = urlencode({"bookingId": ref.booking_id, "userId": ref.owner_id})
    base = base_url.rstrip("/")
    return f"{base}/payment-success?{query}", f"{base}/payment-cancelled?{query}"


def build_line_item_description(fare: FareInfo) -> str:
    return (
        f"Pre-booking: {fare.route or 'Route'} - "
        f"{fare.from_place or 'Origin'} to {fare.to_place or 'Destination'}"
    )


def build_checkout_request(
    ref: BookingRef,
    fare: FareInfo,
    *,
    amount: int,
    currency: str,
    redirect_base_url: str,
    now: dt.datetime | None = None,
) -> dict[str, Any]:
    """Build the PayMongo checkout_sessions request body.

    Args:
        ref: Booking the session pays for
        fare: Fare fields mirrored into the session metadata
        amount: Total in minor currency units
        currency: Upper-case ISO currency code
        redirect_base_url: Base for the success/cancel pages
        now: Creation time recorded in metadata

    Returns:
        Request body in ``{"data": {"attributes": ...}}`` form
    """
    now = now or dt.datetime.now(dt.UTC)
    success_url, cancel_url = build_redirect_urls(redirect_base_url, ref)

    return {
        "data": {
            "attributes": {
                "send_email_receipt": False,
                "show_description": True,
                "show_line_items": True,
                "success_url": success_url,
                "cancel_url": cancel_url,
                "payment_method_types": fare.payment_method.provider_types(),
                "line_items": [
                    {
                        "currency": currency,
                        "amount": amount,
                        "description": build_line_item_description(fare),
                        "name": LINE_ITEM_NAME,
                        "quantity": 1,
                    }
                ],
                "metadata": {
                    "bookingId": ref.booking_id,
                    "userId": ref.owner_id,
                    "route": fare.route or "",
                    "fromPlace": fare.from_place or "",
                    "toPlace": fare.to_place or "",
                    "quantity": str(fare.quantity or 1),
                    "fareTypes": fare.fare_types or "",
                    "source": fare.source or DEFAULT_SOURCE,
                    "createdAt": now.isoformat(),
                },
            }
        }
    }


def redact_checkout_request(payload: dict[str, Any]) -> dict[str, Any]:
    """Copy of a checkout request safe to log (redirect URLs hidden)."""
    attributes = dict(payload["data"]["attributes"])
    attributes["success_url"] = "[REDACTED]"
    attributes["cancel_url"] = "[REDACTED]"
    return {"data": {"attributes": attributes}}


class CheckoutSessionBuilder:
    """Creates provider checkout sessions for bookings."""

    def __init__(
        self,
        store: "BookingStore",
        paymongo: "PayMongoService",
        settings: "PaymentSettings",
        max_attempts: int = 3,
    ) -> None:
        """Initialize the builder.

        Args:
            store: Booking store adapter
            paymongo: Provider client
            settings: Redirect base URL and default currency
            max_attempts: Conditional-write attempts for the session pointer
        """
        self.store = store
        self.paymongo = paymongo
        self.settings = settings
        self.max_attempts = max_attempts

    def create_session(self, ref: BookingRef, fare: FareInfo) -> CheckoutSession:
        """Create a checkout session for a booking and persist its pointer.

        Re-running this for an unpaid booking replaces the previous session
        pointer; the earlier session is orphaned. A paid booking is refused.

        Args:
            ref: Owner-scoped booking identity
            fare: Amount and descriptive fare fields

        Returns:
            The new CheckoutSession

        Raises:
            ValidationError: Amount not positive or ids empty
            NotFoundError: Booking does not exist
            BookingError: BOOKING_ALREADY_PAID if the booking is paid
            UpstreamError: Provider unreachable, timed out, or non-2xx
            PersistenceError: Store failure; SESSION_NOT_PERSISTED when the
                session exists upstream but the booking does not point to it
        """
        self._validate(ref, fare)
        amount = int(fare.amount or 0)
        currency = (fare.currency or self.settings.default_currency).upper()

        booking = self.store.get(ref.owner_id, ref.booking_id)
        if booking is None:
            raise NotFoundError(details={"booking_id": ref.booking_id})
        if booking.is_paid:
            raise BookingError(
                ErrorCode.BOOKING_ALREADY_PAID, details={"booking_id": ref.booking_id}
            )

        payload = build_checkout_request(
            ref,
            fare,
            amount=amount,
            currency=currency,
            redirect_base_url=self.settings.redirect_base_url,
        )
        logger.info("Creating PayMongo checkout: %s", redact_checkout_request(payload))

        try:
            session = self.paymongo.create_checkout_session(payload)
        except PayMongoServiceError as e:
            log_payment_operation(
                logger,
                "create_checkout_session",
                booking_id=ref.booking_id,
                owner_id=ref.owner_id,
                amount=amount,
                error=str(e),
            )
            raise UpstreamError(
                provider_status=e.status_code,
                provider_body=e.response_body,
                details={"booking_id": ref.booking_id},
            ) from e

        self._persist(ref, booking, session, amount=amount, currency=currency)

        log_payment_operation(
            logger,
            "create_checkout_session",
            booking_id=ref.booking_id,
            owner_id=ref.owner_id,
            session_id=session.session_id,
            amount=amount,
            status=BookingStatus.PAYMENT_INITIATED.value,
        )
        return session

    def _validate(self, ref: BookingRef, fare: FareInfo) -> None:
        missing = []
        if not ref.booking_id.strip():
            missing.append("bookingId")
        if not ref.owner_id.strip():
            missing.append("userId")
        if missing:
            raise ValidationError(details={"missing": ",".join(missing)})
        if fare.amount is None or fare.amount <= 0:
            raise ValidationError(details={"amount": "must be a positive integer"})

    def _persist(
        self,
        ref: BookingRef,
        booking: Booking,
        session: CheckoutSession,
        *,
        amount: int,
        currency: str,
    ) -> None:
        """Point the booking at the new session unless it was paid meanwhile."""
        delta: dict[str, Any] = {
            "checkout_session_id": session.session_id,
            "checkout_url": session.checkout_url,
            "status": BookingStatus.PAYMENT_INITIATED.value,
            "payment_status": PaymentStatus.PENDING.value,
            "payment_initiated_at": dt.datetime.now(dt.UTC),
            "amount": amount,
            "currency": currency,
        }

        current: Booking | None = booking
        for _ in range(self.max_attempts):
            if current is None:
                break
            if current.is_paid:
                logger.warning(
                    "Booking %s was paid while session %s was created; session orphaned",
                    ref,
                    session.session_id,
                )
                raise BookingError(
                    ErrorCode.BOOKING_ALREADY_PAID,
                    details={"booking_id": ref.booking_id},
                )
            try:
                updated = self.store.compare_and_update(
                    ref.owner_id, ref.booking_id, current.payment_status, delta
                )
                if updated is not None:
                    return
                current = self.store.get(ref.owner_id, ref.booking_id)
            except PersistenceError as e:
                raise self._not_persisted(ref, session, str(e)) from e

        reason = "booking deleted" if current is None else "concurrent update"
        raise self._not_persisted(ref, session, reason)

    def _not_persisted(
        self, ref: BookingRef, session: CheckoutSession, reason: str
    ) -> PersistenceError:
        log_payment_operation(
            logger,
            "persist_checkout_session",
            booking_id=ref.booking_id,
            owner_id=ref.owner_id,
            session_id=session.session_id,
            error=f"Session created upstream but not saved: {reason}",
        )
        return PersistenceError(
            ErrorCode.SESSION_NOT_PERSISTED,
            details={"booking_id": ref.booking_id, "reason": reason},
            session_id=session.session_id,
            checkout_url=session.checkout_url,
        )
