"""Status Reconciler for PayMongo checkout-session webhooks.

Applies verified webhook events to bookings exactly once:

- The webhook-events ledger is consulted before any mutation, so a
  redelivered event is acknowledged without touching the booking.
- Each transition is a conditional write against the payment status the
  reconciler read, so a concurrent delivery cannot clobber it. On a
  precondition failure the booking is re-read and the transition
  re-planned.
- ``paid`` is absorbing. Between ``failed`` and ``expired`` the most
  recent event wins.
"""

import datetime as dt
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from prebooking.models import (
    BoardingStatus,
    Booking,
    BookingError,
    BookingRef,
    BookingStatus,
    ErrorCode,
    NotFoundError,
    PaymentStatus,
    PersistenceError,
    ProcessingResult,
    ValidationError,
    WebhookEvent,
    WebhookEventType,
)
from prebooking.utils.logging import get_logger, log_webhook_event

from .event_metadata import extract_booking_ref, session_attribute

if TYPE_CHECKING:
    from .booking_store import BookingStore
    from .webhook_events import WebhookEventLog

logger = get_logger(__name__)

DEFAULT_FAILURE_REASON = "Payment failed"
EXPIRED_MESSAGE = "Checkout session expired"
UNKNOWN_PAYMENT_METHOD = "unknown"


@dataclass(frozen=True)
class ReconcileOutcome:
    """What applying one webhook event did."""

    result: ProcessingResult
    event_id: str | None
    event_type: str | None
    owner_id: str | None = None
    booking_id: str | None = None
    message: str | None = None


class StatusReconciler:
    """Computes and applies booking transitions for webhook events."""

    def __init__(
        self,
        store: "BookingStore",
        events: "WebhookEventLog",
        max_attempts: int = 3,
    ) -> None:
        """Initialize the reconciler.

        Args:
            store: Booking store adapter
            events: Idempotency ledger
            max_attempts: Conditional-write attempts before giving up
        """
        self.store = store
        self.events = events
        self.max_attempts = max_attempts

    def apply(self, event: WebhookEvent, payload_hash: str | None = None) -> ReconcileOutcome:
        """Apply one verified webhook event.

        Args:
            event: Normalized webhook event
            payload_hash: SHA-256 of the raw body, kept in the ledger

        Returns:
            ReconcileOutcome describing the result

        Raises:
            ValidationError: MISSING_METADATA for paid/failed events
            NotFoundError: The referenced booking does not exist
            PersistenceError: Store failure, or CONCURRENT_UPDATE after
                exhausting conditional-write attempts
        """
        if event.id and self.events.is_processed(event.id):
            outcome = ReconcileOutcome(
                ProcessingResult.DUPLICATE,
                event.id,
                event.type,
                message="Event already processed",
            )
            log_webhook_event(logger, event.type, event.id, result=outcome.result.value)
            return outcome

        event_type = WebhookEventType.parse(event.type)
        if event_type is None:
            return self._finish(
                event,
                payload_hash,
                ReconcileOutcome(
                    ProcessingResult.SKIPPED,
                    event.id,
                    event.type,
                    message=f"Unhandled event type: {event.type}",
                ),
            )

        ref = extract_booking_ref(event.data)
        if ref is None:
            if event_type is WebhookEventType.EXPIRED:
                return self._finish(
                    event,
                    payload_hash,
                    ReconcileOutcome(
                        ProcessingResult.SKIPPED,
                        event.id,
                        event.type,
                        message="Expired session without booking metadata",
                    ),
                )
            error = ValidationError(ErrorCode.MISSING_METADATA)
            self._record_error(event, payload_hash, None, error)
            raise error

        try:
            outcome = self._apply_to_booking(event, event_type, ref)
        except BookingError as e:
            self._record_error(event, payload_hash, ref, e)
            raise
        return self._finish(event, payload_hash, outcome)

    def _apply_to_booking(
        self,
        event: WebhookEvent,
        event_type: WebhookEventType,
        ref: BookingRef,
    ) -> ReconcileOutcome:
        for attempt in range(1, self.max_attempts + 1):
            booking = self.store.get(ref.owner_id, ref.booking_id)
            if booking is None:
                raise NotFoundError(details={"booking_id": ref.booking_id})

            delta, noop = self._plan(event, event_type, booking)
            if delta is None:
                return ReconcileOutcome(
                    noop or ProcessingResult.SKIPPED,
                    event.id,
                    event.type,
                    ref.owner_id,
                    ref.booking_id,
                    message=self._noop_message(event_type, noop),
                )

            updated = self.store.compare_and_update(
                ref.owner_id, ref.booking_id, booking.payment_status, delta
            )
            if updated is not None:
                return ReconcileOutcome(
                    ProcessingResult.APPLIED,
                    event.id,
                    event.type,
                    ref.owner_id,
                    ref.booking_id,
                    message=f"Booking is now {updated.status}",
                )
            logger.info(
                "Booking %s changed during %s (attempt %d/%d); re-reading",
                ref,
                event_type.value,
                attempt,
                self.max_attempts,
            )

        raise PersistenceError(
            ErrorCode.CONCURRENT_UPDATE,
            details={"booking_id": ref.booking_id, "attempts": str(self.max_attempts)},
        )

    def _plan(
        self,
        event: WebhookEvent,
        event_type: WebhookEventType,
        booking: Booking,
    ) -> tuple[dict[str, Any] | None, ProcessingResult | None]:
        """Compute the field delta for an event against the current booking.

        Returns:
            (delta, None) to write, or (None, result) for a no-op
        """
        now = dt.datetime.now(dt.UTC)

        if event_type is WebhookEventType.PAYMENT_PAID:
            if booking.is_paid:
                return None, ProcessingResult.DUPLICATE
            delta: dict[str, Any] = {
                "status": BookingStatus.PAID.value,
                "payment_status": PaymentStatus.PAID.value,
                "payment_provider_payment_id": event.session_id or event.id,
                "payment_method": (
                    session_attribute(event.data, "payment_method_used")
                    or UNKNOWN_PAYMENT_METHOD
                ),
                "paid_at": now,
                "payment_completed_at": now,
                "webhook_processed_at": now,
                "payment_error": None,
            }
            if not booking.boarding_status:
                delta["boarding_status"] = BoardingStatus.PENDING.value
            return delta, None

        # paid is absorbing
        if booking.is_paid:
            return None, ProcessingResult.SKIPPED

        if event_type is WebhookEventType.PAYMENT_FAILED:
            return {
                "status": BookingStatus.PAYMENT_FAILED.value,
                "payment_status": PaymentStatus.FAILED.value,
                "payment_error": (
                    session_attribute(event.data, "failure_reason") or DEFAULT_FAILURE_REASON
                ),
                "payment_failed_at": now,
                "webhook_processed_at": now,
            }, None

        return {
            "status": BookingStatus.PAYMENT_EXPIRED.value,
            "payment_status": PaymentStatus.EXPIRED.value,
            "payment_error": EXPIRED_MESSAGE,
            "payment_expired_at": now,
            "webhook_processed_at": now,
        }, None

    @staticmethod
    def _noop_message(event_type: WebhookEventType, result: ProcessingResult | None) -> str:
        if result is ProcessingResult.DUPLICATE:
            return "Booking already paid"
        return f"Booking already paid; {event_type.value} ignored"

    def _finish(
        self,
        event: WebhookEvent,
        payload_hash: str | None,
        outcome: ReconcileOutcome,
    ) -> ReconcileOutcome:
        log_webhook_event(
            logger,
            event.type,
            event.id,
            booking_id=outcome.booking_id,
            owner_id=outcome.owner_id,
            result=outcome.result.value,
        )
        if event.id:
            self.events.record(
                event_id=event.id,
                event_type=event.type,
                processing_result=outcome.result,
                owner_id=outcome.owner_id,
                booking_id=outcome.booking_id,
                payload_hash=payload_hash,
                error_message=(
                    outcome.message if outcome.result is ProcessingResult.SKIPPED else None
                ),
            )
        return outcome

    def _record_error(
        self,
        event: WebhookEvent,
        payload_hash: str | None,
        ref: BookingRef | None,
        error: BookingError,
    ) -> None:
        owner_id = ref.owner_id if ref else None
        booking_id = ref.booking_id if ref else None
        log_webhook_event(
            logger,
            event.type,
            event.id,
            booking_id=booking_id,
            owner_id=owner_id,
            result=ProcessingResult.ERROR.value,
            error=error.message,
        )
        if event.id:
            self.events.record(
                event_id=event.id,
                event_type=event.type,
                processing_result=ProcessingResult.ERROR,
                owner_id=owner_id,
                booking_id=booking_id,
                payload_hash=payload_hash,
                error_message=error.message,
            )
