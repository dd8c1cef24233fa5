"""Enumeration types for pre-booking payment data models."""

from enum import Enum


class BookingStatus(str, Enum):
    """Lifecycle status of a pre-booking."""

    PENDING_PAYMENT = "pending_payment"
    PAYMENT_INITIATED = "payment_initiated"
    PAID = "paid"
    PAYMENT_FAILED = "payment_failed"
    PAYMENT_EXPIRED = "payment_expired"


class PaymentStatus(str, Enum):
    """Payment-specific sub-state of a pre-booking."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    EXPIRED = "expired"


class BoardingStatus(str, Enum):
    """Boarding state once a seat is paid for."""

    PENDING = "pending"
    BOARDED = "boarded"
    NO_SHOW = "no_show"


class PaymentMethodChoice(str, Enum):
    """Payment method selection offered at checkout."""

    CARD = "card"
    GCASH = "gcash"
    PAYMAYA = "paymaya"
    ALL = "all"

    def provider_types(self) -> list[str]:
        """Map the selection to PayMongo payment_method_types."""
        if self is PaymentMethodChoice.ALL:
            return ["card", "gcash", "paymaya"]
        return [self.value]


class WebhookEventType(str, Enum):
    """PayMongo checkout-session event kinds handled by the reconciler."""

    PAYMENT_PAID = "checkout_session.payment.paid"
    PAYMENT_FAILED = "checkout_session.payment.failed"
    EXPIRED = "checkout_session.expired"

    @classmethod
    def parse(cls, value: str | None) -> "WebhookEventType | None":
        """Resolve a raw event type, including legacy aliases.

        Args:
            value: Event type string from the webhook envelope

        Returns:
            Matching event type or None if the type is not handled
        """
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return _LEGACY_EVENT_ALIASES.get(value)


_LEGACY_EVENT_ALIASES: dict[str, WebhookEventType] = {
    "payment.paid": WebhookEventType.PAYMENT_PAID,
    "payment.failed": WebhookEventType.PAYMENT_FAILED,
}


class ProcessingResult(str, Enum):
    """Outcome of applying a webhook event."""

    APPLIED = "applied"
    DUPLICATE = "duplicate"  # idempotent no-op
    SKIPPED = "skipped"
    ERROR = "error"


class VerificationMode(str, Enum):
    """Whether inbound webhook signatures are enforced."""

    ENFORCED = "enforced"
    DISABLED = "disabled"
