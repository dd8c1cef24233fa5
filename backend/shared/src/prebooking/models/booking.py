"""Pre-booking models for seat reservations and their payment lifecycle."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .enums import BoardingStatus, BookingStatus, PaymentMethodChoice, PaymentStatus


class BookingRef(BaseModel):
    """Owner-scoped identity of a pre-booking.

    A booking id is only unique within its owner.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    owner_id: str = Field(..., description="Owning rider's user id")
    booking_id: str = Field(..., description="Booking id within the owner")

    def __str__(self) -> str:
        return f"{self.owner_id}/{self.booking_id}"


class Booking(BaseModel):
    """A rider's pre-booked seat and its payment state.

    Status fields are kept as plain strings because the admin dashboard
    writes to the same documents; compare against the enums in
    prebooking.models.enums.
    """

    model_config = ConfigDict(strict=True)

    owner_id: str
    booking_id: str

    # Fare
    amount: int = Field(default=0, ge=0, description="Amount in minor currency units")
    currency: str | None = None
    route: str | None = None
    from_place: str | None = None
    to_place: str | None = None
    quantity: int | None = None
    fare_types: str | None = Field(default=None, description="Opaque fare descriptor")

    # Payment
    status: str | None = None
    payment_status: str | None = None
    boarding_status: str | None = None
    checkout_session_id: str | None = None
    checkout_url: str | None = None
    payment_provider_payment_id: str | None = None
    payment_method: str | None = None
    payment_error: str | None = None

    # Timestamps
    created_at: datetime | None = None
    payment_initiated_at: datetime | None = None
    paid_at: datetime | None = None
    payment_completed_at: datetime | None = None
    payment_failed_at: datetime | None = None
    payment_expired_at: datetime | None = None
    webhook_processed_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def ref(self) -> BookingRef:
        return BookingRef(owner_id=self.owner_id, booking_id=self.booking_id)

    @property
    def is_paid(self) -> bool:
        """Paid is terminal and absorbing."""
        return self.payment_status == PaymentStatus.PAID.value


# Field names the Booking Store Adapter accepts in a partial update
BOOKING_MUTABLE_FIELDS: frozenset[str] = frozenset(
    name for name in Booking.model_fields if name not in ("owner_id", "booking_id")
)


class FareInfo(BaseModel):
    """Fare data used to build a checkout session."""

    amount: int | None = Field(default=None, description="Amount in minor currency units")
    currency: str | None = None
    route: str | None = None
    from_place: str | None = None
    to_place: str | None = None
    quantity: int | None = None
    fare_types: str | None = None
    source: str | None = None
    payment_method: PaymentMethodChoice = PaymentMethodChoice.ALL


class CheckoutSession(BaseModel):
    """Identifiers of a provider checkout session."""

    model_config = ConfigDict(strict=True)

    session_id: str = Field(..., description="PayMongo checkout session id (cs_xxx)")
    checkout_url: str = Field(..., description="Hosted payment page URL")


class PaymentStatusView(BaseModel):
    """Wire projection of a booking's payment state for polling clients.

    Timestamps serialize as ISO-8601 strings.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    status: str = BookingStatus.PENDING_PAYMENT.value
    payment_status: str = PaymentStatus.PENDING.value
    boarding_status: str = BoardingStatus.PENDING.value
    amount: int = 0
    currency: str | None = None
    checkout_session_id: str | None = None
    checkout_url: str | None = None
    payment_provider_payment_id: str | None = None
    payment_method: str | None = None
    payment_error: str | None = None
    paid_at: datetime | None = None
    payment_initiated_at: datetime | None = None
    payment_failed_at: datetime | None = None
    payment_expired_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
