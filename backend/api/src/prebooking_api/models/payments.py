"""API models for checkout and webhook endpoints.

Wire names are camelCase to match the mobile client and the provider
redirect pages.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from prebooking.models import BookingRef, FareInfo, PaymentMethodChoice


class CheckoutMetadata(BaseModel):
    """Booking context sent with a checkout request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    booking_id: str = Field(..., description="Pre-booking id", examples=["b1"])
    user_id: str = Field(..., description="Owning rider's user id", examples=["u1"])
    route: str | None = Field(default=None, examples=["Batangas - Lipa"])
    from_place: str | None = Field(default=None, examples=["Batangas City"])
    to_place: str | None = Field(default=None, examples=["Lipa City"])
    quantity: int | None = Field(default=None, ge=1)
    fare_types: str | None = Field(default=None, description="Opaque fare descriptor")
    source: str | None = Field(default=None, examples=["flutter_app"])


class CheckoutRequest(BaseModel):
    """Request to create a PayMongo checkout session for a booking."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "amount": 150000,
                    "currency": "PHP",
                    "paymentMethod": "gcash",
                    "metadata": {"bookingId": "b1", "userId": "u1"},
                }
            ]
        },
    )

    amount: int = Field(..., description="Amount in centavos")
    currency: str | None = Field(default=None, description="ISO currency (default PHP)")
    payment_method: PaymentMethodChoice = Field(
        default=PaymentMethodChoice.ALL,
        description="card, gcash, paymaya or all",
    )
    metadata: CheckoutMetadata

    def booking_ref(self) -> BookingRef:
        return BookingRef(owner_id=self.metadata.user_id, booking_id=self.metadata.booking_id)

    def fare_info(self) -> FareInfo:
        return FareInfo(
            amount=self.amount,
            currency=self.currency,
            route=self.metadata.route,
            from_place=self.metadata.from_place,
            to_place=self.metadata.to_place,
            quantity=self.metadata.quantity,
            fare_types=self.metadata.fare_types,
            source=self.metadata.source,
            payment_method=self.payment_method,
        )


class CheckoutResponse(BaseModel):
    """Checkout session created for a booking."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    checkout_url: str = Field(..., description="Hosted payment page URL")
    checkout_id: str = Field(..., description="PayMongo checkout session id")


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the provider."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    received: bool = True
    event_id: str | None = None
    event_type: str | None = None
    processing_result: str  # applied, duplicate, skipped, error
    message: str | None = None
