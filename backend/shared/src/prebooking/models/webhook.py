"""PayMongo webhook event models for reconciliation and auditing."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


class WebhookEvent(BaseModel):
    """A provider-issued event envelope, normalized across payload shapes.

    PayMongo wraps events as ``{"data": {"id", "attributes": {"type", "data"}}}``;
    older integrations post ``{"id", "type", "data"}`` directly. ``data`` is
    always the checkout-session-shaped payload.
    """

    id: str | None = Field(default=None, description="Event id (evt_xxx)")
    type: str | None = Field(default=None, description="Event type")
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Checkout session payload carried by the event",
    )

    @classmethod
    def from_payload(cls, body: Any) -> "WebhookEvent":
        """Normalize a decoded webhook body.

        Args:
            body: JSON-decoded request body

        Returns:
            WebhookEvent with id, type and session payload resolved

        Raises:
            ValueError: If the body is not a JSON object
        """
        if not isinstance(body, dict):
            raise ValueError("Webhook body must be a JSON object")

        envelope = _as_dict(body.get("data"))
        attributes = _as_dict(envelope.get("attributes"))

        if "type" in attributes:
            return cls(
                id=envelope.get("id") or body.get("id"),
                type=attributes.get("type"),
                data=_as_dict(attributes.get("data")),
            )

        return cls(
            id=body.get("id") or envelope.get("id"),
            type=body.get("type"),
            data=envelope,
        )

    @property
    def session_id(self) -> str | None:
        """Id of the checkout session payload, if present."""
        value = self.data.get("id")
        return value if isinstance(value, str) else None

    @property
    def session_attributes(self) -> dict[str, Any]:
        return _as_dict(self.data.get("attributes"))


class WebhookEventRecord(BaseModel):
    """Ledger entry for a received webhook event.

    Used for:
    - Idempotency: skip events already applied
    - Auditing: track all deliveries and their outcome
    """

    model_config = ConfigDict(strict=True)

    event_id: str = Field(..., description="PayMongo event id (evt_xxx)")
    event_type: str = Field(..., description="Event type")
    processed_at: datetime = Field(..., description="When the event was processed")
    payload_hash: str | None = Field(
        default=None,
        description="SHA-256 of the raw payload",
    )
    owner_id: str | None = None
    booking_id: str | None = None
    processing_result: str = Field(
        default="applied",
        description="applied, duplicate, skipped or error",
    )
    error_message: str | None = None
