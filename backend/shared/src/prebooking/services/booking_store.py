"""Booking Store Adapter over DynamoDB.

Bookings live in the ``prebookings`` table keyed by owner_id (partition)
and booking_id (sort), mirroring users/{userId}/preBookings/{bookingId}.

This adapter exclusively owns mutation of a booking's payment fields.
Updates are partial: only named fields change, so the checkout flow,
the reconciler and the admin dashboard can write disjoint fields.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError as PydanticValidationError

from prebooking.models import (
    BOOKING_MUTABLE_FIELDS,
    Booking,
    ErrorCode,
    NotFoundError,
    PersistenceError,
)
from prebooking.utils.logging import get_logger

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

_TIMESTAMP_FIELDS = frozenset(name for name in Booking.model_fields if name.endswith("_at"))
_INTEGER_FIELDS = frozenset({"amount", "quantity"})


def _parse_timestamp(value: Any) -> dt.datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, (int, float, Decimal)):
        return dt.datetime.fromtimestamp(float(value), tz=dt.UTC)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = dt.datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.UTC)
    return parsed


def _parse_integer(value: Any) -> int:
    number = Decimal(str(value).strip())
    if number != number.to_integral_value():
        raise ValueError(f"{value!r} is not a whole number")
    return int(number)


def _to_attribute(value: Any) -> Any:
    if isinstance(value, dt.datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, float):
        return Decimal(str(value))
    return value


class BookingStore:
    """Reads and writes single pre-booking documents."""

    TABLE = "prebookings"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize booking store.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    @staticmethod
    def _key(owner_id: str, booking_id: str) -> dict[str, str]:
        return {"owner_id": owner_id, "booking_id": booking_id}

    def get(self, owner_id: str, booking_id: str) -> Booking | None:
        """Fetch a booking by its composite key.

        Args:
            owner_id: Owning user id
            booking_id: Booking id within the owner

        Returns:
            Booking or None if it does not exist

        Raises:
            PersistenceError: If the store cannot be read
        """
        try:
            item = self.db.get_item(self.TABLE, self._key(owner_id, booking_id))
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to read booking %s/%s: %s", owner_id, booking_id, e)
            raise PersistenceError(details={"operation": "get"}) from e
        return self._item_to_booking(item) if item else None

    def update(
        self,
        owner_id: str,
        booking_id: str,
        delta: dict[str, Any],
    ) -> Booking:
        """Apply a blind partial-field update to an existing booking.

        Fields set to None are removed. ``updated_at`` is always refreshed.

        Args:
            owner_id: Owning user id
            booking_id: Booking id within the owner
            delta: Field name to new value

        Returns:
            The booking after the update

        Raises:
            NotFoundError: If the booking does not exist
            PersistenceError: If the write fails
        """
        attrs = self._write(
            owner_id, booking_id, delta, expected_payment_status=None, guarded=False
        )
        if attrs is None:
            raise NotFoundError(details={"booking_id": booking_id})
        return self._item_to_booking(attrs)

    def compare_and_update(
        self,
        owner_id: str,
        booking_id: str,
        expected_payment_status: str | None,
        delta: dict[str, Any],
    ) -> Booking | None:
        """Apply a partial update only if payment_status is unchanged.

        The precondition and the write are a single conditional DynamoDB
        update, so a concurrent writer cannot slip in between.

        Args:
            owner_id: Owning user id
            booking_id: Booking id within the owner
            expected_payment_status: payment_status observed on read
                (None means the attribute must be absent)
            delta: Field name to new value

        Returns:
            The booking after the update, or None if the booking is gone
            or its payment_status no longer matches

        Raises:
            PersistenceError: If the write fails
        """
        attrs = self._write(
            owner_id,
            booking_id,
            delta,
            expected_payment_status=expected_payment_status,
            guarded=True,
        )
        return self._item_to_booking(attrs) if attrs is not None else None

    def _write(
        self,
        owner_id: str,
        booking_id: str,
        delta: dict[str, Any],
        *,
        expected_payment_status: str | None,
        guarded: bool,
    ) -> dict[str, Any] | None:
        unknown = set(delta) - BOOKING_MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown booking fields: {sorted(unknown)}")

        fields = dict(delta)
        fields.setdefault("updated_at", dt.datetime.now(dt.UTC))

        names: dict[str, str] = {"#bid": "booking_id"}
        values: dict[str, Any] = {}
        set_clauses: list[str] = []
        remove_clauses: list[str] = []

        for index, (field, value) in enumerate(sorted(fields.items())):
            placeholder = f"#f{index}"
            names[placeholder] = field
            if value is None:
                remove_clauses.append(placeholder)
            else:
                values[f":v{index}"] = _to_attribute(value)
                set_clauses.append(f"{placeholder} = :v{index}")

        update_expression = ""
        if set_clauses:
            update_expression = "SET " + ", ".join(set_clauses)
        if remove_clauses:
            update_expression += " REMOVE " + ", ".join(remove_clauses)

        condition = "attribute_exists(#bid)"
        if guarded:
            names["#ps"] = "payment_status"
            if expected_payment_status is None:
                condition += " AND attribute_not_exists(#ps)"
            else:
                values[":expected_ps"] = expected_payment_status
                condition += " AND #ps = :expected_ps"

        try:
            return self.db.update_item(
                self.TABLE,
                self._key(owner_id, booking_id),
                update_expression.strip(),
                expression_attribute_values=values or None,
                expression_attribute_names=names,
                condition_expression=condition,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to update booking %s/%s: %s", owner_id, booking_id, e)
            raise PersistenceError(
                ErrorCode.PERSISTENCE_FAILED, details={"operation": "update"}
            ) from e

    def _item_to_booking(self, item: dict[str, Any]) -> Booking:
        """Convert DynamoDB item to Booking model.

        Other writers share these documents, so an attribute that cannot be
        converted is dropped with a warning instead of failing the read.

        Raises:
            PersistenceError: If the remaining fields do not form a valid booking
        """
        data: dict[str, Any] = {}
        for name in Booking.model_fields:
            if name not in item or item[name] is None:
                continue
            value = item[name]
            try:
                if name in _TIMESTAMP_FIELDS:
                    value = _parse_timestamp(value)
                elif name in _INTEGER_FIELDS:
                    value = _parse_integer(value)
                else:
                    value = str(value)
            except (ValueError, TypeError, ArithmeticError, OSError):
                logger.warning(
                    "Ignoring unreadable %s=%r on booking %s/%s",
                    name,
                    value,
                    item.get("owner_id"),
                    item.get("booking_id"),
                )
                continue
            data[name] = value

        try:
            return Booking(**data)
        except PydanticValidationError as e:
            logger.error(
                "Booking %s/%s cannot be decoded: %s",
                item.get("owner_id"),
                item.get("booking_id"),
                e,
            )
            raise PersistenceError(
                details={"operation": "decode", "booking_id": str(item.get("booking_id"))}
            ) from e
