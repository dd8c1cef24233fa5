"""Locate booking metadata inside checkout-session payloads.

The same metadata bag appears at different paths depending on the event
type and SDK version. Each strategy below looks in one place and returns
``(value, found)``; strategies are tried in order, outermost first.
"""

from collections.abc import Callable, Sequence
from typing import Any

from prebooking.models import BookingRef

MetadataStrategy = Callable[[dict[str, Any]], tuple[dict[str, Any] | None, bool]]


def _lookup(source: Any, *path: str) -> tuple[Any, bool]:
    current = source
    for key in path:
        if not isinstance(current, dict) or key not in current:
            return None, False
        current = current[key]
    return current, True


def _metadata_at(*path: str) -> MetadataStrategy:
    def strategy(payload: dict[str, Any]) -> tuple[dict[str, Any] | None, bool]:
        value, found = _lookup(payload, *path)
        if found and isinstance(value, dict):
            return value, True
        return None, False

    strategy.__name__ = "metadata_at_" + "_".join(path)
    return strategy


# Legacy payloads carry metadata on the session itself; current ones nest
# it under attributes, and some SDKs wrap a checkout_session object.
METADATA_STRATEGIES: tuple[MetadataStrategy, ...] = (
    _metadata_at("metadata"),
    _metadata_at("attributes", "metadata"),
    _metadata_at("attributes", "checkout_session", "metadata"),
)

BOOKING_ID_KEYS = ("bookingId", "booking_id")
OWNER_ID_KEYS = ("userId", "user_id")


def extract_field(
    payload: dict[str, Any],
    names: Sequence[str],
    strategies: Sequence[MetadataStrategy] = METADATA_STRATEGIES,
) -> tuple[str | None, bool]:
    """Find a metadata field across all known payload shapes.

    Args:
        payload: Checkout-session-shaped payload from the event
        names: Accepted key spellings, in preference order
        strategies: Metadata locators to try, in order

    Returns:
        (value, found); empty values count as not found
    """
    for strategy in strategies:
        metadata, found = strategy(payload)
        if not found or metadata is None:
            continue
        for name in names:
            value = metadata.get(name)
            if value is not None and str(value).strip():
                return str(value), True
    return None, False


def extract_booking_ref(payload: dict[str, Any]) -> BookingRef | None:
    """Resolve the booking a webhook payload refers to.

    Returns:
        BookingRef, or None if either id is missing
    """
    booking_id, has_booking = extract_field(payload, BOOKING_ID_KEYS)
    owner_id, has_owner = extract_field(payload, OWNER_ID_KEYS)
    if not (has_booking and has_owner):
        return None
    return BookingRef(owner_id=owner_id, booking_id=booking_id)


def session_attribute(payload: dict[str, Any], name: str) -> str | None:
    """Read a session attribute such as failure_reason or payment_method_used.

    Looks under ``attributes`` first, then on the payload itself.
    """
    for path in (("attributes", name), (name,)):
        value, found = _lookup(payload, *path)
        if found and value is not None and str(value).strip():
            return str(value)
    return None
