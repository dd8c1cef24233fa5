"""Idempotency ledger for PayMongo webhook events.

Every handled delivery is recorded by event id with its processing
result. The reconciler consults the ledger before mutating a booking,
so a redelivered event is acknowledged without being applied again.
"""

import datetime as dt
import hashlib
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from prebooking.models import PersistenceError, ProcessingResult, WebhookEventRecord
from prebooking.utils.logging import get_logger

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

RECORD_CONDITION = "attribute_not_exists(event_id) OR processing_result = :error"


class WebhookEventLog:
    """Records processed webhook events in DynamoDB."""

    TABLE = "webhook-events"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    @staticmethod
    def compute_payload_hash(payload: bytes) -> str:
        """SHA-256 hex digest of a raw webhook payload."""
        return hashlib.sha256(payload).hexdigest()

    def get(self, event_id: str) -> WebhookEventRecord | None:
        """Look up a ledger entry by event id."""
        try:
            item = self.db.get_item(self.TABLE, {"event_id": event_id})
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to read webhook event %s: %s", event_id, e)
            raise PersistenceError(details={"operation": "ledger_get"}) from e
        if not item:
            return None
        processed_at = dt.datetime.fromisoformat(item["processed_at"])
        return WebhookEventRecord(
            event_id=item["event_id"],
            event_type=item.get("event_type", ""),
            processed_at=processed_at,
            payload_hash=item.get("payload_hash"),
            owner_id=item.get("owner_id"),
            booking_id=item.get("booking_id"),
            processing_result=item.get("processing_result", ProcessingResult.APPLIED.value),
            error_message=item.get("error_message"),
        )

    def is_processed(self, event_id: str) -> bool:
        """Check whether an event was already handled.

        Events that ended in an error are not considered processed, so a
        replay can apply them once the cause is fixed.

        Args:
            event_id: PayMongo event id

        Returns:
            True if the event was applied or intentionally skipped before
        """
        record = self.get(event_id)
        return record is not None and record.processing_result != ProcessingResult.ERROR.value

    def record(
        self,
        *,
        event_id: str,
        event_type: str | None,
        processing_result: ProcessingResult,
        owner_id: str | None = None,
        booking_id: str | None = None,
        payload_hash: str | None = None,
        error_message: str | None = None,
    ) -> bool:
        """Write a ledger entry for an event.

        The insert is conditional: an existing entry is only replaced when
        it recorded an error.

        Ledger write failures are logged, not raised; the booking write
        has already happened by the time an outcome is recorded.

        Returns:
            True if the entry was written
        """
        record = WebhookEventRecord(
            event_id=event_id,
            event_type=event_type or "unknown",
            processed_at=dt.datetime.now(dt.UTC),
            payload_hash=payload_hash,
            owner_id=owner_id,
            booking_id=booking_id,
            processing_result=processing_result.value,
            error_message=error_message,
        )
        item: dict[str, Any] = record.model_dump(mode="json", exclude_none=True)

        try:
            written = self.db.put_item(
                self.TABLE,
                item,
                condition_expression=RECORD_CONDITION,
                expression_attribute_values={":error": ProcessingResult.ERROR.value},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to record webhook event %s: %s", event_id, e)
            return False

        if not written:
            logger.info(
                "Webhook event %s already recorded by another delivery; keeping it", event_id
            )
        return written
