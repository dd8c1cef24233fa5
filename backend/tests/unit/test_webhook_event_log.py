"""Unit tests for the webhook-events idempotency ledger."""

import hashlib
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from prebooking.models import PersistenceError, ProcessingResult
from prebooking.services.webhook_events import WebhookEventLog


class TestWebhookEventLog:
    """Recording and looking up processed events."""

    def test_unknown_event_is_not_processed(self, event_log):
        assert event_log.is_processed("evt_new") is False
        assert event_log.get("evt_new") is None

    def test_applied_event_is_processed(self, event_log, webhook_events_table):
        event_log.record(
            event_id="evt_1",
            event_type="checkout_session.payment.paid",
            processing_result=ProcessingResult.APPLIED,
            owner_id="u1",
            booking_id="b1",
            payload_hash="abc",
        )

        assert event_log.is_processed("evt_1") is True
        item = webhook_events_table.get_item(Key={"event_id": "evt_1"})["Item"]
        assert item["processing_result"] == "applied"
        assert item["booking_id"] == "b1"
        assert item["payload_hash"] == "abc"
        assert "error_message" not in item

    def test_skipped_event_is_processed(self, event_log):
        event_log.record(
            event_id="evt_2",
            event_type="source.chargeable",
            processing_result=ProcessingResult.SKIPPED,
        )

        assert event_log.is_processed("evt_2") is True

    def test_errored_event_is_not_processed(self, event_log):
        """Failed events can be replayed once the cause is fixed."""
        event_log.record(
            event_id="evt_3",
            event_type="checkout_session.payment.paid",
            processing_result=ProcessingResult.ERROR,
            error_message="Booking not found",
        )

        record = event_log.get("evt_3")
        assert record.processing_result == "error"
        assert record.error_message == "Booking not found"
        assert event_log.is_processed("evt_3") is False

    def test_missing_event_type_is_recorded_as_unknown(self, event_log):
        event_log.record(
            event_id="evt_4",
            event_type=None,
            processing_result=ProcessingResult.SKIPPED,
        )

        assert event_log.get("evt_4").event_type == "unknown"

    def test_payload_hash_is_sha256(self):
        payload = b'{"id":"evt_1"}'

        assert WebhookEventLog.compute_payload_hash(payload) == hashlib.sha256(payload).hexdigest()


class TestConditionalRecord:
    """An entry is only replaced when it recorded an error."""

    def test_applied_entry_is_kept(self, event_log):
        assert event_log.record(
            event_id="evt_5",
            event_type="checkout_session.payment.paid",
            processing_result=ProcessingResult.APPLIED,
            booking_id="b1",
        ) is True

        written = event_log.record(
            event_id="evt_5",
            event_type="checkout_session.payment.paid",
            processing_result=ProcessingResult.SKIPPED,
            error_message="Booking already paid",
        )

        assert written is False
        record = event_log.get("evt_5")
        assert record.processing_result == "applied"
        assert record.booking_id == "b1"

    def test_error_entry_is_replaced(self, event_log):
        event_log.record(
            event_id="evt_6",
            event_type="checkout_session.payment.paid",
            processing_result=ProcessingResult.ERROR,
            error_message="Booking not found",
        )

        written = event_log.record(
            event_id="evt_6",
            event_type="checkout_session.payment.paid",
            processing_result=ProcessingResult.APPLIED,
        )

        assert written is True
        assert event_log.is_processed("evt_6") is True
        assert event_log.get("evt_6").error_message is None

    def test_condition_is_sent_to_dynamodb(self):
        db = MagicMock()
        db.put_item.return_value = True

        WebhookEventLog(db).record(
            event_id="evt_7",
            event_type="checkout_session.expired",
            processing_result=ProcessingResult.APPLIED,
        )

        kwargs = db.put_item.call_args.kwargs
        assert "attribute_not_exists(event_id)" in kwargs["condition_expression"]
        assert kwargs["expression_attribute_values"] == {":error": "error"}


class TestLedgerFailures:
    """Ledger reads fail loudly; ledger writes do not."""

    def test_read_failure_raises_persistence_error(self):
        db = MagicMock()
        db.get_item.side_effect = ClientError(
            {"Error": {"Code": "InternalServerError", "Message": "boom"}}, "GetItem"
        )

        with pytest.raises(PersistenceError):
            WebhookEventLog(db).is_processed("evt_1")

    def test_write_failure_is_logged_not_raised(self, caplog):
        db = MagicMock()
        db.put_item.side_effect = ClientError(
            {"Error": {"Code": "InternalServerError", "Message": "boom"}}, "PutItem"
        )

        WebhookEventLog(db).record(
            event_id="evt_1",
            event_type="checkout_session.payment.paid",
            processing_result=ProcessingResult.APPLIED,
        )

        assert "Failed to record webhook event evt_1" in caplog.text
