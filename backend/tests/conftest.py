"""Pytest configuration and fixtures for B-GO pre-booking payment tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto (prebookings and webhook-events tables)
- A fake PayMongo API served through httpx.MockTransport
- Booking and webhook event factories
"""

import hashlib
import hmac
import json
import os
from collections.abc import Callable, Generator
from datetime import datetime, timezone
from typing import Any

import boto3
import httpx
import pytest
from moto import mock_aws

# === Environment Setup ===

TEST_REGION = "ap-southeast-1"
TEST_TABLE_PREFIX = "test-bgo"
TEST_SECRET_KEY = "sk_test_abc123"
TEST_WEBHOOK_SECRET = "whsk_test_secret_for_testing"
TEST_REDIRECT_BASE_URL = "https://bgo.example.com"
TEST_OWNER_ID = "u1"
TEST_BOOKING_ID = "b1"
TEST_SESSION_ID = "cs_test_abc123"
TEST_CHECKOUT_URL = "https://checkout.paymongo.com/cs_test_abc123"

os.environ.setdefault("AWS_DEFAULT_REGION", TEST_REGION)
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ["DYNAMODB_TABLE_PREFIX"] = TEST_TABLE_PREFIX


# === Configuration Fixtures ===


@pytest.fixture(autouse=True)
def payment_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Known payment configuration for every test."""
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("DYNAMODB_TABLE_PREFIX", TEST_TABLE_PREFIX)
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("PAYMONGO_SECRET_KEY", TEST_SECRET_KEY)
    monkeypatch.setenv("PAYMONGO_WEBHOOK_SECRET", TEST_WEBHOOK_SECRET)
    monkeypatch.setenv("PAYMENT_REDIRECT_BASE_URL", TEST_REDIRECT_BASE_URL)
    for name in (
        "VERCEL_URL",
        "SECRETS_SOURCE",
        "PAYMONGO_API_BASE",
        "PAYMONGO_TIMEOUT_SECONDS",
        "PAYMENT_DEFAULT_CURRENCY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_service_singletons(payment_env: None) -> Generator[None, None, None]:
    """Reset cached settings and services before and after each test.

    Services created inside a mock_aws context must not leak into the
    next test.
    """
    from prebooking.services.ssm_service import SSMService, get_ssm_service
    from prebooking_api.dependencies import reset_services

    reset_services()
    get_ssm_service.cache_clear()
    SSMService._cache.clear()
    yield
    reset_services()
    get_ssm_service.cache_clear()
    SSMService._cache.clear()


# === DynamoDB Fixtures ===


@pytest.fixture
def dynamodb_tables() -> Generator[Any, None, None]:
    """Create mocked prebookings and webhook-events tables.

    Yields:
        boto3 DynamoDB resource bound to the mock
    """
    with mock_aws():
        client = boto3.client("dynamodb", region_name=TEST_REGION)
        client.create_table(
            TableName=f"{TEST_TABLE_PREFIX}-prebookings",
            KeySchema=[
                {"AttributeName": "owner_id", "KeyType": "HASH"},
                {"AttributeName": "booking_id", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "owner_id", "AttributeType": "S"},
                {"AttributeName": "booking_id", "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        client.create_table(
            TableName=f"{TEST_TABLE_PREFIX}-webhook-events",
            KeySchema=[{"AttributeName": "event_id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "event_id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        yield boto3.resource("dynamodb", region_name=TEST_REGION)


@pytest.fixture
def prebookings_table(dynamodb_tables: Any) -> Any:
    return dynamodb_tables.Table(f"{TEST_TABLE_PREFIX}-prebookings")


@pytest.fixture
def webhook_events_table(dynamodb_tables: Any) -> Any:
    return dynamodb_tables.Table(f"{TEST_TABLE_PREFIX}-webhook-events")


@pytest.fixture
def seed_booking(prebookings_table: Any) -> Callable[..., dict[str, Any]]:
    """Factory that stores a booking item directly in the mocked table.

    Defaults to a fresh booking with no payment fields.
    """

    def _seed(
        owner_id: str = TEST_OWNER_ID,
        booking_id: str = TEST_BOOKING_ID,
        **fields: Any,
    ) -> dict[str, Any]:
        item: dict[str, Any] = {
            "owner_id": owner_id,
            "booking_id": booking_id,
            "amount": 150000,
            "currency": "PHP",
            "route": "Batangas - Lipa",
            "from_place": "Batangas City",
            "to_place": "Lipa City",
            "quantity": 1,
            "fare_types": "regular",
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        item.update(fields)
        prebookings_table.put_item(Item=item)
        return item

    return _seed


@pytest.fixture
def read_booking_item(prebookings_table: Any) -> Callable[..., dict[str, Any] | None]:
    """Read a raw booking item from the mocked table."""

    def _read(
        owner_id: str = TEST_OWNER_ID, booking_id: str = TEST_BOOKING_ID
    ) -> dict[str, Any] | None:
        response = prebookings_table.get_item(
            Key={"owner_id": owner_id, "booking_id": booking_id}
        )
        return response.get("Item")

    return _read


@pytest.fixture
def booking_store(dynamodb_tables: Any) -> Any:
    from prebooking.services.booking_store import BookingStore
    from prebooking.services.dynamodb import get_dynamodb_service

    return BookingStore(db=get_dynamodb_service())


@pytest.fixture
def event_log(dynamodb_tables: Any) -> Any:
    from prebooking.services.dynamodb import get_dynamodb_service
    from prebooking.services.webhook_events import WebhookEventLog

    return WebhookEventLog(db=get_dynamodb_service())


# === PayMongo Fixtures ===


class FakePayMongoAPI:
    """In-memory stand-in for the PayMongo checkout_sessions endpoint."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.session_id = TEST_SESSION_ID
        self.checkout_url = TEST_CHECKOUT_URL
        self.timeout = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.timeout:
            raise httpx.ReadTimeout("timed out", request=request)
        if self.status_code >= 300:
            return httpx.Response(
                self.status_code,
                json={"errors": [{"code": "parameter_invalid", "detail": "amount is invalid"}]},
            )
        return httpx.Response(
            200,
            json={
                "data": {
                    "id": self.session_id,
                    "type": "checkout_session",
                    "attributes": {"checkout_url": self.checkout_url},
                }
            },
        )

    @property
    def last_payload(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def paymongo_api() -> FakePayMongoAPI:
    return FakePayMongoAPI()


@pytest.fixture
def paymongo_service(paymongo_api: FakePayMongoAPI) -> Any:
    """PayMongoService wired to the fake API."""
    from prebooking.config import get_payment_settings
    from prebooking.services.paymongo_service import PayMongoService

    return PayMongoService(
        settings=get_payment_settings(),
        transport=httpx.MockTransport(paymongo_api.handler),
    )


# === Webhook Fixtures ===


def _sign(payload: bytes, secret: str = TEST_WEBHOOK_SECRET) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


@pytest.fixture
def sign_payload() -> Callable[..., str]:
    """HMAC-SHA256 hex signature of a raw body."""
    return _sign


@pytest.fixture
def make_event() -> Callable[..., dict[str, Any]]:
    """Factory for PayMongo webhook envelopes.

    Produces the current provider shape:
    ``{"data": {"id": evt, "attributes": {"type": ..., "data": session}}}``
    with booking metadata under ``session.attributes.metadata``.
    """

    def _make(
        event_type: str = "checkout_session.payment.paid",
        event_id: str = "evt_test_paid_001",
        owner_id: str | None = TEST_OWNER_ID,
        booking_id: str | None = TEST_BOOKING_ID,
        session_id: str = TEST_SESSION_ID,
        **attributes: Any,
    ) -> dict[str, Any]:
        metadata: dict[str, Any] = {}
        if booking_id is not None:
            metadata["bookingId"] = booking_id
        if owner_id is not None:
            metadata["userId"] = owner_id
        session_attributes: dict[str, Any] = {"metadata": metadata}
        session_attributes.update(attributes)
        return {
            "data": {
                "id": event_id,
                "type": "event",
                "attributes": {
                    "type": event_type,
                    "livemode": False,
                    "data": {
                        "id": session_id,
                        "type": "checkout_session",
                        "attributes": session_attributes,
                    },
                },
            }
        }

    return _make


# === API Fixtures ===


@pytest.fixture
def client(dynamodb_tables: Any, paymongo_service: Any) -> Generator[Any, None, None]:
    """TestClient with DynamoDB mocked and PayMongo faked.

    Unexpected exceptions are returned as 500 responses rather than raised.
    """
    from fastapi.testclient import TestClient

    from prebooking.config import get_payment_settings
    from prebooking.services.checkout_session import CheckoutSessionBuilder
    from prebooking_api.dependencies import get_booking_store, get_checkout_session_builder
    from prebooking_api.main import app

    app.dependency_overrides[get_checkout_session_builder] = lambda: CheckoutSessionBuilder(
        store=get_booking_store(),
        paymongo=paymongo_service,
        settings=get_payment_settings(),
    )
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
