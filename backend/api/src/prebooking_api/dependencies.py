"""FastAPI dependency injection providers for the payment core.

Services are lazily instantiated and cached with @lru_cache so one Lambda
container reuses its clients across invocations.

Service Dependency Graph:
    PaymentSettings (cached via get_payment_settings)
    DynamoDBService (singleton via get_dynamodb_service)
        ├── BookingStore
        │       ├── PaymentStatusService
        │       ├── CheckoutSessionBuilder (+ PayMongoService)
        │       └── StatusReconciler (+ WebhookEventLog)
        └── WebhookEventLog
    SignatureVerifier (mode fixed from settings at first use)

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from prebooking.config import get_payment_settings, reset_payment_settings
from prebooking.services.booking_store import BookingStore
from prebooking.services.checkout_session import CheckoutSessionBuilder
from prebooking.services.dynamodb import get_dynamodb_service, reset_dynamodb_service
from prebooking.services.payment_status import PaymentStatusService
from prebooking.services.paymongo_service import get_paymongo_service
from prebooking.services.reconciler import StatusReconciler
from prebooking.services.signature import SignatureVerifier
from prebooking.services.webhook_events import WebhookEventLog


@lru_cache
def get_booking_store() -> BookingStore:
    """Get cached BookingStore configured with the DynamoDB singleton."""
    return BookingStore(db=get_dynamodb_service())


@lru_cache
def get_webhook_event_log() -> WebhookEventLog:
    """Get cached WebhookEventLog configured with the DynamoDB singleton."""
    return WebhookEventLog(db=get_dynamodb_service())


@lru_cache
def get_checkout_session_builder() -> CheckoutSessionBuilder:
    """Get cached CheckoutSessionBuilder.

    Returns:
        CheckoutSessionBuilder wired to the store, PayMongo and settings.
    """
    return CheckoutSessionBuilder(
        store=get_booking_store(),
        paymongo=get_paymongo_service(),
        settings=get_payment_settings(),
    )


@lru_cache
def get_status_reconciler() -> StatusReconciler:
    """Get cached StatusReconciler."""
    return StatusReconciler(store=get_booking_store(), events=get_webhook_event_log())


@lru_cache
def get_payment_status_service() -> PaymentStatusService:
    """Get cached PaymentStatusService."""
    return PaymentStatusService(store=get_booking_store())


@lru_cache
def get_signature_verifier() -> SignatureVerifier:
    """Get cached SignatureVerifier.

    The verification mode is decided here, once, from the configured
    webhook secret.
    """
    return SignatureVerifier.from_settings(get_payment_settings())


def reset_services() -> None:
    """Clear all cached service instances.

    Call this in test fixtures to ensure clean state between tests.
    Also resets settings, the PayMongo client and the DynamoDB singleton.
    """
    get_booking_store.cache_clear()
    get_webhook_event_log.cache_clear()
    get_checkout_session_builder.cache_clear()
    get_status_reconciler.cache_clear()
    get_payment_status_service.cache_clear()
    get_signature_verifier.cache_clear()
    get_paymongo_service.cache_clear()

    reset_payment_settings()
    reset_dynamodb_service()
