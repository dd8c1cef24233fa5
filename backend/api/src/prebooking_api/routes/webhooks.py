"""Webhook endpoint for PayMongo checkout-session events.

These endpoints do NOT require authentication as they receive signed
payloads from PayMongo. Once the signature passes and the event is
dispatched, the response is always 200 so the provider does not retry
an event that can never succeed; the processing result is reported in
the body and in the webhook-events ledger.
"""

import json

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from prebooking.models import (
    AuthError,
    BookingError,
    ErrorCode,
    ProcessingResult,
    ToolError,
    ValidationError,
    WebhookEvent,
)
from prebooking.services.reconciler import StatusReconciler
from prebooking.services.signature import SignatureVerifier
from prebooking.services.webhook_events import WebhookEventLog
from prebooking.utils.logging import get_logger, log_webhook_event
from prebooking_api.dependencies import get_signature_verifier, get_status_reconciler
from prebooking_api.models.payments import WebhookResponse

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])

SIGNATURE_HEADERS = ("X-Signature", "Paymongo-Signature")


def _signature_header(request: Request) -> str | None:
    for name in SIGNATURE_HEADERS:
        value = request.headers.get(name)
        if value:
            return value
    return None


@router.post(
    "/webhook/payment",
    summary="Receive PayMongo webhook events",
    description="""
Endpoint for PayMongo webhook events. Handles:
- checkout_session.payment.paid: marks the booking paid (absorbing)
- checkout_session.payment.failed: records the failure reason
- checkout_session.expired: marks the session expired

Other event types are acknowledged and skipped.

**No authentication required** - the `X-Signature` header carries an
HMAC-SHA256 of the raw body under the webhook secret.

**Idempotent**: redelivered events (same event id) return 200 with the
`duplicate` result.
""",
    response_model=WebhookResponse,
    responses={
        400: {"description": "Missing signature or unparseable body", "model": ToolError},
        401: {"description": "Signature mismatch", "model": ToolError},
    },
)
async def handle_payment_webhook(
    request: Request,
    verifier: SignatureVerifier = Depends(get_signature_verifier),
    reconciler: StatusReconciler = Depends(get_status_reconciler),
) -> WebhookResponse:
    """Verify, normalize and apply a PayMongo webhook event."""
    payload = await request.body()
    signature = _signature_header(request)

    if verifier.is_enforced and not signature:
        raise AuthError(ErrorCode.MISSING_SIGNATURE)
    if not verifier.verify(payload, signature):
        raise AuthError(ErrorCode.INVALID_SIGNATURE)

    try:
        event = WebhookEvent.from_payload(json.loads(payload))
    except ValueError as e:
        logger.warning("Webhook body could not be parsed: %s", e)
        raise ValidationError(ErrorCode.INVALID_PAYLOAD) from e

    log_webhook_event(logger, event.type, event.id, result="received")

    payload_hash = WebhookEventLog.compute_payload_hash(payload)
    try:
        outcome = await run_in_threadpool(reconciler.apply, event, payload_hash)
    except BookingError as e:
        return WebhookResponse(
            event_id=event.id,
            event_type=event.type,
            processing_result=ProcessingResult.ERROR.value,
            message=e.message,
        )

    return WebhookResponse(
        event_id=event.id,
        event_type=event.type,
        processing_result=outcome.result.value,
        message=outcome.message,
    )
