"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured logging formatter for consistent log output
- Helper functions for payment and webhook logging

Usage:
    from prebooking.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    logger.info("Creating checkout", extra={"booking_id": "b1"})
"""

import logging
import os
import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for correlation ID - thread-safe and async-safe
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def generate_correlation_id() -> str:
    """Generate a new UUID-based correlation ID."""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current request context.

    Args:
        correlation_id: Optional existing correlation ID. If None, generates new one.

    Returns:
        The correlation ID that was set
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    """Get the current correlation ID, or None if not set."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID context."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter for structured log output with correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"

        base = super().format(record)

        # Correlation ID prefix for easy grep/filtering
        return f"[{record.correlation_id}] {base}"


def configure_logging(level: str | None = None) -> None:
    """Install the structured formatter on the root logger.

    Args:
        level: Log level name. Defaults to LOG_LEVEL env var, then INFO.
    """
    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    root = logging.getLogger()
    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    for handler in root.handlers:
        handler.setFormatter(StructuredFormatter(LOG_FORMAT))
    root.setLevel(level_name)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with correlation ID support.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def log_payment_operation(
    logger: logging.Logger,
    operation: str,
    *,
    booking_id: str | None = None,
    owner_id: str | None = None,
    session_id: str | None = None,
    amount: int | None = None,
    status: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a payment operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "create_checkout_session")
        booking_id: Booking ID if available
        owner_id: Owning user ID if available
        session_id: Checkout session ID if available
        amount: Amount in minor units if relevant
        status: Booking/payment status
        error: Error message if operation failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"operation": operation}

    if booking_id:
        context["booking_id"] = booking_id
    if owner_id:
        context["owner_id"] = owner_id
    if session_id:
        context["session_id"] = session_id
    if amount is not None:
        context["amount"] = amount
    if status:
        context["status"] = status
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Payment operation: {operation}"]
    for key, value in context.items():
        if key != "operation":
            msg_parts.append(f"{key}={value}")

    message = " | ".join(msg_parts)

    if error:
        logger.error(message, extra=context)
    else:
        logger.info(message, extra=context)


def log_webhook_event(
    logger: logging.Logger,
    event_type: str | None,
    event_id: str | None,
    *,
    booking_id: str | None = None,
    owner_id: str | None = None,
    result: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a webhook event with structured context.

    Args:
        logger: Logger instance
        event_type: PayMongo event type (e.g., "checkout_session.payment.paid")
        event_id: PayMongo event ID
        booking_id: Associated booking ID if available
        owner_id: Associated owner ID if available
        result: Processing result (applied, duplicate, skipped, error)
        error: Error message if processing failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {
        "event_type": event_type or "unknown",
        "event_id": event_id or "unknown",
    }

    if booking_id:
        context["booking_id"] = booking_id
    if owner_id:
        context["owner_id"] = owner_id
    if result:
        context["result"] = result
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Webhook event: {context['event_type']} ({context['event_id']})"]
    if result:
        msg_parts.append(f"result={result}")
    if booking_id:
        msg_parts.append(f"booking={owner_id}/{booking_id}")
    if error:
        msg_parts.append(f"error={error}")

    message = " | ".join(msg_parts)

    if result == "error":
        logger.error(message, extra=context)
    elif result in ("duplicate", "skipped"):
        logger.warning(message, extra=context)
    else:
        logger.info(message, extra=context)
