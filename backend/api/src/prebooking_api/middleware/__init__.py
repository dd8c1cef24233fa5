"""HTTP middleware for the payments API."""

from prebooking_api.middleware.correlation import CORRELATION_ID_HEADER, CorrelationIdMiddleware

__all__ = ["CORRELATION_ID_HEADER", "CorrelationIdMiddleware"]
