"""Correlation ID middleware for request tracing.

Extracts X-Correlation-ID header from incoming requests or generates a new one.
Makes correlation ID available throughout the request lifecycle via contextvars,
so webhook and checkout logs for one request share a prefix.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from prebooking.utils.logging import clear_correlation_id, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware that manages correlation IDs for request tracing."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request and add correlation ID.

        Args:
            request: Incoming request
            call_next: Next middleware/handler in chain

        Returns:
            Response with correlation ID header
        """
        incoming_id = request.headers.get(CORRELATION_ID_HEADER)
        correlation_id = set_correlation_id(incoming_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()
