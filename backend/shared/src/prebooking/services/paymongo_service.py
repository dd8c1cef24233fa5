"""PayMongo client for checkout session creation.

Talks to the PayMongo REST API over httpx with HTTP basic auth
(secret key as the username, empty password) and a bounded timeout.
Timeouts are not retried here; retry policy belongs to the caller.
"""

from functools import lru_cache
from typing import Any

import httpx

from prebooking.config import PaymentSettings, get_payment_settings
from prebooking.models import CheckoutSession
from prebooking.utils.logging import get_logger

logger = get_logger(__name__)


class PayMongoServiceError(Exception):
    """Raised when a PayMongo operation fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        """Initialize with message and optional HTTP response details.

        Args:
            message: Human-readable error message.
            status_code: HTTP status returned by PayMongo, if any.
            response_body: Raw response body for diagnostics.
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class PayMongoService:
    """Service for PayMongo checkout operations.

    Usage:
        paymongo = get_paymongo_service()
        session = paymongo.create_checkout_session(payload)
        redirect(session.checkout_url)
    """

    def __init__(
        self,
        settings: PaymentSettings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the PayMongo service.

        Args:
            settings: Payment settings. Defaults to the process-wide settings.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self._settings = settings or get_payment_settings()
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client (lazy initialization).

        Raises:
            PayMongoServiceError: If no secret key is configured.
        """
        if self._client is None:
            secret_key = self._settings.paymongo_secret_key
            if not secret_key:
                raise PayMongoServiceError("PayMongo secret key is not configured")
            self._client = httpx.Client(
                base_url=self._settings.paymongo_api_base,
                auth=(secret_key, ""),
                timeout=self._settings.provider_timeout_seconds,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
            logger.info(
                "PayMongo client initialized for environment: %s",
                self._settings.environment,
            )
        return self._client

    def create_checkout_session(self, payload: dict[str, Any]) -> CheckoutSession:
        """Create a PayMongo checkout session.

        Args:
            payload: Request body in PayMongo's ``{"data": {"attributes": ...}}`` form

        Returns:
            CheckoutSession with the provider session id and hosted URL

        Raises:
            PayMongoServiceError: If the call fails, times out, or returns non-2xx
        """
        client = self._get_client()

        try:
            response = client.post("/checkout_sessions", json=payload)
        except httpx.TimeoutException as e:
            logger.error("PayMongo checkout request timed out: %s", e)
            raise PayMongoServiceError("PayMongo request timed out") from e
        except httpx.HTTPError as e:
            logger.error("PayMongo checkout request failed: %s", e)
            raise PayMongoServiceError(f"PayMongo request failed: {e}") from e

        if not response.is_success:
            logger.error(
                "PayMongo API error: %s - %s",
                response.status_code,
                response.text[:500],
            )
            raise PayMongoServiceError(
                f"PayMongo API error: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            data = response.json()["data"]
            session = CheckoutSession(
                session_id=data["id"],
                checkout_url=data["attributes"]["checkout_url"],
            )
        except (ValueError, KeyError, TypeError) as e:
            raise PayMongoServiceError(
                "Invalid response from PayMongo API",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

        logger.info("Checkout session created: %s", session.session_id)
        return session

    def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None


@lru_cache(maxsize=1)
def get_paymongo_service() -> PayMongoService:
    """Get the shared PayMongoService instance."""
    return PayMongoService()
