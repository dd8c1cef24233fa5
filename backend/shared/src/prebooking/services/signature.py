"""Webhook signature verification.

PayMongo signs each delivery with HMAC-SHA256 over the raw request
body. The verification mode is fixed when the verifier is built: with
no webhook secret configured every delivery is accepted, which is only
meant for local development and is logged loudly.
"""

import hashlib
import hmac
from typing import TYPE_CHECKING

from prebooking.models import VerificationMode
from prebooking.utils.logging import get_logger

if TYPE_CHECKING:
    from prebooking.config import PaymentSettings

logger = get_logger(__name__)


class SignatureVerifier:
    """Checks that a webhook body was signed with the shared secret."""

    def __init__(self, mode: VerificationMode, secret: str | None = None) -> None:
        """Initialize the verifier.

        Args:
            mode: Whether signatures are enforced
            secret: Shared webhook secret, required when enforced

        Raises:
            ValueError: If enforced without a secret
        """
        if mode is VerificationMode.ENFORCED and not secret:
            raise ValueError("An enforced verifier requires a webhook secret")
        self.mode = mode
        self._secret = secret.encode("utf-8") if secret else None

        if mode is VerificationMode.DISABLED:
            logger.warning(
                "Webhook signature verification is DISABLED; "
                "all deliveries will be accepted unauthenticated"
            )

    @classmethod
    def enforced(cls, secret: str) -> "SignatureVerifier":
        return cls(VerificationMode.ENFORCED, secret)

    @classmethod
    def disabled(cls) -> "SignatureVerifier":
        return cls(VerificationMode.DISABLED)

    @classmethod
    def from_settings(cls, settings: "PaymentSettings") -> "SignatureVerifier":
        """Build a verifier whose mode follows the configured webhook secret."""
        if settings.webhook_secret:
            return cls.enforced(settings.webhook_secret)
        return cls.disabled()

    @property
    def is_enforced(self) -> bool:
        return self.mode is VerificationMode.ENFORCED

    def expected_signature(self, raw_body: bytes) -> str:
        """Hex HMAC-SHA256 of the raw body under the shared secret.

        Raises:
            RuntimeError: If the verifier has no secret
        """
        if self._secret is None:
            raise RuntimeError("Signature verification is disabled")
        return hmac.new(self._secret, raw_body, hashlib.sha256).hexdigest()

    def verify(self, raw_body: bytes, signature_header: str | None) -> bool:
        """Verify a webhook delivery.

        The digest is computed over the bytes exactly as received; the
        body must not be parsed and re-serialized first.

        Args:
            raw_body: Unparsed request body
            signature_header: Value of the signature header, if any

        Returns:
            True if the delivery is authentic (or verification is disabled)
        """
        if not self.is_enforced:
            logger.warning("Accepting webhook without signature verification")
            return True

        if not signature_header or not signature_header.strip():
            logger.warning("Webhook rejected: missing signature header")
            return False

        expected = self.expected_signature(raw_body)
        provided = signature_header.strip().lower()
        # Non-ASCII header values must compare unequal, not raise
        if not hmac.compare_digest(
            expected.encode("ascii"), provided.encode("utf-8", "replace")
        ):
            logger.warning("Webhook rejected: signature mismatch")
            return False
        return True
