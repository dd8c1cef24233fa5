"""Unit tests for webhook signature verification.

Test categories:
- Enforced mode: valid, tampered, missing and malformed signatures
- Disabled mode: every delivery accepted, loudly
- Construction from settings
"""

import hashlib
import hmac
import logging

import pytest

from prebooking.config import PaymentSettings
from prebooking.models import VerificationMode
from prebooking.services.signature import SignatureVerifier

# === Test Configuration ===

TEST_SECRET = "whsk_unit_secret"
TEST_BODY = b'{"data":{"id":"evt_1","attributes":{"type":"checkout_session.payment.paid"}}}'


def _signature(body: bytes, secret: str = TEST_SECRET) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


# === Enforced Mode ===


class TestEnforcedVerification:
    """Signature checks when a webhook secret is configured."""

    def test_valid_signature_is_accepted(self):
        verifier = SignatureVerifier.enforced(TEST_SECRET)

        assert verifier.verify(TEST_BODY, _signature(TEST_BODY)) is True

    def test_signature_comparison_ignores_case_and_whitespace(self):
        verifier = SignatureVerifier.enforced(TEST_SECRET)
        header = f"  {_signature(TEST_BODY).upper()}\n"

        assert verifier.verify(TEST_BODY, header) is True

    def test_tampered_body_with_unchanged_signature_is_rejected(self):
        verifier = SignatureVerifier.enforced(TEST_SECRET)
        signature = _signature(TEST_BODY)
        tampered = TEST_BODY.replace(b"paid", b"failed")

        assert verifier.verify(tampered, signature) is False

    def test_signature_from_other_secret_is_rejected(self):
        verifier = SignatureVerifier.enforced(TEST_SECRET)

        assert verifier.verify(TEST_BODY, _signature(TEST_BODY, "other")) is False

    @pytest.mark.parametrize("header", [None, "", "   "])
    def test_missing_signature_fails_closed(self, header):
        verifier = SignatureVerifier.enforced(TEST_SECRET)

        assert verifier.verify(TEST_BODY, header) is False

    @pytest.mark.parametrize("header", ["\u00e9" * 64, "\u00e9", "\u2603" + "0" * 63])
    def test_non_ascii_signature_is_rejected(self, header):
        verifier = SignatureVerifier.enforced(TEST_SECRET)

        assert verifier.verify(TEST_BODY, header) is False

    def test_digest_is_over_raw_bytes_not_reserialized_json(self):
        """Whitespace differences change the digest."""
        verifier = SignatureVerifier.enforced(TEST_SECRET)
        compact = b'{"a":1}'
        spaced = b'{"a": 1}'

        assert verifier.verify(spaced, _signature(compact)) is False
        assert verifier.verify(compact, _signature(compact)) is True

    def test_enforced_requires_secret(self):
        with pytest.raises(ValueError):
            SignatureVerifier(VerificationMode.ENFORCED, None)


# === Disabled Mode ===


class TestDisabledVerification:
    """Unsecured mode for local development."""

    @pytest.mark.parametrize("header", [None, "", "not-a-signature"])
    def test_any_header_is_accepted(self, header):
        verifier = SignatureVerifier.disabled()

        assert verifier.verify(TEST_BODY, header) is True
        assert verifier.is_enforced is False

    def test_disabled_mode_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="prebooking.services.signature"):
            verifier = SignatureVerifier.disabled()
            verifier.verify(TEST_BODY, None)

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) >= 2
        assert any("DISABLED" in r.getMessage() for r in warnings)

    def test_expected_signature_unavailable_when_disabled(self):
        with pytest.raises(RuntimeError):
            SignatureVerifier.disabled().expected_signature(TEST_BODY)


# === Construction ===


class TestFromSettings:
    """Mode is fixed from settings at construction."""

    def test_secret_present_enforces(self):
        settings = PaymentSettings(webhook_secret=TEST_SECRET)

        verifier = SignatureVerifier.from_settings(settings)

        assert verifier.mode is VerificationMode.ENFORCED
        assert settings.verification_mode is VerificationMode.ENFORCED

    def test_secret_absent_disables(self):
        settings = PaymentSettings(webhook_secret=None)

        verifier = SignatureVerifier.from_settings(settings)

        assert verifier.mode is VerificationMode.DISABLED
        assert settings.verification_mode is VerificationMode.DISABLED
