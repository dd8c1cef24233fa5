"""Environment-driven configuration for checkout and webhook handling.

Secrets come from environment variables by default. With
SECRETS_SOURCE=ssm they are read from SSM Parameter Store under
/bgo/{environment}/paymongo/.
"""

import logging
import os
from functools import lru_cache

from pydantic import BaseModel, Field

from .models.enums import VerificationMode
from .services.ssm_service import SSMParameterNotFound, get_ssm_service

logger = logging.getLogger(__name__)

DEFAULT_REDIRECT_BASE_URL = "http://localhost:5173"
DEFAULT_PAYMONGO_API_BASE = "https://api.paymongo.com/v1"


class PaymentSettings(BaseModel):
    """Resolved configuration for the payment core."""

    environment: str = "dev"
    paymongo_secret_key: str | None = Field(default=None, repr=False)
    webhook_secret: str | None = Field(default=None, repr=False)
    redirect_base_url: str = DEFAULT_REDIRECT_BASE_URL
    paymongo_api_base: str = DEFAULT_PAYMONGO_API_BASE
    provider_timeout_seconds: float = Field(default=10.0, gt=0)
    default_currency: str = "PHP"

    @property
    def verification_mode(self) -> VerificationMode:
        if self.webhook_secret:
            return VerificationMode.ENFORCED
        return VerificationMode.DISABLED


def _normalize_base_url(value: str) -> str:
    value = value.strip().rstrip("/")
    if "://" not in value:
        # VERCEL_URL is a bare host name
        value = f"https://{value}"
    return value


def _secret_from_ssm(environment: str, name: str) -> str | None:
    path = f"/bgo/{environment}/paymongo/{name}"
    try:
        return get_ssm_service().get_parameter(path)
    except SSMParameterNotFound:
        logger.warning("SSM parameter %s not found", path)
        return None


def load_payment_settings() -> PaymentSettings:
    """Build settings from the current environment.

    Returns:
        PaymentSettings with secrets resolved from env or SSM

    Raises:
        SSMServiceError: If SSM is the secrets source and is unreachable
    """
    environment = os.environ.get("ENVIRONMENT", "dev")

    if os.environ.get("SECRETS_SOURCE", "env").lower() == "ssm":
        secret_key = _secret_from_ssm(environment, "secret_key")
        webhook_secret = _secret_from_ssm(environment, "webhook_secret")
    else:
        secret_key = os.environ.get("PAYMONGO_SECRET_KEY")
        webhook_secret = os.environ.get("PAYMONGO_WEBHOOK_SECRET")

    redirect_base = (
        os.environ.get("PAYMENT_REDIRECT_BASE_URL")
        or os.environ.get("VERCEL_URL")
        or DEFAULT_REDIRECT_BASE_URL
    )

    return PaymentSettings(
        environment=environment,
        paymongo_secret_key=secret_key or None,
        webhook_secret=webhook_secret or None,
        redirect_base_url=_normalize_base_url(redirect_base),
        paymongo_api_base=os.environ.get(
            "PAYMONGO_API_BASE", DEFAULT_PAYMONGO_API_BASE
        ).rstrip("/"),
        provider_timeout_seconds=float(os.environ.get("PAYMONGO_TIMEOUT_SECONDS", "10")),
        default_currency=os.environ.get("PAYMENT_DEFAULT_CURRENCY", "PHP").upper(),
    )


@lru_cache(maxsize=1)
def get_payment_settings() -> PaymentSettings:
    """Get the process-wide settings (cached)."""
    return load_payment_settings()


def reset_payment_settings() -> None:
    """Clear cached settings (for testing)."""
    get_payment_settings.cache_clear()
