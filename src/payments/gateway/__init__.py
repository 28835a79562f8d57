"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing
- StripeGateway for production
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway
from payments.gateway.stripe_adapter import StripeGateway
from shared.config import get_settings
from shared.exceptions import ConfigurationError

LIVE_ENVS = frozenset({"staging", "production"})

_current_gateway: PaymentGateway | None = None


def build_gateway() -> PaymentGateway:
    settings = get_settings()
    if settings.payment_gateway == "stripe":
        if not settings.stripe_secret_key:
            raise ConfigurationError("SHOPFRONT_STRIPE_SECRET_KEY is missing.")
        if not settings.stripe_webhook_secret:
            raise ConfigurationError("SHOPFRONT_STRIPE_WEBHOOK_SECRET is missing.")
        return StripeGateway(settings.stripe_secret_key, settings.stripe_webhook_secret)
    if settings.env in LIVE_ENVS:
        # The fake gateway accepts a well-known signature.
        raise ConfigurationError(f"The fake payment gateway cannot run in {settings.env}.")
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, built from settings on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
