"""Payment gateway factory.

``build_gateway(settings)`` picks the implementation once, at application
start:
- PayPalGateway when PayPal credentials are configured
- FakeGateway for development and testing when they are not. Its webhook
  check accepts a constant signature, so production and staging refuse it.
"""

import structlog

from storefront.config import Settings
from storefront.gateway.fake_adapter import FakeGateway
from storefront.gateway.paypal_adapter import PayPalGateway
from storefront.gateway.port import PaymentGateway

logger = structlog.get_logger(__name__)


def build_gateway(settings: Settings) -> PaymentGateway:
    """Return the payment gateway the application should use."""
    if settings.paypal.has_credentials:
        return PayPalGateway(settings.paypal)

    if settings.is_deployed:
        raise RuntimeError(f"PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET must be set in {settings.environment}")

    logger.warning("paypal_credentials_missing_using_fake_gateway", environment=settings.environment)
    return FakeGateway()


__all__ = ["FakeGateway", "PayPalGateway", "PaymentGateway", "build_gateway"]
