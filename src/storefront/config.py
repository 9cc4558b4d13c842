"""Explicit runtime configuration for the storefront.

Settings are read from the environment once, at application start, and then
passed into the components that need them. Nothing else in the package calls
``os.getenv`` for PayPal or identity settings.
"""

import os
from dataclasses import dataclass, field

PAYPAL_SANDBOX_URL = "https://api-m.sandbox.paypal.com"
PAYPAL_LIVE_URL = "https://api-m.paypal.com"


def _split(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class PayPalConfig:
    """Credentials and URLs for the PayPal REST API."""

    client_id: str = ""
    client_secret: str = ""
    base_url: str = PAYPAL_SANDBOX_URL
    webhook_id: str = ""
    return_url: str = "http://localhost:3000/checkout/success"
    cancel_url: str = "http://localhost:3000/checkout/cancel"
    brand_name: str = "Storefront"
    timeout_seconds: float = 15.0

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @classmethod
    def from_env(cls) -> "PayPalConfig":
        mode = os.getenv("PAYPAL_MODE", "sandbox").lower()
        default_url = PAYPAL_LIVE_URL if mode == "live" else PAYPAL_SANDBOX_URL
        return cls(
            client_id=os.getenv("PAYPAL_CLIENT_ID", ""),
            client_secret=os.getenv("PAYPAL_CLIENT_SECRET", ""),
            base_url=os.getenv("PAYPAL_BASE_URL", default_url).rstrip("/"),
            webhook_id=os.getenv("PAYPAL_WEBHOOK_ID", ""),
            return_url=os.getenv("PAYPAL_RETURN_URL", cls.return_url),
            cancel_url=os.getenv("PAYPAL_CANCEL_URL", cls.cancel_url),
            brand_name=os.getenv("PAYPAL_BRAND_NAME", cls.brand_name),
            timeout_seconds=float(os.getenv("PAYPAL_TIMEOUT", "15.0")),
        )


@dataclass(frozen=True)
class IdentityConfig:
    """How bearer tokens issued by the identity provider are verified."""

    key: str = ""
    algorithms: tuple[str, ...] = ("HS256",)
    audience: str | None = None
    issuer: str | None = None

    @classmethod
    def from_env(cls) -> "IdentityConfig":
        return cls(
            key=os.getenv("IDENTITY_JWT_KEY", ""),
            algorithms=_split(os.getenv("IDENTITY_JWT_ALGORITHMS", "HS256")),
            audience=os.getenv("IDENTITY_JWT_AUDIENCE") or None,
            issuer=os.getenv("IDENTITY_JWT_ISSUER") or None,
        )


@dataclass(frozen=True)
class Settings:
    """Top-level settings passed to ``create_app``."""

    environment: str = "development"
    default_currency: str = "USD"
    cors_origins: tuple[str, ...] = ("*",)
    paypal: PayPalConfig = field(default_factory=PayPalConfig)
    identity: IdentityConfig = field(default_factory=IdentityConfig)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_deployed(self) -> bool:
        """Reachable by real buyers or by PayPal, so test doubles are refused."""
        return self.environment in ("production", "staging")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            environment=(os.getenv("PROTEAN_ENV") or os.getenv("ENVIRONMENT") or "development").lower(),
            default_currency=os.getenv("DEFAULT_CURRENCY", "USD").upper(),
            cors_origins=_split(os.getenv("CORS_ORIGINS", "*")),
            paypal=PayPalConfig.from_env(),
            identity=IdentityConfig.from_env(),
        )
