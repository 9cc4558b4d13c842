"""Identity verification port and its JWT adapter.

The storefront never checks credentials itself. A bearer token issued by the
identity provider is handed to an ``IdentityVerifier``, which either returns
the verified subject or raises ``Unauthenticated``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import structlog
from jose import JWTError, jwt

from storefront.config import IdentityConfig
from storefront.errors import Unauthenticated

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class VerifiedIdentity:
    external_id: str
    name: str | None = None
    email: str | None = None


class IdentityVerifier(ABC):
    @abstractmethod
    def verify(self, token: str) -> VerifiedIdentity:
        """Return the identity behind ``token`` or raise ``Unauthenticated``."""
        ...


class JWTIdentityVerifier(IdentityVerifier):
    """Verify JWTs signed with a shared secret or the provider's public key."""

    def __init__(self, config: IdentityConfig) -> None:
        self.config = config

    def verify(self, token: str) -> VerifiedIdentity:
        if not token:
            raise Unauthenticated("Missing bearer token", field="authorization")
        if not self.config.key:
            raise Unauthenticated("Identity verification is not configured", field="authorization")

        options = {"verify_aud": self.config.audience is not None}
        try:
            claims = jwt.decode(
                token,
                self.config.key,
                algorithms=list(self.config.algorithms),
                audience=self.config.audience,
                issuer=self.config.issuer,
                options=options,
            )
        except JWTError as exc:
            logger.info("identity_token_rejected", error=str(exc))
            raise Unauthenticated("Could not validate credentials", field="authorization") from exc

        subject = claims.get("sub")
        if not subject:
            raise Unauthenticated("Token has no subject", field="authorization")

        return VerifiedIdentity(
            external_id=str(subject),
            name=claims.get("name"),
            email=claims.get("email"),
        )
