"""Storefront domain: catalog, orders and PayPal checkout.

A single composition root. Every aggregate, command, event and repository
registers itself against ``storefront`` and is discovered by
``storefront.init()``.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
