"""Payment gateway port (abstract interface).

Defines the contract that payment gateway adapters implement, so that
``FakeGateway`` (dev/test) and ``PayPalGateway`` (production) can be swapped
without changing any domain or HTTP code. Every operation is a single
attempt: failures surface as ``GatewayError`` and are never retried here.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RemoteOrder:
    """A checkout session created at the gateway, awaiting buyer approval."""

    remote_order_id: str
    approval_url: str | None = None
    status: str | None = None


@dataclass(frozen=True)
class CaptureResult:
    """Result of capturing an approved remote order."""

    capture_id: str | None
    capture_status: str
    captured_amount: float | None = None
    currency: str | None = None


@dataclass(frozen=True)
class RemoteOrderDetails:
    remote_order_id: str
    status: str | None
    raw: dict = field(default_factory=dict)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    async def create_remote_order(
        self,
        local_order_id: str,
        amount: float,
        currency: str,
        description: str,
    ) -> RemoteOrder:
        """Create a remote order the buyer can approve. Does not move money."""
        ...

    @abstractmethod
    async def capture_payment(self, remote_order_id: str) -> CaptureResult:
        """Capture an approved remote order."""
        ...

    @abstractmethod
    async def get_order_details(self, remote_order_id: str) -> RemoteOrderDetails:
        """Fetch the gateway's view of a remote order. Read-only."""
        ...

    @abstractmethod
    async def verify_inbound_authenticity(
        self,
        headers: Mapping[str, str],
        raw_body: bytes,
        expected_webhook_id: str,
    ) -> bool:
        """Verify that a webhook delivery really comes from the gateway."""
        ...
