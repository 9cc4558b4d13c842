"""Configurable fake payment gateway for development and testing.

Simulates PayPal without any network calls. It can be configured at runtime
to fail or to report a particular capture status, which makes it useful for
local development without sandbox credentials and for predictable tests.
"""

from collections.abc import Mapping
from uuid import uuid4

from storefront.errors import GatewayError
from storefront.gateway.port import CaptureResult, PaymentGateway, RemoteOrder, RemoteOrderDetails

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.capture_status: str = "COMPLETED"
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []
        self.orders: dict[str, dict] = {}

    def configure(
        self,
        should_succeed: bool = True,
        capture_status: str = "COMPLETED",
        failure_reason: str = "Gateway unavailable",
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.capture_status = capture_status
        self.failure_reason = failure_reason

    def _fail_if_configured(self) -> None:
        if not self.should_succeed:
            raise GatewayError(self.failure_reason, upstream_status=500)

    async def create_remote_order(
        self,
        local_order_id: str,
        amount: float,
        currency: str,
        description: str,
    ) -> RemoteOrder:
        self.calls.append(
            {
                "method": "create_remote_order",
                "local_order_id": local_order_id,
                "amount": amount,
                "currency": currency,
                "description": description,
            }
        )
        self._fail_if_configured()

        remote_order_id = f"FAKE-{uuid4().hex[:16].upper()}"
        self.orders[remote_order_id] = {
            "id": remote_order_id,
            "status": "CREATED",
            "reference_id": local_order_id,
            "amount": amount,
            "currency": currency,
        }
        return RemoteOrder(
            remote_order_id=remote_order_id,
            approval_url=f"https://www.sandbox.paypal.com/checkoutnow?token={remote_order_id}",
            status="CREATED",
        )

    async def capture_payment(self, remote_order_id: str) -> CaptureResult:
        self.calls.append({"method": "capture_payment", "remote_order_id": remote_order_id})
        self._fail_if_configured()

        order = self.orders.setdefault(remote_order_id, {"id": remote_order_id})
        order["status"] = self.capture_status
        return CaptureResult(
            capture_id=f"FAKECAP-{uuid4().hex[:12].upper()}",
            capture_status=self.capture_status,
            captured_amount=order.get("amount"),
            currency=order.get("currency"),
        )

    async def get_order_details(self, remote_order_id: str) -> RemoteOrderDetails:
        self.calls.append({"method": "get_order_details", "remote_order_id": remote_order_id})
        self._fail_if_configured()

        order = self.orders.get(remote_order_id)
        if order is None:
            raise GatewayError(f"Remote order {remote_order_id} not found", upstream_status=404)
        return RemoteOrderDetails(remote_order_id=remote_order_id, status=order.get("status"), raw=dict(order))

    async def verify_inbound_authenticity(
        self,
        headers: Mapping[str, str],
        raw_body: bytes,  # noqa: ARG002
        expected_webhook_id: str,  # noqa: ARG002
    ) -> bool:
        lowered = {k.lower(): v for k, v in headers.items()}
        return lowered.get("paypal-transmission-sig") == TEST_SIGNATURE
