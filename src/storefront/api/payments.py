"""PayPal checkout endpoints and the PayPal webhook."""

import structlog
from fastapi import APIRouter, Depends, Request
from protean.utils.globals import current_domain

from storefront.api.deps import actor_for, current_user, get_gateway, get_settings, require_admin
from storefront.api.schemas import (
    CapturePaymentRequest,
    CapturePaymentResponse,
    CreatePaymentOrderRequest,
    CreatePaymentOrderResponse,
    RemoteOrderResponse,
    WebhookResponse,
)
from storefront.config import Settings
from storefront.errors import NotFound
from storefront.gateway.port import PaymentGateway
from storefront.order.order import Order
from storefront.order.payment import OpenPaymentSession, RecordPaymentCapture
from storefront.order.state_machine import OrderStatus
from storefront.product.product import Product
from storefront.user.user import User
from storefront.webhook.ingestor import WebhookIngestor

logger = structlog.get_logger(__name__)

payment_router = APIRouter(prefix="/payments/paypal", tags=["payments"])


def _description(order: Order) -> str:
    product = current_domain.repository_for(Product).get(order.product_id)
    if order.variant_id:
        variant = next((v for v in product.variants if str(v.id) == str(order.variant_id)), None)
        if variant is not None:
            return f"{product.name} - {variant.name}"
    return product.name


@payment_router.post("/create-order", response_model=CreatePaymentOrderResponse)
async def create_payment_order(
    body: CreatePaymentOrderRequest,
    user: User = Depends(current_user),
    gateway: PaymentGateway = Depends(get_gateway),
) -> CreatePaymentOrderResponse:
    """Open a PayPal checkout for a pending order the caller owns."""
    actor = actor_for(user)
    order = current_domain.repository_for(Order).get(body.order_id)
    order.ensure_checkout_allowed(actor)

    remote = await gateway.create_remote_order(
        local_order_id=str(order.id),
        amount=order.amount,
        currency=order.currency,
        description=_description(order),
    )

    current_domain.process(
        OpenPaymentSession(
            order_id=body.order_id,
            external_payment_order_id=remote.remote_order_id,
            actor_id=actor.user_id,
            actor_role=actor.role.value,
        ),
        asynchronous=False,
    )
    return CreatePaymentOrderResponse(remote_order_id=remote.remote_order_id, approval_url=remote.approval_url)


@payment_router.post("/capture", response_model=CapturePaymentResponse)
async def capture_payment(
    body: CapturePaymentRequest,
    user: User = Depends(current_user),
    gateway: PaymentGateway = Depends(get_gateway),
) -> CapturePaymentResponse:
    """Capture an approved PayPal order and record the outcome on the local order."""
    order = current_domain.repository_for(Order).find_by_external_payment_id(body.remote_order_id)
    if order is None:
        raise NotFound(f"No order for payment order {body.remote_order_id}", field="remote_order_id")

    order.ensure_capture_allowed(actor_for(user))
    if order.status == OrderStatus.PAID.value:
        return CapturePaymentResponse(
            order_id=str(order.id),
            order_status=order.status,
            capture_status="COMPLETED",
            already_captured=True,
        )

    capture = await gateway.capture_payment(body.remote_order_id)
    outcome = current_domain.process(
        RecordPaymentCapture(
            external_payment_order_id=body.remote_order_id,
            capture_status=capture.capture_status,
            capture_id=capture.capture_id,
        ),
        asynchronous=False,
    )
    return CapturePaymentResponse(
        order_id=outcome.order_id,
        order_status=outcome.status,
        capture_status=capture.capture_status,
        capture_id=capture.capture_id,
    )


@payment_router.get("/orders/{remote_order_id}", response_model=RemoteOrderResponse)
async def remote_order_details(
    remote_order_id: str,
    _admin: User = Depends(require_admin),
    gateway: PaymentGateway = Depends(get_gateway),
) -> RemoteOrderResponse:
    """PayPal's view of a remote order. Diagnostic, read-only."""
    details = await gateway.get_order_details(remote_order_id)
    return RemoteOrderResponse(remote_order_id=details.remote_order_id, status=details.status, details=details.raw)


@payment_router.post("/webhook", response_model=WebhookResponse)
async def paypal_webhook(
    request: Request,
    gateway: PaymentGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> WebhookResponse:
    """Receive a PayPal webhook. Only a failed signature check is answered with non-2xx."""
    raw_body = await request.body()
    ingestor = WebhookIngestor(gateway, settings.paypal.webhook_id)
    outcome = await ingestor.ingest(dict(request.headers), raw_body)
    return WebhookResponse(event_type=outcome.event_type, action=outcome.action, order_id=outcome.order_id)
