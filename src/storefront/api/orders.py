"""Customer order endpoints."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.api.deps import actor_for, current_user
from storefront.api.presenters import order_response
from storefront.api.schemas import (
    CancelOrderResponse,
    OrderResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
    RefundRequest,
    RefundResponse,
)
from storefront.order.cancellation import CancelOrder
from storefront.order.order import Order
from storefront.order.placement import PlaceOrder
from storefront.order.refund import ApplyForRefund, WithdrawRefundRequest
from storefront.user.user import User

order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=PlaceOrderResponse)
async def place_order(body: PlaceOrderRequest, user: User = Depends(current_user)) -> PlaceOrderResponse:
    """Create a pending order priced from the catalog as it is right now."""
    command = PlaceOrder(user_id=user.id, product_id=body.product_id, variant_id=body.variant_id)
    order_id = current_domain.process(command, asynchronous=False)

    order = current_domain.repository_for(Order).get(order_id)
    return PlaceOrderResponse(order_id=order_id, amount=order.amount, currency=order.currency, status=order.status)


@order_router.get("", response_model=list[OrderResponse])
async def my_orders(user: User = Depends(current_user)) -> list[OrderResponse]:
    """The caller's orders, newest first."""
    orders = current_domain.repository_for(Order).for_user(user.id)
    return [order_response(o) for o in orders]


@order_router.post("/{order_id}/cancel", response_model=CancelOrderResponse)
async def cancel_order(order_id: str, user: User = Depends(current_user)) -> CancelOrderResponse:
    actor = actor_for(user)
    command = CancelOrder(order_id=order_id, actor_id=actor.user_id, actor_role=actor.role.value)
    status = current_domain.process(command, asynchronous=False)
    return CancelOrderResponse(status=status)


@order_router.post("/{order_id}/refund", response_model=RefundResponse)
async def refund(order_id: str, body: RefundRequest, user: User = Depends(current_user)) -> RefundResponse:
    """Apply for a refund on a paid order, or withdraw a pending request."""
    actor = actor_for(user)
    if body.action == "apply":
        command = ApplyForRefund(
            order_id=order_id,
            refund_request_info=body.refund_request_info,
            actor_id=actor.user_id,
            actor_role=actor.role.value,
        )
    else:
        command = WithdrawRefundRequest(order_id=order_id, actor_id=actor.user_id, actor_role=actor.role.value)

    refund_status = current_domain.process(command, asynchronous=False)
    return RefundResponse(refund_status=refund_status)
