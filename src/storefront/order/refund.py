"""Refund requests and decisions: commands and handler."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.order.state_machine import Actor, ActorRole


@storefront.command(part_of="Order")
class ApplyForRefund:
    """Customer asks for a refund. The text must include a way to reach them."""

    order_id = Identifier(required=True)
    refund_request_info = Text()
    actor_id = Identifier(required=True)
    actor_role = String(choices=ActorRole, default=ActorRole.CUSTOMER.value)


@storefront.command(part_of="Order")
class WithdrawRefundRequest:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(choices=ActorRole, default=ActorRole.CUSTOMER.value)


@storefront.command(part_of="Order")
class DecideRefund:
    """Admin approves or rejects a pending refund request."""

    order_id = Identifier(required=True)
    decision = String(required=True, max_length=20)
    actor_id = Identifier()
    actor_role = String(choices=ActorRole, default=ActorRole.ADMIN.value)


@storefront.command_handler(part_of=Order)
class RefundHandler:
    @handle(ApplyForRefund)
    def apply_for_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.apply_for_refund(Actor.of(command.actor_role, command.actor_id), command.refund_request_info)
        repo.add(order)
        return order.refund_status

    @handle(WithdrawRefundRequest)
    def withdraw_refund_request(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.withdraw_refund_request(Actor.of(command.actor_role, command.actor_id))
        repo.add(order)
        return order.refund_status

    @handle(DecideRefund)
    def decide_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.decide_refund(Actor.of(command.actor_role, command.actor_id), command.decision)
        repo.add(order)
        return order.refund_status
