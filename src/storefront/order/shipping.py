"""Admin shipping updates: command and handler."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.order.state_machine import Actor, ActorRole


@storefront.command(part_of="Order")
class SetShippingStatus:
    order_id = Identifier(required=True)
    shipping_status = String(required=True, max_length=20)
    shipping_info = Text()
    actor_id = Identifier()
    actor_role = String(choices=ActorRole, default=ActorRole.ADMIN.value)


@storefront.command_handler(part_of=Order)
class ShippingHandler:
    @handle(SetShippingStatus)
    def set_shipping_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.set_shipping(
            Actor.of(command.actor_role, command.actor_id),
            shipping_status=command.shipping_status,
            shipping_info=command.shipping_info,
        )
        repo.add(order)
        return order.shipping_status
