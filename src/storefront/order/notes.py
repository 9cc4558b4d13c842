"""Admin notes: command and handler."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.order.state_machine import Actor, ActorRole


@storefront.command(part_of="Order")
class UpdateOrderNotes:
    """Replace the customer-visible status note on an order. Empty clears it."""

    order_id = Identifier(required=True)
    notes = Text()
    actor_id = Identifier()
    actor_role = String(choices=ActorRole, default=ActorRole.ADMIN.value)


@storefront.command_handler(part_of=Order)
class OrderNotesHandler:
    @handle(UpdateOrderNotes)
    def update_order_notes(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_notes(Actor.of(command.actor_role, command.actor_id), command.notes)
        repo.add(order)
