"""Order placement: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import NotFound
from storefront.order.order import Order
from storefront.product.product import Product

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    """A customer's intent to buy a product, optionally a specific variant."""

    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        product = current_domain.repository_for(Product).get(command.product_id)
        if not product.is_active:
            raise NotFound(f"Product {command.product_id} is not available", field="product_id")

        # Price is snapshotted now and never recomputed from the catalog
        if command.variant_id:
            price = product.find_variant(command.variant_id).price
        else:
            price = product.price

        order = Order.place(
            user_id=command.user_id,
            product_id=command.product_id,
            variant_id=command.variant_id,
            amount=price,
            currency=product.currency,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            user_id=str(command.user_id),
            amount=order.amount,
            currency=order.currency,
        )
        return str(order.id)
