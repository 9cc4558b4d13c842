"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A customer started a purchase; price was snapshotted from the catalog."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    amount = Float(required=True)
    currency = String(required=True, max_length=3)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentSessionOpened:
    """A remote PayPal order was created and linked to this order."""

    __version__ = 1

    order_id = Identifier(required=True)
    external_payment_order_id = String(required=True, max_length=255)


@storefront.event(part_of="Order")
class OrderPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    external_payment_order_id = String(max_length=255)
    capture_id = String(max_length=255)
    paid_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderPaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    external_payment_order_id = String(max_length=255)
    capture_status = String(max_length=50)
    failed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    """Cancelled by the customer, or by the buyer abandoning PayPal checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    cancelled_by = String(required=True, max_length=20)
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class ShippingStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    shipping_status = String(required=True, max_length=20)
    shipping_info = Text()


@storefront.event(part_of="Order")
class RefundRequested:
    __version__ = 1

    order_id = Identifier(required=True)
    refund_request_info = Text(required=True)
    requested_at = DateTime(required=True)


@storefront.event(part_of="Order")
class RefundRequestWithdrawn:
    __version__ = 1

    order_id = Identifier(required=True)
    withdrawn_at = DateTime(required=True)


@storefront.event(part_of="Order")
class RefundDecided:
    """An admin approved or rejected a pending refund request."""

    __version__ = 1

    order_id = Identifier(required=True)
    decision = String(required=True, max_length=20)
    decided_by = Identifier()
    decided_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderNotesUpdated:
    __version__ = 1

    order_id = Identifier(required=True)
    notes = Text()
