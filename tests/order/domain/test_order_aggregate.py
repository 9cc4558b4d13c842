"""Tests for the Order aggregate: placement, transitions and raised events."""

import pytest
from storefront.errors import Forbidden, InvalidState, ValidationFailed
from storefront.order.events import (
    OrderCancelled,
    OrderNotesUpdated,
    OrderPaid,
    OrderPaymentFailed,
    OrderPlaced,
    PaymentSessionOpened,
    RefundDecided,
    RefundRequested,
    RefundRequestWithdrawn,
    ShippingStatusChanged,
)
from storefront.order.order import Order
from storefront.order.state_machine import Actor, OrderStatus, RefundStatus, ShippingStatus

OWNER = Actor.customer("user-001")
ADMIN = Actor.admin("admin-001")


def _order():
    order = Order.place(user_id="user-001", product_id="prod-001", amount=19.999, currency="USD")
    order._events.clear()
    return order


def _paid_order():
    order = _order()
    order.open_payment_session(OWNER, "PP-100")
    order.confirm_capture(capture_id="CAP-1")
    order._events.clear()
    return order


class TestOrderPlacement:
    def test_new_order_is_pending(self):
        order = Order.place(user_id="user-001", product_id="prod-001", amount=10, currency="USD")
        assert order.status == OrderStatus.PENDING.value
        assert order.shipping_status == ShippingStatus.NOT_SHIPPED.value
        assert order.refund_status == RefundStatus.NORMAL.value
        assert order.external_payment_order_id is None

    def test_amount_is_rounded_to_cents(self):
        order = Order.place(user_id="user-001", product_id="prod-001", amount=19.999, currency="USD")
        assert order.amount == 20.0

    def test_variant_is_recorded(self):
        order = Order.place(
            user_id="user-001", product_id="prod-001", variant_id="var-001", amount=10, currency="EUR"
        )
        assert str(order.variant_id) == "var-001"
        assert order.currency == "EUR"

    def test_placement_raises_event(self):
        order = Order.place(user_id="user-001", product_id="prod-001", amount=10, currency="USD")
        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderPlaced)
        assert event.amount == 10.0

    def test_timestamps_set(self):
        order = Order.place(user_id="user-001", product_id="prod-001", amount=10, currency="USD")
        assert order.created_at is not None
        assert order.updated_at == order.created_at


class TestCancellation:
    def test_cancel_pending_order(self):
        order = _order()
        assert order.cancel(OWNER) is True
        assert order.status == OrderStatus.CANCELLED.value
        assert isinstance(order._events[0], OrderCancelled)

    def test_cancel_by_stranger_raises_forbidden(self):
        order = _order()
        with pytest.raises(Forbidden):
            order.cancel(Actor.customer("someone-else"))
        assert order.status == OrderStatus.PENDING.value
        assert order._events == []

    def test_cancel_paid_order_raises_invalid_state(self):
        order = _paid_order()
        with pytest.raises(InvalidState):
            order.cancel(OWNER)
        assert order.status == OrderStatus.PAID.value


class TestPaymentLifecycle:
    def test_open_payment_session_links_external_id(self):
        order = _order()
        assert order.open_payment_session(OWNER, "PP-100") is True
        assert order.external_payment_order_id == "PP-100"
        assert isinstance(order._events[0], PaymentSessionOpened)

    def test_confirm_capture_marks_paid(self):
        order = _order()
        order.open_payment_session(OWNER, "PP-100")
        order._events.clear()

        assert order.confirm_capture(capture_id="CAP-1") is True
        assert order.status == OrderStatus.PAID.value
        event = order._events[0]
        assert isinstance(event, OrderPaid)
        assert event.capture_id == "CAP-1"
        assert event.external_payment_order_id == "PP-100"

    def test_repeated_capture_raises_no_event(self):
        order = _paid_order()
        assert order.confirm_capture(capture_id="CAP-1") is False
        assert order.status == OrderStatus.PAID.value
        assert order._events == []

    def test_capture_after_cancel_is_rejected(self):
        order = _order()
        order.cancel(OWNER)
        with pytest.raises(InvalidState):
            order.confirm_capture()
        assert order.status == OrderStatus.CANCELLED.value

    def test_deny_capture_marks_failed(self):
        order = _order()
        assert order.deny_capture(capture_status="DECLINED") is True
        assert order.status == OrderStatus.FAILED.value
        assert isinstance(order._events[0], OrderPaymentFailed)

    def test_abandon_checkout_cancels(self):
        order = _order()
        assert order.abandon_checkout() is True
        assert order.status == OrderStatus.CANCELLED.value
        assert order._events[0].cancelled_by == "gateway"

    def test_repeated_abandon_is_silent(self):
        order = _order()
        order.abandon_checkout()
        order._events.clear()
        assert order.abandon_checkout() is False
        assert order._events == []

    def test_checkout_precheck_rejects_stranger(self):
        order = _order()
        with pytest.raises(Forbidden):
            order.ensure_checkout_allowed(Actor.customer("someone-else"))

    def test_checkout_precheck_rejects_paid_order(self):
        order = _paid_order()
        with pytest.raises(InvalidState):
            order.ensure_checkout_allowed(OWNER)

    def test_capture_precheck_allows_paid_order(self):
        order = _paid_order()
        order.ensure_capture_allowed(OWNER)
        assert order._events == []


class TestShipping:
    def test_ship_paid_order(self):
        order = _paid_order()
        assert order.set_shipping(ADMIN, "shipped", "DHL 42") is True
        assert order.shipping_status == ShippingStatus.SHIPPED.value
        assert order.shipping_info == "DHL 42"
        assert isinstance(order._events[0], ShippingStatusChanged)

    def test_ship_pending_order_rejected(self):
        order = _order()
        with pytest.raises(InvalidState):
            order.set_shipping(ADMIN, "shipped", "DHL 42")

    def test_invalid_shipping_value_rejected(self):
        order = _paid_order()
        with pytest.raises(ValidationFailed):
            order.set_shipping(ADMIN, "teleported")


class TestRefunds:
    def test_apply_for_refund(self):
        order = _paid_order()
        order.apply_for_refund(OWNER, "Broken on arrival. me@example.com")
        assert order.refund_status == RefundStatus.PENDING.value
        assert order.refund_request_info == "Broken on arrival. me@example.com"
        assert isinstance(order._events[0], RefundRequested)

    def test_apply_without_contact_rejected(self):
        order = _paid_order()
        with pytest.raises(ValidationFailed):
            order.apply_for_refund(OWNER, "Broken on arrival")
        assert order.refund_status == RefundStatus.NORMAL.value

    def test_withdraw_refund_request(self):
        order = _paid_order()
        order.apply_for_refund(OWNER, "me@example.com")
        order._events.clear()

        order.withdraw_refund_request(OWNER)
        assert order.refund_status == RefundStatus.NORMAL.value
        assert order.refund_request_info is None
        assert isinstance(order._events[0], RefundRequestWithdrawn)

    def test_admin_approves_refund(self):
        order = _paid_order()
        order.apply_for_refund(OWNER, "me@example.com")
        order._events.clear()

        order.decide_refund(ADMIN, "approved")
        assert order.refund_status == RefundStatus.APPROVED.value
        assert order.refund_request_info == "me@example.com"
        event = order._events[0]
        assert isinstance(event, RefundDecided)
        assert event.decision == "approved"

    def test_refund_does_not_change_order_status(self):
        order = _paid_order()
        order.apply_for_refund(OWNER, "me@example.com")
        order.decide_refund(ADMIN, "rejected")
        assert order.status == OrderStatus.PAID.value


class TestNotes:
    def test_update_notes(self):
        order = _order()
        assert order.update_notes(ADMIN, "Awaiting stock") is True
        assert order.notes == "Awaiting stock"
        assert isinstance(order._events[0], OrderNotesUpdated)

    def test_same_notes_is_unchanged(self):
        order = _order()
        order.update_notes(ADMIN, "Awaiting stock")
        order._events.clear()
        assert order.update_notes(ADMIN, "Awaiting stock") is False
        assert order._events == []

    def test_customer_cannot_update_notes(self):
        order = _order()
        with pytest.raises(Forbidden):
            order.update_notes(OWNER, "Hi")
