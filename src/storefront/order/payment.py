"""Payment lifecycle: linking a PayPal order and recording its outcome.

Outcome commands are keyed by PayPal's order id and come either from the
synchronous capture call or from a verified webhook. The order is reloaded
inside the handler's unit of work so its guard is evaluated against the
state it has at write time.
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import InvalidState, NotFound
from storefront.order.order import Order
from storefront.order.state_machine import Actor, ActorRole

logger = structlog.get_logger(__name__)

CAPTURE_COMPLETED = "COMPLETED"
CAPTURE_FAILURES = frozenset({"DECLINED", "FAILED"})


@dataclass(frozen=True)
class PaymentOutcome:
    order_id: str
    status: str
    changed: bool


@storefront.command(part_of="Order")
class OpenPaymentSession:
    """Store PayPal's order id on a pending order so later notifications can find it."""

    order_id = Identifier(required=True)
    external_payment_order_id = String(required=True, max_length=255)
    actor_id = Identifier(required=True)
    actor_role = String(choices=ActorRole, default=ActorRole.CUSTOMER.value)


@storefront.command(part_of="Order")
class RecordPaymentCapture:
    external_payment_order_id = String(required=True, max_length=255)
    capture_status = String(required=True, max_length=50)
    capture_id = String(max_length=255)


@storefront.command(part_of="Order")
class RecordPaymentDenial:
    external_payment_order_id = String(required=True, max_length=255)
    capture_status = String(max_length=50)


@storefront.command(part_of="Order")
class RecordCheckoutCancellation:
    """The buyer cancelled or PayPal voided the checkout before capture."""

    external_payment_order_id = String(required=True, max_length=255)


def _order_for(repo, external_payment_order_id) -> Order:
    order = repo.find_by_external_payment_id(external_payment_order_id)
    if order is None:
        raise NotFound(
            f"No order for payment order {external_payment_order_id}",
            field="external_payment_order_id",
        )
    return order


@storefront.command_handler(part_of=Order)
class PaymentHandler:
    @handle(OpenPaymentSession)
    def open_payment_session(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        other = repo.find_by_external_payment_id(command.external_payment_order_id)
        if other is not None and str(other.id) != str(order.id):
            raise InvalidState(
                "Payment order id is already linked to another order",
                field="external_payment_order_id",
            )

        order.open_payment_session(
            Actor.of(command.actor_role, command.actor_id),
            command.external_payment_order_id,
        )
        repo.add(order)

    @handle(RecordPaymentCapture)
    def record_payment_capture(self, command):
        repo = current_domain.repository_for(Order)
        order = _order_for(repo, command.external_payment_order_id)

        status = (command.capture_status or "").upper()
        if status == CAPTURE_COMPLETED:
            changed = order.confirm_capture(capture_id=command.capture_id)
        elif status in CAPTURE_FAILURES:
            changed = order.deny_capture(capture_status=status)
        else:
            # PENDING and friends: the money has not moved yet, a webhook will follow
            logger.info(
                "capture_not_final",
                order_id=str(order.id),
                capture_status=status,
            )
            changed = False

        if changed:
            repo.add(order)
        return PaymentOutcome(order_id=str(order.id), status=order.status, changed=changed)

    @handle(RecordPaymentDenial)
    def record_payment_denial(self, command):
        repo = current_domain.repository_for(Order)
        order = _order_for(repo, command.external_payment_order_id)
        changed = order.deny_capture(capture_status=command.capture_status)
        if changed:
            repo.add(order)
        return PaymentOutcome(order_id=str(order.id), status=order.status, changed=changed)

    @handle(RecordCheckoutCancellation)
    def record_checkout_cancellation(self, command):
        repo = current_domain.repository_for(Order)
        order = _order_for(repo, command.external_payment_order_id)
        changed = order.abandon_checkout()
        if changed:
            repo.add(order)
        return PaymentOutcome(order_id=str(order.id), status=order.status, changed=changed)
