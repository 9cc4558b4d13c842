"""Order aggregate: one row per purchase attempt.

Every mutation goes through ``state_machine.decide``. The aggregate only
translates the decision: a rejection becomes the matching tagged exception
and an accepted change is copied onto the aggregate and announced with a
domain event. Accepted decisions that change nothing raise no event, which
is what makes repeated gateway notifications harmless.
"""

from datetime import UTC, datetime

import structlog
from protean.fields import DateTime, Float, Identifier, String, Text

from storefront.domain import storefront
from storefront.errors import error_for
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
from storefront.order.state_machine import (
    Actor,
    OrderSnapshot,
    OrderStatus,
    RefundStatus,
    Rejected,
    ShippingStatus,
    Transition,
    decide,
)

logger = structlog.get_logger(__name__)


@storefront.aggregate
class Order:
    """A purchase attempt by one user for one product (and optionally one variant).

    ``amount`` and ``currency`` are copied from the catalog when the order is
    placed and never recomputed. ``external_payment_order_id`` is PayPal's
    order id, the only key inbound payment notifications can be matched on.
    """

    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    shipping_status = String(choices=ShippingStatus, default=ShippingStatus.NOT_SHIPPED.value)
    shipping_info = Text()
    refund_status = String(choices=RefundStatus, default=RefundStatus.NORMAL.value)
    refund_request_info = Text()
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")
    external_payment_order_id = String(max_length=255)
    notes = Text()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, user_id, product_id, amount, currency, variant_id=None):
        now = datetime.now(UTC)
        order = cls(
            user_id=user_id,
            product_id=product_id,
            variant_id=variant_id,
            amount=round(float(amount), 2),
            currency=currency,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=order.id,
                user_id=user_id,
                product_id=product_id,
                variant_id=variant_id,
                amount=order.amount,
                currency=currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State machine plumbing
    # -------------------------------------------------------------------
    def to_snapshot(self) -> OrderSnapshot:
        return OrderSnapshot(
            owner_id=str(self.user_id),
            status=self.status,
            shipping_status=self.shipping_status,
            shipping_info=self.shipping_info,
            refund_status=self.refund_status,
            refund_request_info=self.refund_request_info,
            notes=self.notes,
            external_payment_order_id=self.external_payment_order_id,
        )

    def _transition(self, transition: Transition, actor: Actor, **payload) -> bool:
        """Apply ``transition`` if allowed. Returns whether anything changed."""
        decision = decide(self.to_snapshot(), transition, actor, **payload)
        if isinstance(decision, Rejected):
            logger.info(
                "order_transition_rejected",
                order_id=str(self.id),
                transition=transition.value,
                actor_role=actor.role.value,
                reason=decision.reason.value,
                detail=decision.message,
            )
            raise error_for(decision.reason.value, decision.message, decision.field)

        if not decision.changed:
            return False

        new = decision.snapshot
        self.status = new.status
        self.shipping_status = new.shipping_status
        self.shipping_info = new.shipping_info
        self.refund_status = new.refund_status
        self.refund_request_info = new.refund_request_info
        self.notes = new.notes
        self.external_payment_order_id = new.external_payment_order_id
        self.updated_at = datetime.now(UTC)
        return True

    # -------------------------------------------------------------------
    # Customer intents
    # -------------------------------------------------------------------
    def cancel(self, actor: Actor) -> bool:
        changed = self._transition(Transition.CANCEL, actor)
        self.raise_(
            OrderCancelled(order_id=self.id, cancelled_by=actor.role.value, cancelled_at=self.updated_at)
        )
        return changed

    def ensure_checkout_allowed(self, actor: Actor) -> None:
        """Raise unless ``actor`` may start a PayPal checkout for this order."""
        self._transition(Transition.BEGIN_CHECKOUT, actor)

    def ensure_capture_allowed(self, actor: Actor) -> None:
        """Raise unless ``actor`` may ask for this order's payment to be captured."""
        self._transition(Transition.REQUEST_CAPTURE, actor)

    def open_payment_session(self, actor: Actor, external_payment_order_id: str) -> bool:
        changed = self._transition(
            Transition.OPEN_PAYMENT_SESSION,
            actor,
            external_payment_order_id=external_payment_order_id,
        )
        if changed:
            self.raise_(
                PaymentSessionOpened(order_id=self.id, external_payment_order_id=external_payment_order_id)
            )
        return changed

    def apply_for_refund(self, actor: Actor, refund_request_info: str) -> bool:
        changed = self._transition(Transition.APPLY_REFUND, actor, refund_request_info=refund_request_info)
        self.raise_(
            RefundRequested(
                order_id=self.id,
                refund_request_info=refund_request_info,
                requested_at=self.updated_at,
            )
        )
        return changed

    def withdraw_refund_request(self, actor: Actor) -> bool:
        changed = self._transition(Transition.WITHDRAW_REFUND, actor)
        self.raise_(RefundRequestWithdrawn(order_id=self.id, withdrawn_at=self.updated_at))
        return changed

    # -------------------------------------------------------------------
    # Gateway facts
    # -------------------------------------------------------------------
    def confirm_capture(self, capture_id: str | None = None) -> bool:
        changed = self._transition(Transition.CONFIRM_CAPTURE, Actor.gateway())
        if changed:
            self.raise_(
                OrderPaid(
                    order_id=self.id,
                    external_payment_order_id=self.external_payment_order_id,
                    capture_id=capture_id,
                    paid_at=self.updated_at,
                )
            )
        return changed

    def deny_capture(self, capture_status: str | None = None) -> bool:
        changed = self._transition(Transition.DENY_CAPTURE, Actor.gateway())
        if changed:
            self.raise_(
                OrderPaymentFailed(
                    order_id=self.id,
                    external_payment_order_id=self.external_payment_order_id,
                    capture_status=capture_status,
                    failed_at=self.updated_at,
                )
            )
        return changed

    def abandon_checkout(self) -> bool:
        actor = Actor.gateway()
        changed = self._transition(Transition.ABANDON_CHECKOUT, actor)
        if changed:
            self.raise_(
                OrderCancelled(order_id=self.id, cancelled_by=actor.role.value, cancelled_at=self.updated_at)
            )
        return changed

    # -------------------------------------------------------------------
    # Admin actions
    # -------------------------------------------------------------------
    def set_shipping(self, actor: Actor, shipping_status: str, shipping_info: str | None = None) -> bool:
        changed = self._transition(
            Transition.SET_SHIPPING,
            actor,
            shipping_status=shipping_status,
            shipping_info=shipping_info,
        )
        if changed:
            self.raise_(
                ShippingStatusChanged(
                    order_id=self.id,
                    shipping_status=self.shipping_status,
                    shipping_info=self.shipping_info,
                )
            )
        return changed

    def decide_refund(self, actor: Actor, decision: str) -> bool:
        changed = self._transition(Transition.DECIDE_REFUND, actor, decision=decision)
        self.raise_(
            RefundDecided(
                order_id=self.id,
                decision=decision,
                decided_by=actor.user_id,
                decided_at=self.updated_at,
            )
        )
        return changed

    def update_notes(self, actor: Actor, notes: str | None) -> bool:
        changed = self._transition(Transition.UPDATE_NOTES, actor, notes=notes)
        if changed:
            self.raise_(OrderNotesUpdated(order_id=self.id, notes=self.notes))
        return changed
