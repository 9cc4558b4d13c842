"""Order state machine: pure decision logic, no I/O.

``decide(snapshot, transition, actor, **payload)`` answers one question:
given what the order looks like now and who is asking for what, is the
transition legal, and if so what does the order look like afterwards?

Status dimension::

    pending ──customer cancels / checkout cancelled──▶ cancelled
    pending ──capture confirmed───────────────────────▶ paid
    pending ──capture denied/declined─────────────────▶ failed

``cancelled`` and ``failed`` are terminal. ``paid`` is terminal for the
status dimension only; the shipping and refund sub-states evolve while the
order is paid::

    shipping:  not_shipped ⇄ shipped                      (admin)
    refund:    normal → pending                          (customer, needs contact)
               pending → normal                          (customer withdraws)
               pending → approved | rejected             (admin, terminal)

Rejections are returned as values tagged with a ``RejectionReason``; callers
decide how to surface them.
"""

from dataclasses import dataclass, replace
from enum import Enum


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ShippingStatus(Enum):
    NOT_SHIPPED = "not_shipped"
    SHIPPED = "shipped"


class RefundStatus(Enum):
    NORMAL = "normal"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ActorRole(Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    GATEWAY = "gateway"


class Transition(Enum):
    # Customer intents
    CANCEL = "cancel"
    BEGIN_CHECKOUT = "begin_checkout"
    OPEN_PAYMENT_SESSION = "open_payment_session"
    REQUEST_CAPTURE = "request_capture"
    APPLY_REFUND = "apply_refund"
    WITHDRAW_REFUND = "withdraw_refund"
    # Gateway facts
    CONFIRM_CAPTURE = "confirm_capture"
    DENY_CAPTURE = "deny_capture"
    ABANDON_CHECKOUT = "abandon_checkout"
    # Admin actions
    SET_SHIPPING = "set_shipping"
    DECIDE_REFUND = "decide_refund"
    UPDATE_NOTES = "update_notes"


class RejectionReason(Enum):
    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    INVALID_STATE = "InvalidState"
    VALIDATION_FAILED = "ValidationFailed"


TERMINAL_STATUSES = frozenset({OrderStatus.CANCELLED.value, OrderStatus.FAILED.value})

REFUND_DECISIONS = frozenset({RefundStatus.APPROVED.value, RefundStatus.REJECTED.value})

_CUSTOMER_TRANSITIONS = frozenset(
    {
        Transition.CANCEL,
        Transition.BEGIN_CHECKOUT,
        Transition.OPEN_PAYMENT_SESSION,
        Transition.REQUEST_CAPTURE,
        Transition.APPLY_REFUND,
        Transition.WITHDRAW_REFUND,
    }
)
_GATEWAY_TRANSITIONS = frozenset({Transition.CONFIRM_CAPTURE, Transition.DENY_CAPTURE, Transition.ABANDON_CHECKOUT})
_ADMIN_TRANSITIONS = frozenset({Transition.SET_SHIPPING, Transition.DECIDE_REFUND, Transition.UPDATE_NOTES})


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OrderSnapshot:
    """The mutable part of an order, as the state machine sees it."""

    owner_id: str
    status: str = OrderStatus.PENDING.value
    shipping_status: str = ShippingStatus.NOT_SHIPPED.value
    shipping_info: str | None = None
    refund_status: str = RefundStatus.NORMAL.value
    refund_request_info: str | None = None
    notes: str | None = None
    external_payment_order_id: str | None = None


@dataclass(frozen=True)
class Actor:
    """Who is asking. Gateway actors carry no user id."""

    role: ActorRole
    user_id: str | None = None

    @classmethod
    def customer(cls, user_id) -> "Actor":
        return cls(role=ActorRole.CUSTOMER, user_id=str(user_id))

    @classmethod
    def admin(cls, user_id=None) -> "Actor":
        return cls(role=ActorRole.ADMIN, user_id=str(user_id) if user_id else None)

    @classmethod
    def gateway(cls) -> "Actor":
        return cls(role=ActorRole.GATEWAY)

    @classmethod
    def of(cls, role, user_id=None) -> "Actor":
        return cls(role=ActorRole(role), user_id=str(user_id) if user_id else None)


@dataclass(frozen=True)
class Accepted:
    snapshot: OrderSnapshot
    changed: bool = True


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason
    message: str
    field: str = "status"


Decision = Accepted | Rejected


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------
def _authorize(snapshot: OrderSnapshot, transition: Transition, actor: Actor) -> Rejected | None:
    if transition in _CUSTOMER_TRANSITIONS:
        if actor.role not in (ActorRole.CUSTOMER, ActorRole.ADMIN) or actor.user_id is None:
            return Rejected(RejectionReason.FORBIDDEN, "Only the order owner can do this", field="order")
        if str(actor.user_id) != str(snapshot.owner_id):
            return Rejected(RejectionReason.FORBIDDEN, "Order belongs to another user", field="order")
    elif transition in _ADMIN_TRANSITIONS:
        if actor.role is not ActorRole.ADMIN:
            return Rejected(RejectionReason.FORBIDDEN, "Admin role required", field="order")
    elif transition in _GATEWAY_TRANSITIONS:
        if actor.role is not ActorRole.GATEWAY:
            return Rejected(RejectionReason.FORBIDDEN, "Only the payment gateway can report payment outcomes")
    return None


def _invalid(message: str, field: str = "status") -> Rejected:
    return Rejected(RejectionReason.INVALID_STATE, message, field=field)


def _invalid_input(message: str, field: str) -> Rejected:
    return Rejected(RejectionReason.VALIDATION_FAILED, message, field=field)


def _unchanged(snapshot: OrderSnapshot) -> Accepted:
    return Accepted(snapshot, changed=False)


def is_valid_refund_contact(info) -> bool:
    """Refund requests must carry some text with an ``@``-bearing contact."""
    return isinstance(info, str) and bool(info.strip()) and "@" in info


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------
def _cancel(s: OrderSnapshot, **_) -> Decision:
    if s.status != OrderStatus.PENDING.value:
        return _invalid(f"Cannot cancel an order that is {s.status}")
    return Accepted(replace(s, status=OrderStatus.CANCELLED.value))


def _begin_checkout(s: OrderSnapshot, **_) -> Decision:
    if s.status != OrderStatus.PENDING.value:
        return _invalid(f"Cannot pay for an order that is {s.status}")
    return _unchanged(s)


def _open_payment_session(s: OrderSnapshot, external_payment_order_id=None, **_) -> Decision:
    if s.status != OrderStatus.PENDING.value:
        return _invalid(f"Cannot pay for an order that is {s.status}")
    if not external_payment_order_id:
        return _invalid_input("Payment order id is required", "external_payment_order_id")
    if s.external_payment_order_id == external_payment_order_id:
        return _unchanged(s)
    return Accepted(replace(s, external_payment_order_id=external_payment_order_id))


def _request_capture(s: OrderSnapshot, **_) -> Decision:
    if s.status in (OrderStatus.PENDING.value, OrderStatus.PAID.value):
        return _unchanged(s)
    return _invalid(f"Cannot capture payment for an order that is {s.status}")


def _confirm_capture(s: OrderSnapshot, **_) -> Decision:
    if s.status == OrderStatus.PAID.value:
        return _unchanged(s)
    if s.status != OrderStatus.PENDING.value:
        return _invalid(f"Cannot mark an order that is {s.status} as paid")
    return Accepted(
        replace(
            s,
            status=OrderStatus.PAID.value,
            shipping_status=ShippingStatus.NOT_SHIPPED.value,
            refund_status=RefundStatus.NORMAL.value,
        )
    )


def _deny_capture(s: OrderSnapshot, **_) -> Decision:
    if s.status == OrderStatus.FAILED.value:
        return _unchanged(s)
    if s.status != OrderStatus.PENDING.value:
        return _invalid(f"Cannot mark an order that is {s.status} as failed")
    return Accepted(replace(s, status=OrderStatus.FAILED.value))


def _abandon_checkout(s: OrderSnapshot, **_) -> Decision:
    if s.status == OrderStatus.CANCELLED.value:
        return _unchanged(s)
    if s.status != OrderStatus.PENDING.value:
        return _invalid(f"Cannot cancel checkout for an order that is {s.status}")
    return Accepted(replace(s, status=OrderStatus.CANCELLED.value))


def _set_shipping(s: OrderSnapshot, shipping_status=None, shipping_info=None, **_) -> Decision:
    if s.status != OrderStatus.PAID.value:
        return _invalid(f"Shipping can only be updated on paid orders, order is {s.status}")

    if shipping_status == ShippingStatus.SHIPPED.value:
        info = shipping_info if shipping_info is not None else s.shipping_info
        new = replace(s, shipping_status=shipping_status, shipping_info=info)
    elif shipping_status == ShippingStatus.NOT_SHIPPED.value:
        new = replace(s, shipping_status=shipping_status, shipping_info=None)
    else:
        return _invalid_input(f"Invalid shipping status: {shipping_status}", "shipping_status")

    return Accepted(new, changed=new != s)


def _apply_refund(s: OrderSnapshot, refund_request_info=None, **_) -> Decision:
    if not is_valid_refund_contact(refund_request_info):
        return _invalid_input(
            "Refund request must include contact information containing '@'",
            "refund_request_info",
        )
    if s.status != OrderStatus.PAID.value:
        return _invalid(f"Only paid orders can be refunded, order is {s.status}")
    if s.refund_status != RefundStatus.NORMAL.value:
        return _invalid(f"Refund is already {s.refund_status}", field="refund_status")
    return Accepted(replace(s, refund_status=RefundStatus.PENDING.value, refund_request_info=refund_request_info))


def _withdraw_refund(s: OrderSnapshot, **_) -> Decision:
    if s.refund_status != RefundStatus.PENDING.value:
        return _invalid("No pending refund request to cancel", field="refund_status")
    return Accepted(replace(s, refund_status=RefundStatus.NORMAL.value, refund_request_info=None))


def _decide_refund(s: OrderSnapshot, decision=None, **_) -> Decision:
    if decision not in REFUND_DECISIONS:
        return _invalid_input(f"Refund decision must be approved or rejected, got {decision}", "refund_status")
    if s.status != OrderStatus.PAID.value:
        return _invalid(f"Only paid orders can be refunded, order is {s.status}")
    if s.refund_status != RefundStatus.PENDING.value:
        return _invalid(f"Refund is {s.refund_status}, not pending", field="refund_status")
    return Accepted(replace(s, refund_status=decision))


def _update_notes(s: OrderSnapshot, notes=None, **_) -> Decision:
    new = replace(s, notes=notes or None)
    return Accepted(new, changed=new != s)


_HANDLERS = {
    Transition.CANCEL: _cancel,
    Transition.BEGIN_CHECKOUT: _begin_checkout,
    Transition.OPEN_PAYMENT_SESSION: _open_payment_session,
    Transition.REQUEST_CAPTURE: _request_capture,
    Transition.CONFIRM_CAPTURE: _confirm_capture,
    Transition.DENY_CAPTURE: _deny_capture,
    Transition.ABANDON_CHECKOUT: _abandon_checkout,
    Transition.SET_SHIPPING: _set_shipping,
    Transition.APPLY_REFUND: _apply_refund,
    Transition.WITHDRAW_REFUND: _withdraw_refund,
    Transition.DECIDE_REFUND: _decide_refund,
    Transition.UPDATE_NOTES: _update_notes,
}


def decide(snapshot: OrderSnapshot | None, transition: Transition, actor: Actor, **payload) -> Decision:
    """Decide whether ``actor`` may apply ``transition`` to ``snapshot``.

    Authorization is checked before any state guard, so a caller who does not
    own the order learns nothing about its state.
    """
    if snapshot is None:
        return Rejected(RejectionReason.NOT_FOUND, "Order not found", field="order")

    rejection = _authorize(snapshot, transition, actor)
    if rejection is not None:
        return rejection

    return _HANDLERS[transition](snapshot, **payload)
