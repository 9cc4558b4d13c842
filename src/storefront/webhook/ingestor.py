"""PayPal webhook ingestion.

An authenticity failure is rejected, which makes PayPal redeliver. Everything
that happens after a delivery is verified (unknown event types, missing
correlation ids, unknown orders, transitions the order no longer allows) is
logged and acknowledged, because redelivering it would never produce a
different result. A write that loses a race with another update of the same
order is retried once against the reloaded order. If it loses again the
conflict is answered with 409 so PayPal redelivers.

There is no store of processed event ids. Duplicate deliveries are harmless
because every outcome is re-checked against the order's current status and
re-applying an outcome the order already has is a no-op.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass

import structlog
from protean.exceptions import ExpectedVersionError, ValidationError
from protean.utils.globals import current_domain

from storefront.errors import AuthenticityFailed, StorefrontError
from storefront.gateway.port import PaymentGateway
from storefront.order.payment import (
    RecordCheckoutCancellation,
    RecordPaymentCapture,
    RecordPaymentDenial,
)

logger = structlog.get_logger(__name__)

CAPTURE_COMPLETED = "PAYMENT.CAPTURE.COMPLETED"
CAPTURE_DENIED = "PAYMENT.CAPTURE.DENIED"
CAPTURE_DECLINED = "PAYMENT.CAPTURE.DECLINED"
CHECKOUT_APPROVED = "CHECKOUT.ORDER.APPROVED"
CHECKOUT_CANCELLED = "CHECKOUT.ORDER.CANCELLED"
CHECKOUT_VOIDED = "CHECKOUT.ORDER.VOIDED"


class Action:
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"
    INFORMATIONAL = "informational"
    NOOP = "noop"
    UNMATCHED = "unmatched"
    IGNORED = "ignored"


@dataclass(frozen=True)
class WebhookOutcome:
    event_type: str | None
    action: str
    order_id: str | None = None
    detail: str | None = None


def correlation_id(event: dict) -> str | None:
    """PayPal's order id for the event.

    Capture events carry it in ``supplementary_data.related_ids``; checkout
    events are about the order itself, so the resource id is the order id.
    """
    resource = event.get("resource") or {}
    related = (resource.get("supplementary_data") or {}).get("related_ids") or {}
    if related.get("order_id"):
        return related["order_id"]
    if str(event.get("event_type", "")).startswith("CHECKOUT.ORDER."):
        return resource.get("id")
    return None


def _capture_completed(event, external_id):
    resource = event.get("resource") or {}
    return (
        RecordPaymentCapture(
            external_payment_order_id=external_id,
            capture_status="COMPLETED",
            capture_id=resource.get("id"),
        ),
        Action.PAID,
    )


def _capture_denied(event, external_id):
    resource = event.get("resource") or {}
    return (
        RecordPaymentDenial(
            external_payment_order_id=external_id,
            capture_status=resource.get("status") or "DENIED",
        ),
        Action.FAILED,
    )


def _checkout_cancelled(event, external_id):  # noqa: ARG001
    return RecordCheckoutCancellation(external_payment_order_id=external_id), Action.CANCELLED


_DISPATCH = {
    CAPTURE_COMPLETED: _capture_completed,
    CAPTURE_DENIED: _capture_denied,
    CAPTURE_DECLINED: _capture_denied,
    CHECKOUT_CANCELLED: _checkout_cancelled,
    CHECKOUT_VOIDED: _checkout_cancelled,
}


class WebhookIngestor:
    """Verify a PayPal webhook delivery and feed it into the order state machine."""

    def __init__(self, gateway: PaymentGateway, webhook_id: str) -> None:
        self.gateway = gateway
        self.webhook_id = webhook_id

    async def ingest(self, headers: Mapping[str, str], raw_body: bytes) -> WebhookOutcome:
        if not await self.gateway.verify_inbound_authenticity(headers, raw_body, self.webhook_id):
            logger.warning("webhook_authenticity_failed")
            raise AuthenticityFailed("Webhook signature verification failed", field="signature")

        try:
            event = json.loads(raw_body)
        except (UnicodeDecodeError, ValueError):
            logger.warning("webhook_body_malformed")
            return WebhookOutcome(event_type=None, action=Action.IGNORED, detail="Body is not JSON")
        if not isinstance(event, dict):
            return WebhookOutcome(event_type=None, action=Action.IGNORED, detail="Body is not a JSON object")

        event_type = event.get("event_type")
        log = logger.bind(event_type=event_type, event_id=event.get("id"))

        if event_type == CHECKOUT_APPROVED:
            log.info("webhook_checkout_approved", correlation_id=correlation_id(event))
            return WebhookOutcome(event_type=event_type, action=Action.INFORMATIONAL)

        build = _DISPATCH.get(event_type)
        if build is None:
            log.info("webhook_event_ignored")
            return WebhookOutcome(event_type=event_type, action=Action.IGNORED)

        external_id = correlation_id(event)
        if not external_id:
            log.warning("webhook_missing_correlation_id")
            return WebhookOutcome(event_type=event_type, action=Action.UNMATCHED, detail="No order id in event")

        command, action = build(event, external_id)
        log = log.bind(correlation_id=external_id)
        try:
            outcome = self._process(command, log)
        except (StorefrontError, ValidationError) as exc:
            detail = exc.message if isinstance(exc, StorefrontError) else str(exc.messages)
            absorbed = Action.UNMATCHED if getattr(exc, "reason", None) == "NotFound" else Action.NOOP
            log.info("webhook_event_absorbed", outcome=absorbed, detail=detail)
            return WebhookOutcome(event_type=event_type, action=absorbed, detail=detail)

        if not outcome.changed:
            log.info("webhook_event_already_applied", order_id=outcome.order_id, status=outcome.status)
            return WebhookOutcome(event_type=event_type, action=Action.NOOP, order_id=outcome.order_id)

        log.info("webhook_event_applied", order_id=outcome.order_id, status=outcome.status)
        return WebhookOutcome(event_type=event_type, action=action, order_id=outcome.order_id)

    @staticmethod
    def _process(command, log):
        try:
            return current_domain.process(command, asynchronous=False)
        except ExpectedVersionError:
            # Another writer saved the order between load and commit. The handler
            # reloads the order, so one more attempt decides against fresh state.
            # A second conflict propagates and the non-2xx answer makes PayPal redeliver.
            log.info("webhook_event_conflict_retrying")
            return current_domain.process(command, asynchronous=False)
