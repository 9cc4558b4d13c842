"""Integration tests for customer order endpoints and PayPal checkout."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ExpectedVersionError
from storefront.domain import storefront
from storefront.order.order import Order
from storefront.product.variants import AddVariant


def _place(client, headers, product_id, variant_id=None):
    response = client.post("/orders", json={"product_id": product_id, "variant_id": variant_id}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["order_id"]


def _checkout(client, headers, order_id):
    response = client.post("/payments/paypal/create-order", json={"order_id": order_id}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["remote_order_id"]


def _pay(client, headers, product_id):
    order_id = _place(client, headers, product_id)
    remote_id = _checkout(client, headers, order_id)
    response = client.post("/payments/paypal/capture", json={"remote_order_id": remote_id}, headers=headers)
    assert response.status_code == 200, response.text
    return order_id


class TestPlaceOrder:
    def test_order_is_priced_from_catalog(self, client, buyer, product_id):
        response = client.post("/orders", json={"product_id": product_id}, headers=buyer)
        assert response.status_code == 201
        data = response.json()
        assert data["amount"] == 24.99
        assert data["currency"] == "USD"
        assert data["status"] == "pending"

    def test_variant_price_wins(self, client, buyer, product_id):
        variant_id = current_domain.process(
            AddVariant(product_id=product_id, name="Black", price=26.5), asynchronous=False
        )
        order_id = _place(client, buyer, product_id, variant_id)
        assert current_domain.repository_for(Order).get(order_id).amount == 26.5

    def test_requires_authentication(self, client, product_id):
        assert client.post("/orders", json={"product_id": product_id}).status_code == 401

    def test_unknown_product_is_404(self, client, buyer):
        assert client.post("/orders", json={"product_id": "nope"}, headers=buyer).status_code == 404

    def test_malformed_body_is_422(self, client, buyer):
        response = client.post("/orders", json={}, headers=buyer)
        assert response.status_code == 422
        assert response.json()["error"] == "ValidationFailed"
        assert "product_id" in response.json()["messages"]


class TestMyOrders:
    def test_lists_only_own_orders_newest_first(self, client, buyer, other_buyer, product_id):
        first = _place(client, buyer, product_id)
        second = _place(client, buyer, product_id)
        _place(client, other_buyer, product_id)

        data = client.get("/orders", headers=buyer).json()
        assert [o["order_id"] for o in data] == [second, first]


class TestCancel:
    def test_owner_cancels_pending_order(self, client, buyer, product_id):
        order_id = _place(client, buyer, product_id)
        response = client.post(f"/orders/{order_id}/cancel", headers=buyer)
        assert response.status_code == 200
        assert response.json() == {"ok": True, "status": "cancelled"}

    def test_other_user_gets_403(self, client, buyer, other_buyer, product_id):
        order_id = _place(client, buyer, product_id)
        response = client.post(f"/orders/{order_id}/cancel", headers=other_buyer)
        assert response.status_code == 403
        assert current_domain.repository_for(Order).get(order_id).status == "pending"

    def test_paid_order_gets_409(self, client, buyer, product_id):
        order_id = _pay(client, buyer, product_id)
        response = client.post(f"/orders/{order_id}/cancel", headers=buyer)
        assert response.status_code == 409
        assert response.json()["error"] == "InvalidState"

    def test_unknown_order_gets_404(self, client, buyer):
        assert client.post("/orders/nope/cancel", headers=buyer).status_code == 404


class TestCheckout:
    def test_create_order_links_remote_order(self, client, buyer, product_id, gateway):
        order_id = _place(client, buyer, product_id)
        response = client.post("/payments/paypal/create-order", json={"order_id": order_id}, headers=buyer)
        assert response.status_code == 200
        remote_id = response.json()["remote_order_id"]
        assert response.json()["approval_url"]

        order = current_domain.repository_for(Order).get(order_id)
        assert order.external_payment_order_id == remote_id
        call = gateway.calls[0]
        assert call["amount"] == 24.99
        assert call["description"] == "Canvas Tote"

    def test_stranger_cannot_check_out_and_gateway_is_not_called(self, client, buyer, other_buyer, product_id, gateway):
        order_id = _place(client, buyer, product_id)
        response = client.post("/payments/paypal/create-order", json={"order_id": order_id}, headers=other_buyer)
        assert response.status_code == 403
        assert gateway.calls == []

    def test_cancelled_order_cannot_be_paid(self, client, buyer, product_id, gateway):
        order_id = _place(client, buyer, product_id)
        client.post(f"/orders/{order_id}/cancel", headers=buyer)
        response = client.post("/payments/paypal/create-order", json={"order_id": order_id}, headers=buyer)
        assert response.status_code == 409
        assert gateway.calls == []

    def test_gateway_failure_is_502_and_order_untouched(self, client, buyer, product_id, gateway):
        gateway.configure(should_succeed=False)
        order_id = _place(client, buyer, product_id)
        response = client.post("/payments/paypal/create-order", json={"order_id": order_id}, headers=buyer)
        assert response.status_code == 502
        assert response.json()["error"] == "GatewayError"
        assert current_domain.repository_for(Order).get(order_id).external_payment_order_id is None

    def test_capture_marks_paid(self, client, buyer, product_id):
        order_id = _place(client, buyer, product_id)
        remote_id = _checkout(client, buyer, order_id)

        response = client.post("/payments/paypal/capture", json={"remote_order_id": remote_id}, headers=buyer)
        data = response.json()
        assert data["order_id"] == order_id
        assert data["order_status"] == "paid"
        assert data["capture_status"] == "COMPLETED"
        assert data["already_captured"] is False

    def test_second_capture_does_not_call_gateway(self, client, buyer, product_id, gateway):
        order_id = _place(client, buyer, product_id)
        remote_id = _checkout(client, buyer, order_id)
        client.post("/payments/paypal/capture", json={"remote_order_id": remote_id}, headers=buyer)

        response = client.post("/payments/paypal/capture", json={"remote_order_id": remote_id}, headers=buyer)
        assert response.status_code == 200
        assert response.json()["already_captured"] is True
        assert [c["method"] for c in gateway.calls].count("capture_payment") == 1

    def test_declined_capture_marks_failed(self, client, buyer, product_id, gateway):
        order_id = _place(client, buyer, product_id)
        remote_id = _checkout(client, buyer, order_id)
        gateway.configure(capture_status="DECLINED")

        response = client.post("/payments/paypal/capture", json={"remote_order_id": remote_id}, headers=buyer)
        assert response.json()["order_status"] == "failed"

    def test_capture_unknown_remote_order_is_404(self, client, buyer):
        response = client.post("/payments/paypal/capture", json={"remote_order_id": "PP-NOPE"}, headers=buyer)
        assert response.status_code == 404


class TestRefundRequests:
    def test_apply_and_withdraw(self, client, buyer, product_id):
        order_id = _pay(client, buyer, product_id)

        response = client.post(
            f"/orders/{order_id}/refund",
            json={"action": "apply", "refund_request_info": "Strap tore, reach me at buyer@example.com"},
            headers=buyer,
        )
        assert response.json() == {"ok": True, "refund_status": "pending"}

        response = client.post(f"/orders/{order_id}/refund", json={"action": "cancel"}, headers=buyer)
        assert response.json() == {"ok": True, "refund_status": "normal"}

    @pytest.mark.parametrize("info", [None, "", "call me maybe"])
    def test_apply_without_contact_is_422(self, client, buyer, product_id, info):
        order_id = _pay(client, buyer, product_id)
        response = client.post(
            f"/orders/{order_id}/refund",
            json={"action": "apply", "refund_request_info": info},
            headers=buyer,
        )
        assert response.status_code == 422
        assert current_domain.repository_for(Order).get(order_id).refund_status == "normal"

    def test_apply_on_pending_order_is_409(self, client, buyer, product_id):
        order_id = _place(client, buyer, product_id)
        response = client.post(
            f"/orders/{order_id}/refund",
            json={"action": "apply", "refund_request_info": "buyer@example.com"},
            headers=buyer,
        )
        assert response.status_code == 409

    def test_unknown_action_is_422(self, client, buyer, product_id):
        order_id = _pay(client, buyer, product_id)
        response = client.post(f"/orders/{order_id}/refund", json={"action": "escalate"}, headers=buyer)
        assert response.status_code == 422


class TestWebhookEndpoint:
    def _event(self, remote_id, event_type="PAYMENT.CAPTURE.COMPLETED"):
        return json.dumps(
            {
                "id": "WH-1",
                "event_type": event_type,
                "resource": {"id": "CAP-1", "supplementary_data": {"related_ids": {"order_id": remote_id}}},
            }
        )

    def test_webhook_marks_paid(self, client, buyer, product_id, webhook_headers):
        order_id = _place(client, buyer, product_id)
        remote_id = _checkout(client, buyer, order_id)

        response = client.post("/payments/paypal/webhook", content=self._event(remote_id), headers=webhook_headers)
        assert response.status_code == 200
        assert response.json()["action"] == "paid"
        assert current_domain.repository_for(Order).get(order_id).status == "paid"

    def test_webhook_after_capture_is_acknowledged_without_change(self, client, buyer, product_id, webhook_headers):
        order_id = _pay(client, buyer, product_id)
        order = current_domain.repository_for(Order).get(order_id)

        response = client.post(
            "/payments/paypal/webhook",
            content=self._event(order.external_payment_order_id),
            headers=webhook_headers,
        )
        assert response.status_code == 200
        assert response.json()["action"] == "noop"

    def test_forged_webhook_is_401(self, client, buyer, product_id):
        order_id = _place(client, buyer, product_id)
        remote_id = _checkout(client, buyer, order_id)

        response = client.post(
            "/payments/paypal/webhook",
            content=self._event(remote_id),
            headers={"PayPal-Transmission-Sig": "forged"},
        )
        assert response.status_code == 401
        assert current_domain.repository_for(Order).get(order_id).status == "pending"

    def test_unknown_event_is_acknowledged(self, client, webhook_headers):
        body = json.dumps({"id": "WH-2", "event_type": "CUSTOMER.DISPUTE.CREATED", "resource": {}})
        response = client.post("/payments/paypal/webhook", content=body, headers=webhook_headers)
        assert response.status_code == 200
        assert response.json()["action"] == "ignored"


def _conflicting_process(monkeypatch):
    def conflict(command, asynchronous=True):
        raise ExpectedVersionError("Wrong expected version")

    monkeypatch.setattr(storefront, "process", conflict)


class TestConcurrentUpdates:
    def test_cancel_losing_a_race_is_409(self, client, buyer, product_id, monkeypatch):
        order_id = _place(client, buyer, product_id)
        _conflicting_process(monkeypatch)

        response = client.post(f"/orders/{order_id}/cancel", headers=buyer)

        assert response.status_code == 409
        assert response.json() == {
            "error": "InvalidState",
            "messages": {"_entity": ["The record changed concurrently, reload and retry"]},
        }
        monkeypatch.undo()
        assert current_domain.repository_for(Order).get(order_id).status == "pending"

    def test_webhook_conflicting_twice_is_409_so_paypal_redelivers(self, client, buyer, product_id, webhook_headers):
        order_id = _place(client, buyer, product_id)
        remote_id = _checkout(client, buyer, order_id)
        body = json.dumps(
            {
                "id": "WH-3",
                "event_type": "PAYMENT.CAPTURE.COMPLETED",
                "resource": {"id": "CAP-3", "supplementary_data": {"related_ids": {"order_id": remote_id}}},
            }
        )

        with pytest.MonkeyPatch.context() as patch:
            _conflicting_process(patch)
            response = client.post("/payments/paypal/webhook", content=body, headers=webhook_headers)

        assert response.status_code == 409
        assert response.json()["error"] == "InvalidState"
