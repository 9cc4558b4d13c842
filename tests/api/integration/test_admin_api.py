"""Integration tests for the back-office endpoints."""

import pytest
from protean import current_domain
from storefront.order.order import Order
from storefront.product.product import Product

PNG = "iVBORw0KGgo="


def _paid_order(client, headers, product_id):
    order_id = client.post("/orders", json={"product_id": product_id}, headers=headers).json()["order_id"]
    remote_id = client.post(
        "/payments/paypal/create-order", json={"order_id": order_id}, headers=headers
    ).json()["remote_order_id"]
    client.post("/payments/paypal/capture", json={"remote_order_id": remote_id}, headers=headers)
    return order_id


class TestAdminAccess:
    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/admin/orders"),
            ("get", "/admin/products"),
            ("get", "/admin/users/emails"),
            ("put", "/admin/orders/x/notes"),
        ],
    )
    def test_customer_is_forbidden(self, client, buyer, method, path):
        response = client.request(method.upper(), path, headers=buyer, json={})
        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden"

    def test_anonymous_is_unauthenticated(self, client):
        assert client.get("/admin/orders").status_code == 401


class TestOrderManagement:
    def test_listing_joins_user_and_product(self, client, admin, buyer, product_id):
        order_id = client.post("/orders", json={"product_id": product_id}, headers=buyer).json()["order_id"]

        data = client.get("/admin/orders", headers=admin).json()
        assert data["total"] == 1
        assert data["total_pages"] == 1
        item = data["items"][0]
        assert item["order_id"] == order_id
        assert item["user_email"] == "buyer@example.com"
        assert item["product_name"] == "Canvas Tote"

    def test_filter_by_email(self, client, admin, buyer, other_buyer, product_id):
        client.post("/orders", json={"product_id": product_id}, headers=buyer)
        other_order = client.post("/orders", json={"product_id": product_id}, headers=other_buyer).json()

        data = client.get("/admin/orders", params={"email": "other@"}, headers=admin).json()
        assert [o["order_id"] for o in data["items"]] == [other_order["order_id"]]

    def test_pagination(self, client, admin, buyer, product_id):
        for _ in range(3):
            client.post("/orders", json={"product_id": product_id}, headers=buyer)
        data = client.get("/admin/orders", params={"page": 2, "page_size": 2}, headers=admin).json()
        assert len(data["items"]) == 1
        assert data["total"] == 3
        assert data["total_pages"] == 2

    def test_notes(self, client, admin, buyer, product_id):
        order_id = client.post("/orders", json={"product_id": product_id}, headers=buyer).json()["order_id"]
        response = client.put(f"/admin/orders/{order_id}/notes", json={"notes": "Gift wrap"}, headers=admin)
        assert response.status_code == 200
        assert current_domain.repository_for(Order).get(order_id).notes == "Gift wrap"

    def test_ship_paid_order(self, client, admin, buyer, product_id):
        order_id = _paid_order(client, buyer, product_id)
        response = client.put(
            f"/admin/orders/{order_id}/shipping",
            json={"shipping_status": "shipped", "shipping_info": "UPS 1Z999"},
            headers=admin,
        )
        assert response.status_code == 200
        order = current_domain.repository_for(Order).get(order_id)
        assert order.shipping_status == "shipped"
        assert order.shipping_info == "UPS 1Z999"

    def test_ship_pending_order_is_409(self, client, admin, buyer, product_id):
        order_id = client.post("/orders", json={"product_id": product_id}, headers=buyer).json()["order_id"]
        response = client.put(
            f"/admin/orders/{order_id}/shipping", json={"shipping_status": "shipped"}, headers=admin
        )
        assert response.status_code == 409

    def test_refund_decision(self, client, admin, buyer, product_id):
        order_id = _paid_order(client, buyer, product_id)
        client.post(
            f"/orders/{order_id}/refund",
            json={"action": "apply", "refund_request_info": "buyer@example.com"},
            headers=buyer,
        )
        response = client.put(f"/admin/orders/{order_id}/refund", json={"decision": "approved"}, headers=admin)
        assert response.json()["refund_status"] == "approved"

    def test_refund_decision_without_request_is_409(self, client, admin, buyer, product_id):
        order_id = _paid_order(client, buyer, product_id)
        response = client.put(f"/admin/orders/{order_id}/refund", json={"decision": "approved"}, headers=admin)
        assert response.status_code == 409

    def test_invalid_decision_is_422(self, client, admin, buyer, product_id):
        order_id = _paid_order(client, buyer, product_id)
        response = client.put(f"/admin/orders/{order_id}/refund", json={"decision": "maybe"}, headers=admin)
        assert response.status_code == 422


class TestCatalogManagement:
    def test_create_product(self, client, admin):
        response = client.post(
            "/admin/products",
            json={"name": "Canvas Tote", "price": 24.99, "image": {"data": PNG, "mime_type": "image/png"}},
            headers=admin,
        )
        assert response.status_code == 201
        product = current_domain.repository_for(Product).get(response.json()["product_id"])
        assert product.image.mime_type == "image/png"
        assert len(product.variants) == 1

    def test_create_product_with_non_image_is_422(self, client, admin):
        response = client.post(
            "/admin/products",
            json={"name": "Canvas Tote", "price": 24.99, "image": {"data": PNG, "mime_type": "text/html"}},
            headers=admin,
        )
        assert response.status_code == 422

    def test_update_and_deactivate(self, client, admin, product_id):
        client.put(f"/admin/products/{product_id}", json={"price": 30.0}, headers=admin)
        assert current_domain.repository_for(Product).get(product_id).price == 30.0

        response = client.delete(f"/admin/products/{product_id}", headers=admin)
        assert response.json()["status"] == "deactivated"
        listing = client.get("/admin/products", headers=admin).json()
        assert [p["is_active"] for p in listing] == [False]

    def test_variant_lifecycle(self, client, admin, product_id):
        response = client.post(
            f"/admin/products/{product_id}/variants",
            json={"name": "Black", "price": 26.5, "detail_images": [{"data": PNG, "mime_type": "image/png"}]},
            headers=admin,
        )
        assert response.status_code == 201
        variant_id = response.json()["variant_id"]

        client.put(f"/admin/products/{product_id}/variants/{variant_id}", json={"price": 28.0}, headers=admin)
        client.put(f"/admin/products/{product_id}/variants/{variant_id}/default", headers=admin)

        detail = client.get(f"/products/{product_id}").json()
        first = detail["variants"][0]
        assert first["variant_id"] == variant_id
        assert first["price"] == 28.0
        assert len(first["detail_images"]) == 1

    def test_cannot_delete_last_variant(self, client, admin, product_id):
        variant_id = current_domain.repository_for(Product).get(product_id).default_variant.id
        response = client.delete(f"/admin/products/{product_id}/variants/{variant_id}", headers=admin)
        assert response.status_code == 422
        assert response.json()["messages"]["variants"] == ["Cannot delete the last variant"]


class TestCustomerEmails:
    def test_lists_distinct_emails(self, client, admin, buyer, other_buyer):
        data = client.get("/admin/users/emails", headers=admin).json()
        assert data["emails"] == ["other@example.com", "buyer@example.com", "admin@example.com"]


class TestRemoteOrderDiagnostics:
    def test_admin_sees_paypal_view(self, client, admin, buyer, product_id):
        order_id = client.post("/orders", json={"product_id": product_id}, headers=buyer).json()["order_id"]
        remote_id = client.post(
            "/payments/paypal/create-order", json={"order_id": order_id}, headers=buyer
        ).json()["remote_order_id"]

        response = client.get(f"/payments/paypal/orders/{remote_id}", headers=admin)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "CREATED"
        assert data["details"]["reference_id"] == order_id

    def test_customer_is_forbidden(self, client, buyer):
        assert client.get("/payments/paypal/orders/PP-1", headers=buyer).status_code == 403

    def test_unknown_remote_order_is_502(self, client, admin):
        response = client.get("/payments/paypal/orders/PP-NOPE", headers=admin)
        assert response.status_code == 502
        assert response.json()["error"] == "GatewayError"
