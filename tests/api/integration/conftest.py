import time

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from protean import current_domain
from storefront.api import create_app
from storefront.config import IdentityConfig, PayPalConfig, Settings
from storefront.gateway.fake_adapter import TEST_SIGNATURE, FakeGateway
from storefront.product.management import CreateProduct
from storefront.user.roles import GrantRole

JWT_SECRET = "test-secret"
WEBHOOK_HEADERS = {"PayPal-Transmission-Sig": TEST_SIGNATURE}


def make_token(sub, name=None, email=None):
    claims = {"sub": sub, "exp": int(time.time()) + 300}
    if name:
        claims["name"] = name
    if email:
        claims["email"] = email
    return jwt.encode(claims, JWT_SECRET, algorithm="HS256")


def auth(sub, email=None):
    return {"Authorization": f"Bearer {make_token(sub, email=email)}"}


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def client(gateway):
    settings = Settings(
        environment="test",
        paypal=PayPalConfig(webhook_id="WH-TEST"),
        identity=IdentityConfig(key=JWT_SECRET),
    )
    return TestClient(create_app(settings, gateway=gateway))


@pytest.fixture()
def buyer(client):
    """Headers for a customer, registered through their first request."""
    headers = auth("sub-buyer", email="buyer@example.com")
    assert client.get("/users/me", headers=headers).status_code == 200
    return headers


@pytest.fixture()
def other_buyer(client):
    headers = auth("sub-other", email="other@example.com")
    assert client.get("/users/me", headers=headers).status_code == 200
    return headers


@pytest.fixture()
def admin(client):
    headers = auth("sub-admin", email="admin@example.com")
    assert client.get("/users/me", headers=headers).status_code == 200
    current_domain.process(GrantRole(external_id="sub-admin", role="admin"), asynchronous=False)
    return headers


@pytest.fixture()
def product_id():
    return current_domain.process(
        CreateProduct(name="Canvas Tote", price=24.99, category="bags", variant_name="Natural"),
        asynchronous=False,
    )


@pytest.fixture()
def auth_for():
    """Build bearer headers for an arbitrary identity."""
    return auth


@pytest.fixture()
def webhook_headers():
    return dict(WEBHOOK_HEADERS)
