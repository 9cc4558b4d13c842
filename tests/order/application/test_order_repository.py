"""Tests for OrderRepository lookups used by the back-office."""

from protean import current_domain
from storefront.order.order import Order
from storefront.order.placement import PlaceOrder
from storefront.product.management import CreateProduct
from storefront.user.resolution import ResolveUser


def _user(external_id, email):
    return current_domain.process(ResolveUser(external_id=external_id, email=email), asynchronous=False)


def _orders_for(user_id, count):
    product_id = current_domain.process(CreateProduct(name="Canvas Tote", price=24.99), asynchronous=False)
    return [
        current_domain.process(PlaceOrder(user_id=user_id, product_id=product_id), asynchronous=False)
        for _ in range(count)
    ]


def _repo():
    return current_domain.repository_for(Order)


class TestFindByExternalPaymentId:
    def test_missing_id_returns_none(self):
        assert _repo().find_by_external_payment_id("") is None
        assert _repo().find_by_external_payment_id("PP-NOPE") is None


class TestSearch:
    def test_lists_everything_newest_first(self):
        alice = _user("sub-alice", "alice@example.com")
        ids = _orders_for(alice, 3)

        page = _repo().search()
        assert page.total == 3
        assert [str(o.id) for o in page.items] == list(reversed(ids))

    def test_email_filter_is_partial_and_case_insensitive(self):
        alice = _user("sub-alice", "alice@example.com")
        bob = _user("sub-bob", "bob@example.org")
        alice_orders = _orders_for(alice, 2)
        _orders_for(bob, 1)

        page = _repo().search(email="ALICE@")
        assert {str(o.id) for o in page.items} == set(alice_orders)

    def test_unknown_email_gives_empty_page(self):
        alice = _user("sub-alice", "alice@example.com")
        _orders_for(alice, 1)
        page = _repo().search(email="nobody@")
        assert page.items == []
        assert page.total == 0
        assert page.total_pages == 1

    def test_order_id_filter(self):
        alice = _user("sub-alice", "alice@example.com")
        ids = _orders_for(alice, 3)
        page = _repo().search(order_id=ids[1])
        assert [str(o.id) for o in page.items] == [ids[1]]

    def test_pagination(self):
        alice = _user("sub-alice", "alice@example.com")
        _orders_for(alice, 5)

        first = _repo().search(page=1, page_size=2)
        last = _repo().search(page=3, page_size=2)
        assert len(first.items) == 2
        assert len(last.items) == 1
        assert first.total == 5
        assert first.total_pages == 3
