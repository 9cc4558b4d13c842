"""Order lookups beyond get-by-id."""

from dataclasses import dataclass

from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@dataclass(frozen=True)
class OrderPage:
    items: list
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return max(1, -(-self.total // self.page_size))


@storefront.repository(part_of=Order)
class OrderRepository:
    """Repository for the Order aggregate.

    ``add`` and ``get`` come from the base repository. Each command handler
    loads one order, lets the aggregate decide, and adds it back inside the
    same unit of work, so guards always run against freshly loaded state.
    """

    def find_by_external_payment_id(self, external_payment_order_id: str) -> Order | None:
        """Find the order carrying PayPal's order id, if any."""
        if not external_payment_order_id:
            return None
        return self._dao.query.filter(external_payment_order_id=external_payment_order_id).all().first

    def for_user(self, user_id: str) -> list[Order]:
        """All orders placed by ``user_id``, newest first."""
        return self._dao.query.filter(user_id=str(user_id)).order_by("-created_at").all().items

    def search(
        self,
        email: str | None = None,
        order_id: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> OrderPage:
        """Admin order listing, newest first.

        ``email`` matches any part of the buyer's email address, ``order_id``
        must match exactly.
        """
        from storefront.user.user import User

        page = max(1, page)
        query = self._dao.query

        if order_id:
            query = query.filter(id=order_id)

        if email:
            users = current_domain.repository_for(User).email_matches(email)
            if not users:
                return OrderPage(items=[], total=0, page=page, page_size=page_size)
            query = query.filter(user_id__in=[str(u.id) for u in users])

        results = query.order_by("-created_at").offset((page - 1) * page_size).limit(page_size).all()
        return OrderPage(items=results.items, total=results.total, page=page, page_size=page_size)
