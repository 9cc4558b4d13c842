"""Catalog lookups beyond get-by-id."""

from storefront.domain import storefront
from storefront.product.product import Product


@storefront.repository(part_of=Product)
class ProductRepository:
    def list_active(self, category: str | None = None) -> list[Product]:
        """Products visible on the storefront, newest first."""
        query = self._dao.query.filter(is_active=True)
        if category:
            query = query.filter(category=category)
        return query.order_by("-created_at").all().items

    def list_all(self) -> list[Product]:
        """Every product including deactivated ones, for the back-office."""
        return self._dao.query.order_by("-created_at").all().items

    def with_ids(self, ids) -> list[Product]:
        """Products by id, active or not. Orders keep referencing deactivated products."""
        if not ids:
            return []
        return self._dao.query.filter(id__in=[str(i) for i in ids]).all().items
