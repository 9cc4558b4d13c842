"""User lookups beyond get-by-id."""

from storefront.domain import storefront
from storefront.user.user import User


@storefront.repository(part_of=User)
class UserRepository:
    def find_by_external_id(self, external_id: str) -> User | None:
        return self._dao.query.filter(external_id=external_id).all().first

    def customer_emails(self) -> list[str]:
        """Distinct, non-empty email addresses of all users, sorted descending."""
        users = self._dao.query.all().items
        return sorted({u.email for u in users if u.email}, reverse=True)

    def with_ids(self, ids) -> list[User]:
        if not ids:
            return []
        return self._dao.query.filter(id__in=[str(i) for i in ids]).all().items

    def email_matches(self, fragment: str) -> list[User]:
        """Users whose email contains ``fragment``, ignoring case."""
        return self._dao.query.filter(email__icontains=fragment).all().items
