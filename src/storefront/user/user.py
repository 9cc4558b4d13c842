"""User aggregate: the local anchor for an externally verified identity."""

from datetime import datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, String

from storefront.domain import storefront


class Role(Enum):
    """Enumeration of user roles."""

    CUSTOMER = "customer"
    ADMIN = "admin"


@storefront.aggregate
class User:
    """A person known to the storefront, keyed by the identity provider's subject.

    Users are created lazily on their first authenticated request and are only
    ever changed to backfill a missing email or to have their role granted
    from the management CLI.
    """

    external_id: String(required=True, max_length=255, unique=True)
    name: String(max_length=255)
    email: String(max_length=254)
    role: String(choices=Role, default=Role.CUSTOMER.value)
    registered_at: DateTime(default=datetime.now)

    @invariant.post
    def email_must_look_like_an_address(self):
        if self.email and "@" not in self.email:
            raise ValidationError({"email": [f"Invalid email address: {self.email}"]})

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    @classmethod
    def register(cls, external_id, name=None, email=None):
        from storefront.user.events import UserRegistered

        now = datetime.now()
        user = cls(
            external_id=external_id,
            name=name or None,
            email=email or None,
            role=Role.CUSTOMER.value,
            registered_at=now,
        )
        user.raise_(
            UserRegistered(
                user_id=user.id,
                external_id=external_id,
                name=user.name,
                email=user.email,
                role=user.role,
                registered_at=now,
            )
        )
        return user

    def backfill_email(self, email) -> bool:
        """Record ``email`` if none is known yet. An existing email is never replaced."""
        from storefront.user.events import UserEmailBackfilled

        if self.email or not email:
            return False

        self.email = email
        self.raise_(UserEmailBackfilled(user_id=self.id, email=email))
        return True

    def change_role(self, role):
        from storefront.user.events import UserRoleChanged

        if role not in {r.value for r in Role}:
            raise ValidationError({"role": [f"Unknown role: {role}"]})
        if role == self.role:
            return

        previous = self.role
        self.role = role
        self.raise_(UserRoleChanged(user_id=self.id, previous_role=previous, new_role=role))
