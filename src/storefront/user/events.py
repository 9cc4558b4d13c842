"""Domain events for the User aggregate."""

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="User")
class UserRegistered:
    """A caller was seen for the first time and a local user was created."""

    __version__ = 1

    user_id: Identifier(required=True)
    external_id: String(required=True)
    name: String()
    email: String()
    role: String(required=True)
    registered_at: DateTime(required=True)


@storefront.event(part_of="User")
class UserEmailBackfilled:
    """The identity provider supplied an email for a user that had none."""

    __version__ = 1

    user_id: Identifier(required=True)
    email: String(required=True)


@storefront.event(part_of="User")
class UserRoleChanged:
    __version__ = 1

    user_id: Identifier(required=True)
    previous_role: String(required=True)
    new_role: String(required=True)
