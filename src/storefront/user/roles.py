"""Role changes. Only reachable from the management CLI."""

from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import NotFound
from storefront.user.user import Role, User


@storefront.command(part_of="User")
class GrantRole:
    """Give the user identified by ``external_id`` a new role."""

    external_id: String(required=True, max_length=255)
    role: String(required=True, choices=Role)


@storefront.command_handler(part_of=User)
class GrantRoleHandler:
    @handle(GrantRole)
    def grant_role(self, command):
        repo = current_domain.repository_for(User)
        user = repo.find_by_external_id(command.external_id)
        if user is None:
            raise NotFound(f"No user with external id {command.external_id}", field="user")

        user.change_role(command.role)
        repo.add(user)
        return str(user.id)
