"""Resolve a verified caller identity to a local user, creating it on first sight."""

import structlog
from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.user.user import User

logger = structlog.get_logger(__name__)


@storefront.command(part_of="User")
class ResolveUser:
    external_id: String(required=True, max_length=255)
    name: String(max_length=255)
    email: String(max_length=254)


@storefront.command_handler(part_of=User)
class ResolveUserHandler:
    @handle(ResolveUser)
    def resolve_user(self, command):
        repo = current_domain.repository_for(User)
        user = repo.find_by_external_id(command.external_id)

        if user is None:
            user = User.register(
                external_id=command.external_id,
                name=command.name,
                email=command.email,
            )
            repo.add(user)
            logger.info("user_registered", user_id=str(user.id), external_id=command.external_id)
        elif user.backfill_email(command.email):
            repo.add(user)

        return str(user.id)
