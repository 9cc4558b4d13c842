"""FastAPI dependencies: injected collaborators and the calling user."""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from protean.utils.globals import current_domain

from storefront.config import Settings
from storefront.errors import Forbidden, Unauthenticated
from storefront.gateway.port import PaymentGateway
from storefront.order.state_machine import Actor
from storefront.user.resolution import ResolveUser
from storefront.user.user import User
from storefront.user.verifier import IdentityVerifier

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> PaymentGateway:
    return request.app.state.gateway


def get_verifier(request: Request) -> IdentityVerifier:
    return request.app.state.verifier


async def current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    verifier: IdentityVerifier = Depends(get_verifier),
) -> User:
    """Resolve the bearer token to a local user, creating the user on first sight."""
    if credentials is None:
        raise Unauthenticated("Missing bearer token", field="authorization")

    identity = verifier.verify(credentials.credentials)
    user_id = current_domain.process(
        ResolveUser(external_id=identity.external_id, name=identity.name, email=identity.email),
        asynchronous=False,
    )
    return current_domain.repository_for(User).get(user_id)


async def require_admin(user: User = Depends(current_user)) -> User:
    if not user.is_admin:
        raise Forbidden("Admin role required", field="role")
    return user


def actor_for(user: User) -> Actor:
    """The state machine actor for an authenticated user."""
    if user.is_admin:
        return Actor.admin(user.id)
    return Actor.customer(user.id)
