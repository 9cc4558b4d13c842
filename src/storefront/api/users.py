"""Endpoints about the calling user."""

from fastapi import APIRouter, Depends

from storefront.api.deps import current_user
from storefront.api.schemas import UserResponse
from storefront.user.user import User

user_router = APIRouter(prefix="/users", tags=["users"])


def user_response(user: User) -> UserResponse:
    return UserResponse(
        user_id=str(user.id),
        external_id=user.external_id,
        name=user.name,
        email=user.email,
        role=user.role,
    )


@user_router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(current_user)) -> UserResponse:
    """The local record for the bearer of the token, created on first sight."""
    return user_response(user)
