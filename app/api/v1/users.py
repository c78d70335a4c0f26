"""Profile self-service and admin user management."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.v1.auth import get_current_user, get_user_store, require_admin
from app.models import User
from app.schemas.auth import UserOut
from app.schemas.user import ProfileUpdateRequest, UserAdminUpdateRequest, UsersListResponse
from app.services import accounts
from app.services.user_store import UserStore

router = APIRouter()


@router.patch("/me", response_model=UserOut)
def update_me(
    body: ProfileUpdateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[UserStore, Depends(get_user_store)],
) -> UserOut:
    """Update the caller's fullname and/or email. A new session token is needed to see them in claims."""
    user = accounts.update_profile(
        store, current_user.id, fullname=body.fullname, email=body.email
    )
    return UserOut.model_validate(user)


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[User, Depends(require_admin)],
    store: Annotated[UserStore, Depends(get_user_store)],
) -> UsersListResponse:
    """List all users (admin only)."""
    users = accounts.list_users(store)
    return UsersListResponse(users=[UserOut.model_validate(u) for u in users])


@router.patch("/{user_id}", response_model=UserOut)
def update_user_access(
    user_id: int,
    body: UserAdminUpdateRequest,
    admin: Annotated[User, Depends(require_admin)],
    store: Annotated[UserStore, Depends(get_user_store)],
) -> UserOut:
    """Change another user's role and/or active flag (admin only)."""
    user = accounts.update_role(
        store,
        actor_id=admin.id,
        user_id=user_id,
        role=body.role,
        is_active=body.is_active,
    )
    return UserOut.model_validate(user)
