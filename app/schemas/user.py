"""Request/response schemas for profile and admin user management."""

from pydantic import BaseModel, Field

from app.models.user import Role
from app.schemas.auth import UserOut


class ProfileUpdateRequest(BaseModel):
    """Fields a user may change on their own profile; omitted fields are kept."""

    fullname: str | None = Field(default=None, description="Full name (1-100 chars)")
    email: str | None = Field(default=None, description="New email address")


class UserAdminUpdateRequest(BaseModel):
    """Privileged changes to another user's account."""

    role: Role | None = Field(default=None, description="New role")
    is_active: bool | None = Field(default=None, description="Enable or disable login")


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[UserOut]
