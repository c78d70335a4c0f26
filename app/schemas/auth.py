"""Request/response schemas for auth endpoints and session token claims."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.user import Role


class SignupRequest(BaseModel):
    """New account details. Field rules are enforced by the account service."""

    fullname: str = Field(..., description="Full name (1-100 chars)")
    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password (6-128 chars)")


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., description="Email address of the account to reset")


class ResetPasswordRequest(BaseModel):
    """Reset token from the email link plus the new password."""

    token: str = Field(..., description="Reset token from the emailed link")
    password: str = Field(..., description="New password (6-128 chars)")


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., description="Current password")
    new_password: str = Field(..., description="New password (6-128 chars)")


class UserOut(BaseModel):
    """Public view of a user record (no password hash or reset state)."""

    id: int
    fullname: str
    email: str
    role: Role
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str = Field(..., description="Human-readable outcome")


class SignupResponse(BaseModel):
    """Response for POST /auth/signup."""

    message: str = Field(default="User created successfully")
    user: UserOut


class LoginResponse(BaseModel):
    """JWT access token returned after successful login (also set as a cookie)."""

    message: str = Field(default="Login successful")
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserOut


class TokenClaims(BaseModel):
    """Decoded session token payload."""

    subject: str = Field(..., min_length=1, description="User id")
    role: Role
    email: str
    fullname: str = ""
    issued_at: datetime
    expires_at: datetime

    @property
    def user_id(self) -> int:
        return int(self.subject)
