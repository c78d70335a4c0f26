"""Pydantic request/response schemas."""

from app.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    SignupResponse,
    TokenClaims,
    UserOut,
)
from app.schemas.health import HealthResponse
from app.schemas.user import (
    ProfileUpdateRequest,
    UserAdminUpdateRequest,
    UsersListResponse,
)

__all__ = [
    "ChangePasswordRequest",
    "ForgotPasswordRequest",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "ProfileUpdateRequest",
    "ResetPasswordRequest",
    "SignupRequest",
    "SignupResponse",
    "TokenClaims",
    "UserAdminUpdateRequest",
    "UserOut",
    "UsersListResponse",
]
