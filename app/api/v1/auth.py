"""Auth endpoints (signup, login, password reset) and auth dependencies (get_current_user, require_admin)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import ForbiddenError, InvalidTokenError
from app.core.security import TokenIssuer
from app.models import Role, User
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
from app.services import accounts, password_reset
from app.services.auth_gate import authenticate, extract_token
from app.services.email import EmailSender
from app.services.user_store import UserStore

router = APIRouter()


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender


def get_user_store(db: Annotated[Session, Depends(get_db)]) -> UserStore:
    return UserStore(db)


def get_current_claims(
    request: Request,
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> TokenClaims:
    """Dependency: require a valid session token (cookie or Bearer header) and expose its claims."""
    raw_token = extract_token(
        request.cookies,
        request.headers.get("Authorization"),
        cookie_name=settings.AUTH_COOKIE_NAME,
    )
    claims = authenticate(issuer, raw_token)
    request.state.claims = claims
    return claims


def get_current_user(
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
    store: Annotated[UserStore, Depends(get_user_store)],
) -> User:
    """Dependency: like get_current_claims, but also requires the account to still exist and be active."""
    try:
        user_id = claims.user_id
    except ValueError as e:
        raise InvalidTokenError() from e
    user = store.find_by_id(user_id)
    if user is None or not user.is_active:
        raise InvalidTokenError()
    return user


def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Dependency: require an authenticated admin. Raises 403 for other roles."""
    if current_user.role != Role.ADMIN.value:
        raise ForbiddenError()
    return current_user


def _set_auth_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
        max_age=settings.JWT_EXPIRE_MINUTES * 60,
    )


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(
    body: SignupRequest,
    store: Annotated[UserStore, Depends(get_user_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> SignupResponse:
    """Create an account with role contributor."""
    user = accounts.register(
        store,
        body.fullname,
        body.email,
        body.password,
        rounds=settings.BCRYPT_ROUNDS,
    )
    return SignupResponse(user=UserOut.model_validate(user))


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    response: Response,
    store: Annotated[UserStore, Depends(get_user_store)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns a JWT access token and sets it
    as an httpOnly cookie. API clients may send it as: Authorization: Bearer <access_token>
    """
    token, user = accounts.login(
        store, issuer, body.email, body.password, rounds=settings.BCRYPT_ROUNDS
    )
    _set_auth_cookie(response, token, settings)
    response.headers["Cache-Control"] = "no-store"
    return LoginResponse(access_token=token, user=UserOut.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> MessageResponse:
    """Clear the session cookie. Issued tokens stay valid until they expire."""
    response.delete_cookie(
        settings.AUTH_COOKIE_NAME,
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )
    return MessageResponse(message="Logged out")


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    body: ForgotPasswordRequest,
    store: Annotated[UserStore, Depends(get_user_store)],
    email_sender: Annotated[EmailSender, Depends(get_email_sender)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> MessageResponse:
    """Email a single-use reset link valid for RESET_TOKEN_EXPIRE_MINUTES."""
    password_reset.request_reset(store, email_sender, body.email, settings)
    return MessageResponse(message="Password reset link sent to your email!")


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    store: Annotated[UserStore, Depends(get_user_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> MessageResponse:
    """Redeem a reset token and set a new password."""
    password_reset.redeem_reset(
        store, body.token, body.password, rounds=settings.BCRYPT_ROUNDS
    )
    return MessageResponse(message="Password reset successful")


@router.get("/me", response_model=UserOut)
def me(current_user: Annotated[User, Depends(get_current_user)]) -> UserOut:
    """Return the authenticated user's profile."""
    return UserOut.model_validate(current_user)


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[UserStore, Depends(get_user_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> MessageResponse:
    accounts.change_password(
        store,
        current_user.id,
        body.current_password,
        body.new_password,
        rounds=settings.BCRYPT_ROUNDS,
    )
    return MessageResponse(message="Password changed successfully")
