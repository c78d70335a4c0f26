"""Account operations: registration, login, password change, profile and role updates."""

import logging
import re

from app.core.errors import (
    ForbiddenError,
    InvalidCredentialsError,
    UserNotFoundError,
    ValidationError,
    WrongCurrentPasswordError,
)
from app.core.security import (
    EMAIL_MAX_LEN,
    FULLNAME_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    TokenIssuer,
    dummy_password_hash,
    hash_password,
    verify_password,
)
from app.models import Role, User
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")


def normalize_fullname(fullname: str | None) -> str:
    value = (fullname or "").strip()
    if not value:
        raise ValidationError("Full name is required")
    if len(value) > FULLNAME_MAX_LEN:
        raise ValidationError(
            f"Full name cannot be more than {FULLNAME_MAX_LEN} characters"
        )
    return value


def normalize_email(email: str | None) -> str:
    """Trim and lowercase an email, rejecting values that are not email-shaped."""
    value = (email or "").strip().lower()
    if not value:
        raise ValidationError("Email is required")
    if len(value) > EMAIL_MAX_LEN or not EMAIL_PATTERN.match(value):
        raise ValidationError("Please enter a valid email")
    return value


def validate_password(password: str | None) -> str:
    if not password:
        raise ValidationError("Password is required")
    if len(password) < PASSWORD_MIN_LEN:
        raise ValidationError(
            f"Password must be at least {PASSWORD_MIN_LEN} characters"
        )
    if len(password) > PASSWORD_MAX_LEN:
        raise ValidationError(
            f"Password cannot be more than {PASSWORD_MAX_LEN} characters"
        )
    return password


def register(
    store: UserStore,
    fullname: str,
    email: str,
    password: str,
    role: Role = Role.CONTRIBUTOR,
    rounds: int | None = None,
) -> User:
    """
    Create a contributor account. Input is validated before the store is
    touched; an existing email raises EmailTakenError and leaves that record as is.
    """
    fullname = normalize_fullname(fullname)
    email = normalize_email(email)
    validate_password(password)

    user = User(
        fullname=fullname,
        email=email,
        password_hash=hash_password(password, rounds),
        role=role.value,
        is_active=True,
    )
    user = store.insert(user)
    logger.info("User registered", extra={"user_id": user.id, "role": user.role})
    return user


def authenticate_user(
    store: UserStore, email: str, password: str, rounds: int | None = None
) -> User:
    """
    Check email/password and return the active user.

    Always runs bcrypt, against a dummy hash when the email is unknown, so
    response time does not reveal which emails have accounts.
    """
    try:
        normalized = normalize_email(email)
    except ValidationError:
        normalized = None
    user = store.find_by_email(normalized) if normalized else None
    if user is None:
        verify_password(password or "", dummy_password_hash(rounds))
        raise InvalidCredentialsError()
    if not verify_password(password or "", user.password_hash):
        raise InvalidCredentialsError()
    if not user.is_active:
        raise InvalidCredentialsError()
    return user


def issue_session_token(issuer: TokenIssuer, user: User) -> str:
    return issuer.issue(
        subject=user.id,
        role=user.role,
        email=user.email,
        fullname=user.fullname,
    )


def login(
    store: UserStore,
    issuer: TokenIssuer,
    email: str,
    password: str,
    rounds: int | None = None,
) -> tuple[str, User]:
    """Verify credentials and mint a session token. Raises InvalidCredentialsError."""
    try:
        user = authenticate_user(store, email, password, rounds)
    except InvalidCredentialsError:
        logger.info("Login failed")
        raise
    token = issue_session_token(issuer, user)
    logger.info("Login succeeded", extra={"user_id": user.id})
    return token, user


def get_user(store: UserStore, user_id: int) -> User:
    user = store.find_by_id(user_id)
    if user is None:
        raise UserNotFoundError()
    return user


def list_users(store: UserStore) -> list[User]:
    return store.list_users()


def change_password(
    store: UserStore,
    user_id: int,
    current_password: str,
    new_password: str,
    rounds: int | None = None,
) -> None:
    """
    Replace the password after checking the current one. Any pending reset
    token is cleared in the same update so it cannot be redeemed afterwards.
    """
    validate_password(new_password)
    user = get_user(store, user_id)
    if not verify_password(current_password or "", user.password_hash):
        raise WrongCurrentPasswordError()
    store.update_fields(
        user_id,
        {
            "password_hash": hash_password(new_password, rounds),
            "reset_token_hash": None,
            "reset_token_expiry": None,
        },
    )
    logger.info("Password changed", extra={"user_id": user_id})


def update_profile(
    store: UserStore,
    user_id: int,
    fullname: str | None = None,
    email: str | None = None,
) -> User:
    """Change fullname and/or email; the password hash is left untouched."""
    patch: dict[str, str] = {}
    if fullname is not None:
        patch["fullname"] = normalize_fullname(fullname)
    if email is not None:
        patch["email"] = normalize_email(email)
    user = store.update_fields(user_id, patch)
    if patch:
        logger.info(
            "Profile updated",
            extra={"user_id": user_id, "fields": ",".join(sorted(patch))},
        )
    return user


def update_role(
    store: UserStore,
    actor_id: int,
    user_id: int,
    role: Role | None = None,
    is_active: bool | None = None,
) -> User:
    """Admin operation: change another user's role and/or active flag."""
    if actor_id == user_id:
        raise ForbiddenError("Admins cannot change their own role or status")
    patch: dict[str, str | bool] = {}
    if role is not None:
        try:
            patch["role"] = Role(role).value
        except ValueError as e:
            raise ValidationError("Role must be one of admin, editor, contributor") from e
    if is_active is not None:
        patch["is_active"] = is_active
    user = store.update_fields(user_id, patch)
    if patch:
        logger.info(
            "User access updated",
            extra={"user_id": user_id, "actor_id": actor_id, "fields": ",".join(sorted(patch))},
        )
    return user
