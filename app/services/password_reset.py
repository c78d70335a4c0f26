"""
Password reset protocol: single-use, time-bounded reset tokens.

Per user: no pending reset -> pending (token digest + expiry stored) ->
redeemed, expired, or invalidated when the email could not be sent. Only the
SHA-256 digest of a token is persisted; the raw token exists only in the email.
"""

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from app.core.errors import (
    EmailNotConfiguredError,
    InvalidOrExpiredTokenError,
    UserNotFoundError,
)
from app.core.security import hash_password, hash_reset_token, utcnow
from app.services.accounts import normalize_email, validate_password
from app.services.email import EmailSender, build_reset_link, render_reset_email
from app.services.user_store import UserStore

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def generate_reset_token(num_bytes: int = 20) -> str:
    """Cryptographically random hex token (2 chars per byte)."""
    return secrets.token_hex(num_bytes)


def request_reset(
    store: UserStore,
    email_sender: EmailSender,
    email: str,
    settings: "Settings",
    clock: Clock = utcnow,
) -> str:
    """
    Start a reset for the account owning email and send the reset link.

    Returns the raw token (for callers that deliver it themselves, e.g. tests);
    route handlers must not echo it to the client. If sending fails for any
    reason the token is cleared before the error propagates, so no token stays
    live without a delivered email.
    """
    if not email_sender.is_configured:
        raise EmailNotConfiguredError()

    user = store.find_by_email(normalize_email(email))
    if user is None:
        raise UserNotFoundError()

    token = generate_reset_token(settings.RESET_TOKEN_BYTES)
    token_hash = hash_reset_token(token)
    expiry = clock() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    store.set_reset_token(user.id, token_hash, expiry)

    subject, body = render_reset_email(
        fullname=user.fullname,
        reset_link=build_reset_link(settings.FRONTEND_URL, token),
        product_name=settings.EMAIL_PRODUCT_NAME,
        expire_minutes=settings.RESET_TOKEN_EXPIRE_MINUTES,
    )
    try:
        email_sender.send(user.email, subject, body)
    except Exception:
        store.clear_reset_token(user.id, token_hash)
        logger.warning("Reset token invalidated after email failure", extra={"user_id": user.id})
        raise

    logger.info("Password reset requested", extra={"user_id": user.id})
    return token


def redeem_reset(
    store: UserStore,
    token: str,
    new_password: str,
    clock: Clock = utcnow,
    rounds: int | None = None,
) -> None:
    """
    Set a new password using a pending reset token.

    Wrong and expired tokens fail identically with InvalidOrExpiredTokenError.
    The new hash and the cleared reset fields are written in one update.
    """
    validate_password(new_password)
    if not token or not token.strip():
        raise InvalidOrExpiredTokenError()
    user_id = store.redeem_reset_token(
        token_hash=hash_reset_token(token.strip()),
        password_hash=hash_password(new_password, rounds),
        now=clock(),
    )
    if user_id is None:
        logger.info("Password reset rejected")
        raise InvalidOrExpiredTokenError()
    logger.info("Password reset redeemed", extra={"user_id": user_id})


def purge_expired_reset_tokens(store: UserStore, clock: Clock = utcnow) -> int:
    """Clear reset state whose expiry has passed. Idempotent; safe to run repeatedly."""
    now = clock()
    cleared = store.purge_expired_reset_tokens(now)
    if cleared > 0:
        logger.info(
            "Expired reset tokens purged: cutoff=%s, cleared=%s",
            now.isoformat(),
            cleared,
        )
    return cleared
