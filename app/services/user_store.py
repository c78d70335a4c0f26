"""Credential store: persistence for user records on top of a SQLAlchemy session.

No business rules live here. Callers hash passwords and validate input before
writing. Every mutation is a single UPDATE/INSERT so it is atomic per record;
reset-token changes are conditional (compare-and-set) so concurrent requests
cannot resurrect or clobber each other's token state.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.core.errors import (
    ConflictError,
    EmailTakenError,
    StoreUnavailableError,
    UserNotFoundError,
)
from app.models import User

logger = logging.getLogger(__name__)

# Columns update_fields may touch; anything else is a programming error.
UPDATABLE_FIELDS = frozenset(
    {
        "fullname",
        "email",
        "password_hash",
        "role",
        "is_active",
        "reset_token_hash",
        "reset_token_expiry",
    }
)


class UserStore:
    """Repository for User records bound to one request-scoped session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def _write(self) -> Iterator[None]:
        """Commit on success; roll back and classify database errors."""
        try:
            yield
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            if "email" in str(e.orig).lower():
                raise EmailTakenError() from e
            raise ConflictError("User record violates a store constraint") from e
        except OperationalError as e:
            self.session.rollback()
            logger.error("User store write failed: %s", type(e).__name__)
            raise StoreUnavailableError() from e

    @contextmanager
    def _read(self) -> Iterator[None]:
        try:
            yield
        except OperationalError as e:
            self.session.rollback()
            logger.error("User store read failed: %s", type(e).__name__)
            raise StoreUnavailableError() from e

    def find_by_email(self, email: str) -> User | None:
        """Look up a user by email (case-insensitive; emails are stored lowercased)."""
        with self._read():
            return (
                self.session.query(User)
                .filter(User.email == email.strip().lower())
                .first()
            )

    def find_by_id(self, user_id: int) -> User | None:
        with self._read():
            return self.session.get(User, user_id)

    def list_users(self) -> list[User]:
        """Return all users ordered by id."""
        with self._read():
            return self.session.query(User).order_by(User.id).all()

    def insert(self, user: User) -> User:
        """Insert a new user; raises EmailTakenError if the email is already present."""
        with self._write():
            self.session.add(user)
        self.session.refresh(user)
        return user

    def update_fields(self, user_id: int, patch: dict[str, Any]) -> User:
        """Apply a field patch to one user in a single UPDATE and return the fresh record."""
        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")
        if not patch:
            user = self.find_by_id(user_id)
            if user is None:
                raise UserNotFoundError()
            return user
        with self._write():
            updated = (
                self.session.query(User)
                .filter(User.id == user_id)
                .update(patch, synchronize_session=False)
            )
        if updated == 0:
            raise UserNotFoundError()
        user = self.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        self.session.refresh(user)
        return user

    def set_reset_token(self, user_id: int, token_hash: str, expiry: datetime) -> None:
        """Store a pending reset token digest and its expiry, replacing any previous one."""
        self.update_fields(
            user_id,
            {"reset_token_hash": token_hash, "reset_token_expiry": expiry},
        )

    def clear_reset_token(self, user_id: int, token_hash: str) -> bool:
        """
        Clear the reset fields only if they still hold token_hash.
        Returns False when a newer request already replaced the token.
        """
        with self._write():
            updated = (
                self.session.query(User)
                .filter(User.id == user_id, User.reset_token_hash == token_hash)
                .update(
                    {"reset_token_hash": None, "reset_token_expiry": None},
                    synchronize_session=False,
                )
            )
        return updated == 1

    def redeem_reset_token(
        self, token_hash: str, password_hash: str, now: datetime
    ) -> int | None:
        """
        Set password_hash and clear reset state for the user holding an unexpired
        token_hash, in one conditional UPDATE. Returns the user id, or None when
        no record matched (wrong token or expired).
        """
        with self._read():
            user_id = (
                self.session.query(User.id)
                .filter(
                    User.reset_token_hash == token_hash,
                    User.reset_token_expiry > now,
                )
                .limit(1)
                .scalar()
            )
        if user_id is None:
            return None
        with self._write():
            updated = (
                self.session.query(User)
                .filter(
                    User.id == user_id,
                    User.reset_token_hash == token_hash,
                    User.reset_token_expiry > now,
                )
                .update(
                    {
                        "password_hash": password_hash,
                        "reset_token_hash": None,
                        "reset_token_expiry": None,
                    },
                    synchronize_session=False,
                )
            )
        return user_id if updated == 1 else None

    def purge_expired_reset_tokens(self, now: datetime) -> int:
        """Clear reset fields whose expiry has passed. Returns rows cleared."""
        with self._write():
            cleared = (
                self.session.query(User)
                .filter(
                    User.reset_token_expiry.is_not(None),
                    User.reset_token_expiry <= now,
                )
                .update(
                    {"reset_token_hash": None, "reset_token_expiry": None},
                    synchronize_session=False,
                )
            )
        return cleared
