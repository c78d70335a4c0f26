"""ORM model for user accounts (credentials, role and password-reset state)."""

import enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String, func

from app.models.base import Base


class Role(str, enum.Enum):
    """Fixed set of account roles."""

    ADMIN = "admin"
    EDITOR = "editor"
    CONTRIBUTOR = "contributor"


class User(Base):
    """
    User account keyed by a unique, lowercased email.

    password_hash is always a bcrypt hash. reset_token_hash holds the SHA-256
    digest of the pending reset token; it and reset_token_expiry are either
    both NULL or both set.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'editor', 'contributor')",
            name="role",
        ),
        CheckConstraint(
            "(reset_token_hash IS NULL) = (reset_token_expiry IS NULL)",
            name="reset_token_pair",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    fullname = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=Role.CONTRIBUTOR.value)
    is_active = Column(Boolean, nullable=False, default=True)
    reset_token_hash = Column(String(64), nullable=True, index=True)
    reset_token_expiry = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
