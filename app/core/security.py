"""Password hashing and JWT session token issuance/verification."""

import hashlib
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import bcrypt
import jwt
from pydantic import ValidationError as PydanticValidationError

from app.core.config import Settings, settings
from app.core.errors import (
    SignatureInvalidError,
    TokenExpiredError,
    TokenMalformedError,
)
from app.schemas.auth import TokenClaims

# Min/max lengths for account fields (input validation).
FULLNAME_MAX_LEN = 100
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

# bcrypt only looks at the first 72 bytes of the password.
BCRYPT_MAX_BYTES = 72

REQUIRED_TOKEN_CLAIMS = ["sub", "role", "email", "exp", "iat"]


def utcnow() -> datetime:
    """Default clock: aware UTC wall time."""
    return datetime.now(UTC)


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    cost = rounds if rounds is not None else settings.BCRYPT_ROUNDS
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache
def dummy_password_hash(rounds: int | None = None) -> str:
    """Hash checked when an email is unknown, so login timing does not reveal it."""
    return hash_password("projectlv-timing-dummy", rounds)


def hash_reset_token(token: str) -> str:
    """SHA-256 hex digest stored in place of the raw reset token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TokenIssuer:
    """
    Signs and verifies session tokens with a server-held symmetric secret.

    Build one per process from settings (see from_settings) and pass it to
    whatever needs to mint or check tokens.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(minutes=60),
    ) -> None:
        if not secret:
            raise ValueError("Token signing secret must be non-empty")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    @classmethod
    def from_settings(cls, s: Settings) -> "TokenIssuer":
        return cls(
            secret=s.JWT_SECRET.get_secret_value(),
            algorithm=s.JWT_ALGORITHM,
            ttl=timedelta(minutes=s.JWT_EXPIRE_MINUTES),
        )

    def issue(
        self,
        subject: str | int,
        role: str,
        email: str,
        fullname: str,
        ttl: timedelta | None = None,
        now: datetime | None = None,
    ) -> str:
        """Create a signed JWT carrying the user's identity and an expiry."""
        issued_at = now or utcnow()
        expire = issued_at + (ttl if ttl is not None else self.ttl)
        payload: dict[str, Any] = {
            "sub": str(subject),
            "role": role,
            "email": email,
            "fullname": fullname,
            "iat": issued_at,
            "exp": expire,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate a JWT and return its claims.
        Raises TokenExpiredError, SignatureInvalidError or TokenMalformedError.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": REQUIRED_TOKEN_CLAIMS},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError() from e
        except jwt.InvalidSignatureError as e:
            raise SignatureInvalidError() from e
        except jwt.PyJWTError as e:
            raise TokenMalformedError() from e

        try:
            return TokenClaims(
                subject=payload["sub"],
                role=payload["role"],
                email=payload["email"],
                fullname=payload.get("fullname", ""),
                issued_at=datetime.fromtimestamp(payload["iat"], UTC),
                expires_at=datetime.fromtimestamp(payload["exp"], UTC),
            )
        except (PydanticValidationError, TypeError, ValueError, OverflowError) as e:
            raise TokenMalformedError() from e
