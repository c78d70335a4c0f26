"""Request guard: pull the session token from a request and verify it."""

from collections.abc import Mapping

from app.core.errors import InvalidTokenError, TokenError, UnauthenticatedError
from app.core.security import TokenIssuer
from app.schemas.auth import TokenClaims

BEARER_PREFIX = "bearer "


def extract_token(
    cookies: Mapping[str, str],
    authorization: str | None,
    cookie_name: str = "token",
) -> str | None:
    """Return the raw token from the auth cookie, else from 'Authorization: Bearer ...'."""
    token = cookies.get(cookie_name)
    if token and token.strip():
        return token.strip()
    if authorization and authorization[: len(BEARER_PREFIX)].lower() == BEARER_PREFIX:
        token = authorization[len(BEARER_PREFIX) :].strip()
        if token:
            return token
    return None


def authenticate(issuer: TokenIssuer, raw_token: str | None) -> TokenClaims:
    """
    Verify a raw session token and return its claims.
    Raises UnauthenticatedError when no token was supplied and InvalidTokenError
    for any expired, malformed or forged token.
    """
    if not raw_token:
        raise UnauthenticatedError()
    try:
        return issuer.verify(raw_token)
    except TokenError as e:
        raise InvalidTokenError() from e
