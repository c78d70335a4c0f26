"""Error taxonomy for the account services.

Every error carries a client-safe ``message`` and the HTTP status it maps to.
Messages never include plaintext passwords or token values.
"""


class AccountError(Exception):
    """Base class for classified account errors."""

    status_code: int = 400
    default_message: str = "Request could not be completed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AccountError):
    """Missing or malformed input; raised before the store is touched."""

    status_code = 422
    default_message = "Invalid input."


class ConflictError(AccountError):
    status_code = 409
    default_message = "Resource already exists."


class EmailTakenError(ConflictError):
    default_message = "User already exists"


class NotFoundError(AccountError):
    status_code = 404
    default_message = "Not found."


class UserNotFoundError(NotFoundError):
    default_message = "User not found"


class CredentialError(AccountError):
    """Wrong password. Never says whether the email or the password was wrong."""

    status_code = 401
    default_message = "Invalid credentials"


class InvalidCredentialsError(CredentialError):
    pass


class WrongCurrentPasswordError(CredentialError):
    status_code = 400
    default_message = "Current password is incorrect"


class ForbiddenError(AccountError):
    status_code = 403
    default_message = "Admin access required"


class TokenError(AccountError):
    """Session or reset token could not be accepted."""

    status_code = 401
    default_message = "Invalid token"


class TokenExpiredError(TokenError):
    default_message = "Token expired"


class TokenMalformedError(TokenError):
    default_message = "Malformed token"


class SignatureInvalidError(TokenError):
    default_message = "Token signature mismatch"


class UnauthenticatedError(TokenError):
    default_message = "Not authorized"


class InvalidTokenError(TokenError):
    default_message = "Invalid token"


class InvalidOrExpiredTokenError(TokenError):
    """Reset token was wrong or expired; the two cases are indistinguishable."""

    status_code = 400
    default_message = "Invalid or expired token"


class DependencyError(AccountError):
    """A collaborator (database, email transport) failed."""

    status_code = 503
    default_message = "Service temporarily unavailable."


class StoreUnavailableError(DependencyError):
    default_message = "User store is unavailable. Please try again later."


class EmailNotConfiguredError(DependencyError):
    default_message = "Email service not configured"


class EmailDeliveryError(DependencyError):
    status_code = 502
    default_message = "Failed to send email. Please try again later."
