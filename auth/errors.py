"""
auth/errors.py -- Tagged error types for the authentication core.

Two layers of failure exist and they must never be confused:

  TokenError -- raised by the token codec. Carries the precise TokenFailure
      (malformed, bad signature, expired). It is internal to auth/ and is
      collapsed into an AuthError before crossing the service boundary, so
      callers cannot use the distinction as an oracle.

  AuthError -- the only error the service layer raises outward. Carries an
      ErrorKind discriminant that the API layer maps to an HTTP status. Code
      matches on .kind, never on the message text.

HashingFailure and SigningFailure wrap primitive errors from bcrypt and the
JWT library. DuplicateKeyError is the store's "unique constraint violated"
signal, translated from sqlalchemy's IntegrityError.

Layer rule: no imports from api/, core/, or third-party libraries.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    PASSWORD_POLICY = "password_policy"
    EMAIL_TAKEN = "email_taken"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    INVALID_PASSWORD = "invalid_password"
    INTERNAL = "internal"


class TokenFailure(str, Enum):
    MALFORMED = "malformed"
    SIGNATURE_INVALID = "signature_invalid"
    EXPIRED = "expired"


class AuthError(Exception):
    """A caller-facing authentication failure.

    field is set only for user-correctable input errors (password policy),
    so the API layer can return a field-keyed message.
    """

    def __init__(self, kind: ErrorKind, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.field = field

    def __repr__(self) -> str:
        return f"AuthError(kind={self.kind.value!r}, message={self.message!r})"


class TokenError(Exception):
    """Token decode failure. Never leaves auth/ without being collapsed."""

    def __init__(self, failure: TokenFailure) -> None:
        super().__init__(failure.value)
        self.failure = failure


class HashingFailure(Exception):
    """The password hashing primitive rejected its input or failed internally."""


class SigningFailure(Exception):
    """The JWT library failed to sign a claims set."""


class DuplicateKeyError(Exception):
    """A store write violated a unique constraint (e.g. email already registered)."""


# Messages shown to clients. Kept here so the service and the API layer agree
# on one wording per failure class.
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
INVALID_REFRESH_MESSAGE = "Invalid or expired refresh token"
UNAUTHENTICATED_MESSAGE = "Invalid or expired token"
EMAIL_TAKEN_MESSAGE = "User with this email already exists"
