"""
auth/service.py -- Authentication orchestrator.

Composes the credential verifier, password policy, token codec, session
issuer/validator and identity store into the externally visible operations:

  register        -- policy check, create identity, issue pair
  login           -- verify credentials (timing-equalized), issue pair
  refresh         -- validate refresh token, reload identity, issue a NEW pair
  identify        -- validate access token, reload identity
  logout          -- nothing server-side; the route clears the carriers
  update_profile  -- change name / avatar
  change_password -- verify current password, enforce policy, re-hash

Error contract: every method raises AuthError only. Token-level detail is
collapsed to INVALID_CREDENTIALS (refresh) or UNAUTHENTICATED (identify).
Store failures other than a duplicate email surface as INTERNAL without retry.

The service holds no mutable state. It is built once at startup with the
store and the two signing keys and shared across requests.

Layer rule: no imports from api/. Settings are passed in, never read here.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from auth.errors import (
    EMAIL_TAKEN_MESSAGE,
    INVALID_CREDENTIALS_MESSAGE,
    INVALID_REFRESH_MESSAGE,
    AuthError,
    DuplicateKeyError,
    ErrorKind,
    HashingFailure,
    SigningFailure,
)
from auth.models import Identity, PlaintextSecret, Role
from auth.passwords import burn_verification, hash_password, verify_password
from auth.policy import check_password_policy, normalize_email, normalize_name
from auth.sessions import TokenPair, issue_pair, validate_token
from auth.store import UserStore
from auth.tokens import SigningKeys, TokenDomain

logger = logging.getLogger("sessiongate.auth")


class AuthService:
    """Stateless orchestrator shared by all requests.

    Usage:
        service = AuthService(UserStore(url), SigningKeys.from_settings(settings))
        identity, pair = service.register("Ann", "ann@x.com", "Passw0rd!")
    """

    def __init__(self, store: UserStore, keys: SigningKeys) -> None:
        self.store = store
        self.keys = keys

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def register(self, name: str, email: str, password: str) -> tuple[Identity, TokenPair]:
        """Create an identity and issue its first token pair.

        Raises:
            AuthError(PASSWORD_POLICY): first failing policy rule, field="password".
            AuthError(EMAIL_TAKEN):     normalized email already registered.
            AuthError(INTERNAL):        hashing, signing or store failure.
        """
        check_password_policy(password)
        email = normalize_email(email)

        if self._call_store(self.store.get_by_email, email) is not None:
            raise AuthError(ErrorKind.EMAIL_TAKEN, EMAIL_TAKEN_MESSAGE, field="email")

        identity = Identity(
            name=normalize_name(name),
            email=email,
            hashed_password=self._hash(password),
        )
        try:
            self._call_store(self.store.create_user, identity)
        except DuplicateKeyError:
            # Lost a race with a concurrent registration for the same email.
            raise AuthError(ErrorKind.EMAIL_TAKEN, EMAIL_TAKEN_MESSAGE, field="email") from None

        logger.info("Registered identity %s", identity.id)
        return identity, self._issue(identity)

    def login(self, email: str, password: str) -> tuple[Identity, TokenPair]:
        """Authenticate by email + password and issue a token pair.

        Always runs bcrypt once whether or not the email exists: an unknown
        email is checked against a dummy hash so both failure paths cost the
        same. Both return the identical INVALID_CREDENTIALS error.
        """
        secret = PlaintextSecret(password)
        identity = self._call_store(self.store.get_by_email, normalize_email(email))
        if identity is None:
            burn_verification(secret)
            logger.info("Login failed")
            raise AuthError(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)
        if not verify_password(secret, identity.hashed_password):
            logger.info("Login failed")
            raise AuthError(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        logger.info("Login succeeded for identity %s", identity.id)
        return identity, self._issue(identity)

    def refresh(self, refresh_token: str | None) -> tuple[Identity, TokenPair]:
        """Rotate: validate a refresh-domain token and issue a brand new pair.

        The old pair is not invalidated (there is no server-side state to
        invalidate); the new pair simply supersedes it on the client.
        """
        if not refresh_token:
            raise AuthError(ErrorKind.INVALID_CREDENTIALS, INVALID_REFRESH_MESSAGE)
        try:
            claims = validate_token(refresh_token, TokenDomain.REFRESH, self.keys)
        except AuthError:
            raise AuthError(ErrorKind.INVALID_CREDENTIALS, INVALID_REFRESH_MESSAGE) from None

        identity = self._call_store(self.store.get_by_id, claims.subject)
        if identity is None:
            raise AuthError(ErrorKind.INVALID_CREDENTIALS, INVALID_REFRESH_MESSAGE)
        return identity, self._issue(identity)

    def identify(self, access_token: str | None) -> Identity:
        """Resolve the identity behind an access-domain token.

        Raises:
            AuthError(UNAUTHENTICATED): missing, malformed, forged or expired token.
            AuthError(NOT_FOUND):       token valid but the identity is gone.
        """
        if not access_token:
            raise AuthError(ErrorKind.UNAUTHENTICATED, "Unauthorized")
        claims = validate_token(access_token, TokenDomain.ACCESS, self.keys)
        identity = self._call_store(self.store.get_by_id, claims.subject)
        if identity is None:
            raise AuthError(ErrorKind.NOT_FOUND, "User not found")
        return identity

    def logout(self) -> None:
        """Stateless sessions: nothing to do server-side. Always succeeds."""
        logger.debug("Logout requested")

    def update_profile(self, identity: Identity, name: str | None = None, avatar: str | None = None) -> Identity:
        """Change display name and/or avatar of `identity`; return the fresh record."""
        fields: dict = {}
        if name is not None:
            fields["name"] = normalize_name(name)
        if avatar is not None:
            fields["avatar"] = avatar or None
        if not self._call_store(self.store.update_profile, identity.id, **fields):
            raise AuthError(ErrorKind.NOT_FOUND, "User not found")
        updated = self._call_store(self.store.get_by_id, identity.id)
        if updated is None:
            raise AuthError(ErrorKind.NOT_FOUND, "User not found")
        return updated

    def change_password(self, identity: Identity, current_password: str, new_password: str) -> None:
        """Replace the password after proving knowledge of the current one.

        Raises:
            AuthError(INVALID_PASSWORD): current password does not match.
            AuthError(PASSWORD_POLICY):  new password fails policy, field="newPassword".
        """
        if not verify_password(PlaintextSecret(current_password), identity.hashed_password):
            raise AuthError(ErrorKind.INVALID_PASSWORD, "Current password is incorrect", field="currentPassword")
        check_password_policy(new_password, field="newPassword")
        if not self._call_store(self.store.update_password, identity.id, self._hash(new_password)):
            raise AuthError(ErrorKind.NOT_FOUND, "User not found")
        logger.info("Password changed for identity %s", identity.id)

    def ensure_super_admin(self, name: str, email: str, password: str) -> Identity:
        """Create a super_admin identity unless one with this email exists. Idempotent.

        The seed password is not run through the registration policy; it is
        operator-supplied configuration, not user input.
        """
        email = normalize_email(email)
        existing = self._call_store(self.store.get_by_email, email)
        if existing is not None:
            return existing
        identity = Identity(
            name=normalize_name(name),
            email=email,
            hashed_password=self._hash(password),
            role=Role.SUPER_ADMIN,
        )
        try:
            self._call_store(self.store.create_user, identity)
        except DuplicateKeyError:
            existing = self._call_store(self.store.get_by_email, email)
            if existing is None:
                raise AuthError(ErrorKind.INTERNAL, "Super admin seed failed") from None
            return existing
        logger.info("Seeded super admin %s", identity.id)
        return identity

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _issue(self, identity: Identity) -> TokenPair:
        try:
            return issue_pair(identity, self.keys)
        except SigningFailure as exc:
            logger.error("Token signing failed: %s", exc)
            raise AuthError(ErrorKind.INTERNAL, "Internal server error") from exc

    @staticmethod
    def _hash(password: str):
        try:
            return hash_password(PlaintextSecret(password))
        except HashingFailure as exc:
            logger.warning("Password hashing failed: %s", exc)
            raise AuthError(ErrorKind.INTERNAL, "Internal server error") from exc

    @staticmethod
    def _call_store(method, *args, **kwargs):
        """Invoke a store method, passing DuplicateKeyError through and wrapping other DB errors."""
        try:
            return method(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.error("Identity store failure in %s: %s", method.__name__, exc)
            raise AuthError(ErrorKind.INTERNAL, "Internal server error") from exc
