"""
auth/tokens.py -- JWT codec with two independent signing domains.

Security design decisions:
  JWT: python-jose with HS256. Compact serialization (three dot-separated
       base64url segments), so tokens are byte-compatible with any standard
       JWT client. Payload carries sub (identity UUID), email, iat, exp as
       Unix timestamps.

  Signing domains: access tokens and refresh tokens are signed with
       different secrets. Each secret travels inside a SigningKey that also
       names its TokenDomain, and SigningKeys holds exactly two attributes
       (access, refresh). There is no string-keyed lookup, so a caller cannot
       fall back to the wrong secret by mistyping a key. A token signed in one
       domain fails signature verification in the other.

  Decode failures are typed: TokenError(MALFORMED | SIGNATURE_INVALID |
       EXPIRED). The distinction exists for logging and tests only; the
       session validator collapses all three before anything leaves auth/.

  Expiry is checked here, at decode time, as `now >= exp`. No leeway and no
       clock-skew compensation. A ttl of 0 yields a token that is already
       expired.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum

from jose import JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.errors import SigningFailure, TokenError, TokenFailure

logger = logging.getLogger("sessiongate.auth")

_ALGORITHM = "HS256"


class TokenDomain(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class SigningKey:
    """A signing secret bound to the domain it may be used for.

    ttl_seconds is the default lifetime for tokens minted with this key.
    The secret is excluded from repr so it never lands in a log line.
    """

    domain: TokenDomain
    secret: str = field(repr=False)
    ttl_seconds: int


@dataclass(frozen=True)
class SigningKeys:
    """The access-domain and refresh-domain keys, held as two named handles."""

    access: SigningKey
    refresh: SigningKey

    def __post_init__(self) -> None:
        if self.access.domain is not TokenDomain.ACCESS:
            raise ValueError("access key must belong to the access domain")
        if self.refresh.domain is not TokenDomain.REFRESH:
            raise ValueError("refresh key must belong to the refresh domain")

    @classmethod
    def from_settings(cls, settings) -> SigningKeys:
        """Build both handles from a core.config.Settings instance."""
        return cls(
            access=SigningKey(TokenDomain.ACCESS, settings.jwt_secret, settings.access_ttl_seconds),
            refresh=SigningKey(TokenDomain.REFRESH, settings.jwt_refresh_secret, settings.refresh_ttl_seconds),
        )

    def for_domain(self, domain: TokenDomain) -> SigningKey:
        if domain is TokenDomain.ACCESS:
            return self.access
        if domain is TokenDomain.REFRESH:
            return self.refresh
        raise ValueError(f"Unknown token domain: {domain!r}")


@dataclass(frozen=True)
class Claims:
    """Decoded token payload. Never persisted."""

    subject: str
    email: str
    issued_at: int
    expires_at: int


# ---------------------------------------------------------------------------
# Encode / decode
# ---------------------------------------------------------------------------


def encode_token(subject: str, email: str, key: SigningKey, ttl_seconds: int | None = None) -> str:
    """Sign a {sub, email, iat, exp} payload with the given domain key.

    Args:
        subject:     Identity UUID, stored as the JWT subject claim.
        email:       Normalized email of the identity.
        key:         Domain key to sign with. The caller guarantees a
                     non-empty secret; an empty one produces a forgeable token.
        ttl_seconds: Lifetime override. Defaults to key.ttl_seconds.

    Raises:
        SigningFailure: the JWT library failed internally.
    """
    ttl = key.ttl_seconds if ttl_seconds is None else ttl_seconds
    issued_at = int(time.time())
    payload = {
        "sub": subject,
        "email": email,
        "iat": issued_at,
        "exp": issued_at + ttl,
    }
    try:
        return jwt.encode(payload, key.secret, algorithm=_ALGORITHM)
    except (JWTError, TypeError, ValueError) as exc:
        raise SigningFailure(str(exc)) from exc


def decode_token(token: str, key: SigningKey) -> Claims:
    """Verify a token against one domain key and return its claims.

    Checks run in this order: structure, signature, claim shape, expiry.

    Raises:
        TokenError(MALFORMED):         not a structurally valid signed JWT,
                                       or the payload lacks sub/email/exp.
        TokenError(SIGNATURE_INVALID): signature does not verify under key.
        TokenError(EXPIRED):           now >= exp.
    """
    if not isinstance(token, str) or token.count(".") != 2:
        raise TokenError(TokenFailure.MALFORMED)
    try:
        jwt.get_unverified_header(token)
        jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise TokenError(TokenFailure.MALFORMED) from exc

    try:
        payload = jwt.decode(
            token,
            key.secret,
            algorithms=[_ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTClaimsError as exc:
        raise TokenError(TokenFailure.MALFORMED) from exc
    except JWTError as exc:
        raise TokenError(TokenFailure.SIGNATURE_INVALID) from exc

    subject = payload.get("sub")
    email = payload.get("email")
    expires_at = payload.get("exp")
    issued_at = payload.get("iat", 0)
    if not isinstance(subject, str) or not isinstance(email, str):
        raise TokenError(TokenFailure.MALFORMED)
    if not _is_timestamp(expires_at) or not _is_timestamp(issued_at):
        raise TokenError(TokenFailure.MALFORMED)

    if time.time() >= expires_at:
        raise TokenError(TokenFailure.EXPIRED)

    return Claims(subject=subject, email=email, issued_at=int(issued_at), expires_at=int(expires_at))


def _is_timestamp(value) -> bool:
    # bool is an int subclass; a JSON true/false is not a timestamp.
    return isinstance(value, (int, float)) and not isinstance(value, bool)
