"""
auth/sessions.py -- Session issuer and validator on top of the token codec.

Sessions are stateless: a session is nothing more than a token pair in the
client's hands. The server keeps no session table and no denylist, so
validation needs no lookup and no locking. The cost is that a token cannot be
revoked before its exp; rotation on refresh supersedes the old pair without
invalidating it.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from auth.errors import UNAUTHENTICATED_MESSAGE, AuthError, ErrorKind, TokenError
from auth.models import Identity
from auth.tokens import Claims, SigningKeys, TokenDomain, decode_token, encode_token

logger = logging.getLogger("sessiongate.auth")


@dataclass(frozen=True)
class TokenPair:
    """An access token and a refresh token minted together.

    Both carry the same (sub, email) body but are signed in different domains
    and expire independently. The ttl fields let the transport binder set
    cookie max-age equal to each token's own lifetime.
    """

    access_token: str = field(repr=False)
    refresh_token: str = field(repr=False)
    access_ttl_seconds: int
    refresh_ttl_seconds: int


def issue_pair(identity: Identity, keys: SigningKeys) -> TokenPair:
    """Mint a fresh access/refresh pair for an authenticated identity.

    No retry: signing is local CPU work and a SigningFailure propagates as-is.
    """
    access = encode_token(identity.id, identity.email, keys.access)
    refresh = encode_token(identity.id, identity.email, keys.refresh)
    return TokenPair(
        access_token=access,
        refresh_token=refresh,
        access_ttl_seconds=keys.access.ttl_seconds,
        refresh_ttl_seconds=keys.refresh.ttl_seconds,
    )


def validate_token(token: str, domain: TokenDomain, keys: SigningKeys) -> Claims:
    """Decode `token` under the secret of `domain` and return its claims.

    Every codec failure (malformed, bad signature, expired) becomes the same
    AuthError(UNAUTHENTICATED). The specific reason is logged at debug level
    only, never returned, so callers cannot probe which check failed.

    Presenting a token from the other domain fails on the signature check.
    """
    try:
        return decode_token(token, keys.for_domain(domain))
    except TokenError as exc:
        logger.debug("%s token rejected: %s", domain.value, exc.failure.value)
        raise AuthError(ErrorKind.UNAUTHENTICATED, UNAUTHENTICATED_MESSAGE) from None
