"""
auth/transport.py -- Carry token pairs between server and client.

Browser clients get two httpOnly cookies, access_token and refresh_token.
Programmatic clients send the access token as "Authorization: Bearer <token>"
and (mobile) the refresh token in the request body. The cookie always wins
when both are present.

Cookie attributes:
  httponly=True always: JS cannot read either token (XSS mitigation).
  secure: only over HTTPS, turned on in production.
  samesite: "strict" in production, "lax" in development so local front-ends
      on another port still receive the cookie on top-level navigation.
  max_age: the token's own ttl, so cookie and token expire together.
  path="/": whole origin.

The functions here build plain AuthCookie values; apply_cookies() writes them
onto a Starlette/FastAPI response. Keeping the two apart lets tests assert on
attributes without parsing Set-Cookie headers.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from auth.sessions import TokenPair

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"

_BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthCookie:
    name: str
    value: str = field(repr=False)
    max_age: int
    secure: bool
    samesite: str
    httponly: bool = True
    path: str = "/"


def bind_cookies(pair: TokenPair, production: bool) -> list[AuthCookie]:
    """Return one cookie per token, attributes chosen for the environment."""
    samesite = "strict" if production else "lax"
    return [
        AuthCookie(
            name=ACCESS_COOKIE,
            value=pair.access_token,
            max_age=pair.access_ttl_seconds,
            secure=production,
            samesite=samesite,
        ),
        AuthCookie(
            name=REFRESH_COOKIE,
            value=pair.refresh_token,
            max_age=pair.refresh_ttl_seconds,
            secure=production,
            samesite=samesite,
        ),
    ]


def clear_cookies() -> list[AuthCookie]:
    """Return empty cookies with a negative max-age so the client drops them at once."""
    return [
        AuthCookie(name=ACCESS_COOKIE, value="", max_age=-1, secure=False, samesite="lax"),
        AuthCookie(name=REFRESH_COOKIE, value="", max_age=-1, secure=False, samesite="lax"),
    ]


def apply_cookies(response, cookies: list[AuthCookie]) -> None:
    """Write cookies onto a FastAPI/Starlette response object."""
    for cookie in cookies:
        response.set_cookie(
            cookie.name,
            value=cookie.value,
            max_age=cookie.max_age,
            path=cookie.path,
            secure=cookie.secure,
            httponly=cookie.httponly,
            samesite=cookie.samesite,
        )


def extract_access_token(cookies: Mapping[str, str], headers: Mapping[str, str]) -> str | None:
    """Find the access token: access_token cookie first, then a Bearer header.

    Returns None when neither carrier holds a non-empty token.
    """
    token = cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth_header = headers.get("Authorization", "") or headers.get("authorization", "")
    if auth_header.startswith(_BEARER_PREFIX):
        token = auth_header[len(_BEARER_PREFIX) :].strip()
        if token:
            return token
    return None


def extract_refresh_token(cookies: Mapping[str, str], body_token: str | None = None) -> str | None:
    """Find the refresh token: refresh_token cookie first, then the request body."""
    token = cookies.get(REFRESH_COOKIE)
    if token:
        return token
    if body_token:
        return body_token
    return None
