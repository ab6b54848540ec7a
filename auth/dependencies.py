"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The access token is looked up in priority order:
  1. access_token cookie -- set by the login/register/refresh responses.
  2. Authorization: Bearer <token> header -- programmatic and mobile clients.

get_auth_service() returns the AuthService built in the app lifespan.
get_current_identity() resolves the caller's Identity or lets the service's
AuthError propagate; the API exception handler turns that into 401/404.

Layer rule: no imports from api/ or core/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Identity
from auth.service import AuthService
from auth.transport import extract_access_token


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_current_identity(request: Request) -> Identity:
    """Require a valid access token. Raises AuthError if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    token = extract_access_token(request.cookies, request.headers)
    return get_auth_service(request).identify(token)
