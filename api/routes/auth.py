"""
api/routes/auth.py -- Authentication REST endpoints.

Routes (mounted under /api):
  POST /api/auth/signup         -- register; sets token cookies; 201
  POST /api/auth/login          -- password login; sets token cookies
  POST /api/auth/token/refresh  -- rotate the pair; cookie or body refreshToken
  POST /api/auth/logout         -- clears token cookies; always 200
  GET  /api/auth/me             -- current identity (requires auth)
  PUT  /api/auth/profile        -- update name / avatar (requires auth)
  PUT  /api/auth/password       -- change password (requires auth)

Security:
  Login and refresh failures return one generic message per flow, whatever
  the underlying cause. The service guarantees this; routes add nothing.
  Cache-Control: no-store on every response that carries tokens.

Handlers are plain `def` so bcrypt runs in FastAPI's thread pool instead of
blocking the event loop.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    UpdatePasswordRequest,
    UpdateProfileRequest,
)
from auth.dependencies import get_auth_service, get_current_identity
from auth.models import Identity
from auth.service import AuthService
from auth.sessions import TokenPair
from auth.transport import apply_cookies, bind_cookies, clear_cookies, extract_refresh_token

# Auth policy:
# - POST /api/auth/signup, /login, /token/refresh: public
# - POST /api/auth/logout: public -- clearing cookies needs no prior auth and must be idempotent
# - GET  /api/auth/me, PUT /profile, PUT /password: require a valid access token
router = APIRouter()


def _token_response(request: Request, status_code: int, content: dict, pair: TokenPair) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content=content)
    apply_cookies(resp, bind_cookies(pair, production=request.app.state.settings.is_production))
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/signup", response_model=AuthResponse, status_code=201)
def signup(
    request: Request,
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Register a new identity and start a session."""
    identity, pair = service.register(body.name, body.email, body.password)
    content = AuthResponse.for_identity(identity, "Account created successfully").model_dump()
    return _token_response(request, 201, content, pair)


@router.post("/auth/login", response_model=AuthResponse)
def login(
    request: Request,
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Authenticate with email and password; set token cookies."""
    identity, pair = service.login(body.email, body.password)
    content = AuthResponse.for_identity(identity, "Login successful").model_dump()
    return _token_response(request, 200, content, pair)


@router.post("/auth/token/refresh", response_model=MessageResponse)
def refresh_token(
    request: Request,
    body: Optional[RefreshRequest] = None,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Exchange a refresh token for a brand new pair.

    The refresh_token cookie (web) takes priority over a refreshToken field
    in the JSON body (mobile).
    """
    token = extract_refresh_token(request.cookies, body.refresh_token if body else None)
    _identity, pair = service.refresh(token)
    content = MessageResponse(message="Token refreshed successfully").model_dump()
    return _token_response(request, 200, content, pair)


@router.post("/auth/logout", response_model=MessageResponse)
def logout(service: AuthService = Depends(get_auth_service)) -> JSONResponse:
    """Clear both token cookies. Succeeds with or without an active session."""
    service.logout()
    resp = JSONResponse(content=MessageResponse(message="Logout successful").model_dump())
    apply_cookies(resp, clear_cookies())
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=AuthResponse)
def me(identity: Identity = Depends(get_current_identity)) -> AuthResponse:
    """Return the identity behind the presented access token."""
    return AuthResponse.for_identity(identity, "User retrieved successfully")


@router.put("/auth/profile", response_model=AuthResponse)
def update_profile(
    body: UpdateProfileRequest,
    identity: Identity = Depends(get_current_identity),
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Update display name and/or avatar of the current identity."""
    updated = service.update_profile(identity, name=body.name, avatar=body.avatar)
    return AuthResponse.for_identity(updated, "Profile updated successfully")


@router.put("/auth/password", response_model=MessageResponse)
def update_password(
    body: UpdatePasswordRequest,
    identity: Identity = Depends(get_current_identity),
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Change the password. Existing tokens stay valid until they expire."""
    service.change_password(identity, body.current_password, body.new_password)
    return MessageResponse(message="Password updated successfully")
