"""
api/main.py -- FastAPI application entry point for SessionGate.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. CORSMiddleware        -- CORS headers for the configured origins, credentials allowed
  2. log_requests          -- method, path, status, latency per request

Lifespan builds the identity store and the AuthService once at startup from
get_settings() and tears the store down on shutdown. This is the only place
that reads Settings; every component below receives what it needs explicitly.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from auth.errors import AuthError, ErrorKind
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import SigningKeys
from core.config import get_settings

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("sessiongate.api")

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build application-level resources on startup, release them on shutdown.

    Startup order:
      1. Settings -- fails fast on a missing/short/shared signing secret.
      2. Identity store -- creates the schema if absent.
      3. AuthService -- needs both of the above.
      4. Optional super-admin seed -- needs the service.
    """
    settings = get_settings()
    app.state.settings = settings
    app.state.user_store = UserStore(settings.database_url)
    app.state.auth_service = AuthService(app.state.user_store, SigningKeys.from_settings(settings))
    logger.info(
        "SessionGate starting (env=%s, access_ttl=%ds, refresh_ttl=%ds)",
        settings.node_env,
        settings.access_ttl_seconds,
        settings.refresh_ttl_seconds,
    )
    if settings.super_admin_email and settings.super_admin_password:
        app.state.auth_service.ensure_super_admin(
            settings.super_admin_name, settings.super_admin_email, settings.super_admin_password
        )

    yield

    app.state.user_store.close()
    logger.info("SessionGate shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="SessionGate API",
    description="Credential login with rotating access/refresh JWTs carried in httpOnly cookies.",
    version=__version__,
    lifespan=lifespan,
)

# CORS origins come from the environment, so they are read here at import time
# rather than in the lifespan -- middleware cannot be added after startup.
_origins = get_settings().cors_origins
app.add_middleware(
    CORSMiddleware,
    # Credentialed requests cannot use "*"; reflect the request origin instead.
    allow_origins=[] if "*" in _origins else _origins,
    allow_origin_regex=".*" if "*" in _origins else None,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.PASSWORD_POLICY: 400,
    ErrorKind.INVALID_PASSWORD: 400,
    ErrorKind.EMAIL_TAKEN: 409,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INTERNAL: 500,
}


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Map AuthError.kind to a status code. Matching is on the enum, never the text."""
    status_code = _STATUS_BY_KIND.get(exc.kind, 500)
    if exc.kind is ErrorKind.INTERNAL:
        # The service already logged the cause; the client gets a generic message.
        message = "Internal server error"
    else:
        message = exc.message
    detail = ErrorDetail(
        code=exc.kind.value,
        message=message,
        fields={exc.field: [exc.message]} if exc.field and status_code < 500 else None,
    )
    response = JSONResponse(status_code=status_code, content=ErrorResponse(error=detail).model_dump())
    if status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with field-keyed messages when a request body fails validation."""
    fields: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        fields.setdefault(".".join(loc) or "body", []).append(err.get("msg", "Invalid value"))
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(code="validation_error", message="Validation failed", fields=fields)
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(code=f"http_{exc.status_code}", message=str(exc.detail))
        ).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(code="internal_error", message="An unexpected error occurred.")
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py so it is reachable regardless of router state.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version, and whether the identity store answers."""
    try:
        db_status = "ok" if request.app.state.user_store.ping() else "error"
    except SQLAlchemyError:
        logger.warning("Health check: identity store unreachable")
        db_status = "error"
    return HealthResponse(version=__version__, components={"app": "ok", "database": db_status})
