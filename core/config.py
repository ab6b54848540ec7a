"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for SessionGate happen here. No module should
call os.getenv() or os.environ.get() directly -- the app bootstrap calls
get_settings() once and hands the resulting Settings (or the SigningKeys
built from it) to every component that needs it.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET). Type coercion and validation are built in.

  @model_validator(mode="after"): Cross-field validation after all fields are
      resolved. Development mode generates missing signing secrets with a
      warning; production mode refuses to start without them.

Security notes:
  Both signing secrets must be at least 32 characters. HMAC-SHA256 relies on
  key entropy -- a short key makes tokens forgeable by brute force.

  The access and refresh secrets must differ. A token signed for one domain
  must never validate in the other, which cannot hold if both share a key.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import re
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("sessiongate.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'sessiongate_auth.db'}"

_MIN_SECRET_LENGTH = 32

_DURATION_RE = re.compile(r"^(\d+)([smhd])$")
_DURATION_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str, default: int = 3600) -> int:
    """Convert a duration string such as "15m", "1h" or "7d" into seconds.

    Anything that does not match <digits><s|m|h|d> falls back to `default`
    (one hour) instead of raising, so a typo in JWT_EXPIRES_IN degrades to a
    short-lived token rather than a startup crash.
    """
    match = _DURATION_RE.match(value.strip())
    if match is None:
        return default
    return int(match.group(1)) * _DURATION_UNITS[match.group(2)]


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    node_env: str = "development"
    server_port: int = 8000
    # Comma-separated list; "*" allows any origin.
    cors_origin: str = "*"

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    jwt_secret: str = ""
    jwt_refresh_secret: str = ""
    jwt_expires_in: str = "1h"
    jwt_refresh_expires_in: str = "7d"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Super-admin seed (optional -- empty email disables it)
    # ------------------------------------------------------------------

    super_admin_email: str = ""
    super_admin_password: str = ""
    super_admin_name: str = "Super Admin"

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def is_production(self) -> bool:
        return self.node_env.strip().lower() == "production"

    @property
    def access_ttl_seconds(self) -> int:
        return parse_duration(self.jwt_expires_in)

    @property
    def refresh_ttl_seconds(self) -> int:
        return parse_duration(self.jwt_refresh_expires_in)

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origin.split(",") if o.strip()]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_signing_secrets(self) -> "Settings":
        """Enforce the signing-secret policy.

        Development: auto-generate any missing secret with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production: refuse to start if either secret is missing.

        Both modes: reject secrets shorter than 32 characters and reject an
            access secret equal to the refresh secret.
        """
        for field_name, env_name in (("jwt_secret", "JWT_SECRET"), ("jwt_refresh_secret", "JWT_REFRESH_SECRET")):
            if getattr(self, field_name):
                continue
            if self.is_production:
                raise ValueError(
                    f"{env_name} is required in production mode. "
                    f"Set {env_name} in your environment or .env file."
                )
            setattr(self, field_name, secrets.token_hex(32))
            logger.warning("Using auto-generated %s. Sessions will not persist across restarts.", env_name)

        if len(self.jwt_secret) < _MIN_SECRET_LENGTH or len(self.jwt_refresh_secret) < _MIN_SECRET_LENGTH:
            raise ValueError(f"JWT_SECRET and JWT_REFRESH_SECRET must be at least {_MIN_SECRET_LENGTH} characters.")
        if self.jwt_secret == self.jwt_refresh_secret:
            raise ValueError("JWT_SECRET and JWT_REFRESH_SECRET must be different.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Only the application bootstrap (api/main.py, main.py) should call this.
    Everything below it receives the Settings instance explicitly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
