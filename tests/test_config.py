"""Unit tests for core/config.py -- duration parsing and the signing-secret policy."""

import pytest
from pydantic import ValidationError

from core.config import Settings, parse_duration

ACCESS = "a" * 32
REFRESH = "b" * 32


class TestParseDuration:
    @pytest.mark.parametrize(
        "value, seconds",
        [("30s", 30), ("15m", 900), ("1h", 3600), ("7d", 604800), (" 2h ", 7200)],
    )
    def test_units(self, value: str, seconds: int) -> None:
        assert parse_duration(value) == seconds

    @pytest.mark.parametrize("value", ["", "1w", "h", "-1h", "1.5h", "3600"])
    def test_unparseable_falls_back_to_default(self, value: str) -> None:
        assert parse_duration(value) == 3600
        assert parse_duration(value, default=60) == 60


class TestSigningSecrets:
    def test_production_requires_access_secret(self) -> None:
        with pytest.raises(ValidationError, match="JWT_SECRET is required"):
            Settings(node_env="production", jwt_secret="", jwt_refresh_secret=REFRESH)

    def test_production_requires_refresh_secret(self) -> None:
        with pytest.raises(ValidationError, match="JWT_REFRESH_SECRET is required"):
            Settings(node_env="production", jwt_secret=ACCESS, jwt_refresh_secret="")

    def test_development_generates_missing_secrets(self) -> None:
        settings = Settings(node_env="development", jwt_secret="", jwt_refresh_secret="")
        assert len(settings.jwt_secret) >= 32
        assert len(settings.jwt_refresh_secret) >= 32
        assert settings.jwt_secret != settings.jwt_refresh_secret

    def test_short_secret_rejected(self) -> None:
        with pytest.raises(ValidationError, match="at least 32"):
            Settings(jwt_secret="short", jwt_refresh_secret=REFRESH)

    def test_identical_secrets_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must be different"):
            Settings(jwt_secret=ACCESS, jwt_refresh_secret=ACCESS)


class TestDerivedValues:
    def test_is_production(self) -> None:
        assert Settings(node_env="Production", jwt_secret=ACCESS, jwt_refresh_secret=REFRESH).is_production
        assert not Settings(node_env="development", jwt_secret=ACCESS, jwt_refresh_secret=REFRESH).is_production

    def test_ttls(self) -> None:
        settings = Settings(
            jwt_secret=ACCESS,
            jwt_refresh_secret=REFRESH,
            jwt_expires_in="15m",
            jwt_refresh_expires_in="30d",
        )
        assert settings.access_ttl_seconds == 900
        assert settings.refresh_ttl_seconds == 30 * 86400

    def test_cors_origins_split(self) -> None:
        settings = Settings(
            jwt_secret=ACCESS,
            jwt_refresh_secret=REFRESH,
            cors_origin="http://a.test, http://b.test,",
        )
        assert settings.cors_origins == ["http://a.test", "http://b.test"]
