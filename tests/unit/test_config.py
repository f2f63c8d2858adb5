"""Tests for startup configuration validation."""

import pytest
from pydantic import ValidationError

from src.persona.core.config import Settings
from src.persona.core.tenant import TenantMode

pytestmark = pytest.mark.unit

BASE = {
    "tenant_mode": "multi",
    "tenants": "app1, app2",
    "public_url": "http://localhost:3000",
    "database_url": "sqlite+aiosqlite:///:memory:",
    "jwt_secret_key": "x" * 40,
    "internal_secret": "internal",
}


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **{**BASE, **overrides})  # type: ignore[call-arg]


def test_defaults():
    settings = make_settings()
    assert settings.tenant_config.mode is TenantMode.MULTI
    assert settings.tenant_config.tenants == ("app1", "app2")
    assert settings.access_token_ttl_seconds == 900
    assert settings.refresh_token_ttl_seconds == 7 * 86400
    assert settings.oauth_state_secret == settings.jwt_secret_key
    assert not settings.google_enabled


def test_session_secret_overrides_state_secret():
    settings = make_settings(session_secret="s" * 32)
    assert settings.oauth_state_secret == "s" * 32


@pytest.mark.parametrize("field", ["access_token_expiry", "refresh_token_expiry"])
def test_unparseable_expiry_fails_startup(field):
    with pytest.raises(ValidationError, match="Invalid expiry"):
        make_settings(**{field: "fifteen minutes"})


def test_single_mode_with_two_tenants_fails():
    with pytest.raises(ValidationError, match="exactly 1"):
        make_settings(tenant_mode="single")


def test_unknown_tenant_mode_fails():
    with pytest.raises(ValidationError):
        make_settings(tenant_mode="shared")


def test_short_jwt_secret_fails():
    with pytest.raises(ValidationError, match="at least 32"):
        make_settings(jwt_secret_key="short")


def test_default_jwt_secret_fails():
    with pytest.raises(ValidationError, match="changed from default"):
        make_settings(jwt_secret_key="change-this-to-a-secure-random-string")


def test_empty_internal_secret_fails():
    with pytest.raises(ValidationError, match="must not be empty"):
        make_settings(internal_secret="")


def test_google_client_id_requires_secret_and_redirect():
    with pytest.raises(ValidationError, match="GOOGLE_CLIENT_SECRET"):
        make_settings(google_client_id="client")

    settings = make_settings(
        google_client_id="client",
        google_client_secret="secret",
        google_redirect_uri="http://localhost:4005/auth/google/callback",
    )
    assert settings.google_enabled


def test_production_flag():
    assert make_settings(app_env="production").is_production
    assert not make_settings(app_env="development").is_production
