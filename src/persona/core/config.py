from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.persona.core.security.crypto import parse_expiry
from src.persona.core.tenant import TenantConfig, TenantMode


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PERSONA_",
        extra="ignore",
    )

    # App
    app_name: str = "Persona"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True

    # Tenancy
    tenant_mode: TenantMode
    tenants: str  # Comma-separated, e.g. "app1,app2"

    # Server
    public_url: str  # Default post-login redirect target
    cors_origins: list[str] = []

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Auth
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    access_token_expiry: str = "15m"
    refresh_token_expiry: str = "7d"
    session_secret: str | None = None  # Signs the OAuth flow cookie; falls back to jwt_secret_key
    cookie_domain: str | None = None

    # Internal API
    internal_secret: str

    # Google OAuth (disabled if client id is not set)
    google_client_id: str | None = None
    google_client_secret: str | None = None
    google_redirect_uri: str | None = None
    google_issuer: str = "https://accounts.google.com"
    oauth_http_timeout_seconds: float = 10.0

    # Rate limiting (slowapi syntax)
    rate_limit_oauth: str = "20/minute"
    rate_limit_token: str = "60/minute"

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if v == "change-this-to-a-secure-random-string":
            raise ValueError(
                "PERSONA_JWT_SECRET_KEY must be changed from default value. "
                "Generate a secure secret with: openssl rand -hex 32"
            )
        if len(v) < 32:
            raise ValueError("PERSONA_JWT_SECRET_KEY must be at least 32 characters")
        return v

    @field_validator("internal_secret")
    @classmethod
    def validate_internal_secret(cls, v: str) -> str:
        if not v:
            raise ValueError("PERSONA_INTERNAL_SECRET must not be empty")
        return v

    @field_validator("access_token_expiry", "refresh_token_expiry")
    @classmethod
    def validate_expiry(cls, v: str) -> str:
        """Reject expiry strings that parse_expiry cannot read, instead of guessing."""
        parse_expiry(v)
        return v

    @model_validator(mode="after")
    def validate_tenants(self) -> "Settings":
        # Builds (and therefore validates) the tenant configuration at startup
        self.tenant_config  # noqa: B018
        return self

    @model_validator(mode="after")
    def validate_google(self) -> "Settings":
        if self.google_client_id and not (self.google_client_secret and self.google_redirect_uri):
            raise ValueError(
                "PERSONA_GOOGLE_CLIENT_SECRET and PERSONA_GOOGLE_REDIRECT_URI are required "
                "when PERSONA_GOOGLE_CLIENT_ID is set"
            )
        return self

    @property
    def tenant_config(self) -> TenantConfig:
        names = [t.strip() for t in self.tenants.split(",") if t.strip()]
        return TenantConfig.build(self.tenant_mode, names)

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def access_token_ttl_seconds(self) -> int:
        return parse_expiry(self.access_token_expiry)

    @property
    def refresh_token_ttl_seconds(self) -> int:
        return parse_expiry(self.refresh_token_expiry)

    @property
    def oauth_state_secret(self) -> str:
        return self.session_secret or self.jwt_secret_key

    @property
    def google_enabled(self) -> bool:
        return bool(self.google_client_id)


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
