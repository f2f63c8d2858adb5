"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database and HTTP fixtures are in tests/integration/conftest.py.
"""

import os

# Set env before any app imports: testing disables rate limiting
os.environ.setdefault("PERSONA_APP_ENV", "testing")
os.environ.setdefault("PERSONA_TENANT_MODE", "multi")
os.environ.setdefault("PERSONA_TENANTS", "app1,app2")
os.environ.setdefault("PERSONA_PUBLIC_URL", "http://localhost:3000")
os.environ.setdefault("PERSONA_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PERSONA_JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("PERSONA_INTERNAL_SECRET", "test-internal-secret")

# ruff: noqa: E402 - Imports must be after env var setup
import pytest

from src.persona.core.config import Settings, get_settings
from src.persona.repositories import MemoryIdentityRepository, MemorySessionRepository
from src.persona.services import AdminService, AuthService, TokenService

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def identity_repo() -> MemoryIdentityRepository:
    return MemoryIdentityRepository()


@pytest.fixture
def session_repo() -> MemorySessionRepository:
    return MemorySessionRepository()


@pytest.fixture
def token_service(
    session_repo: MemorySessionRepository,
    identity_repo: MemoryIdentityRepository,
    settings: Settings,
) -> TokenService:
    return TokenService(session_repo, identity_repo, settings)


@pytest.fixture
def auth_service(identity_repo: MemoryIdentityRepository, token_service: TokenService) -> AuthService:
    return AuthService(identity_repo, token_service)


@pytest.fixture
def admin_service(
    identity_repo: MemoryIdentityRepository, token_service: TokenService
) -> AdminService:
    return AdminService(identity_repo, token_service)
