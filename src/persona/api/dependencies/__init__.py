"""FastAPI dependency injection definitions."""

from src.persona.api.dependencies.db import DBSession, get_db_session
from src.persona.api.dependencies.internal_auth import (
    INTERNAL_SECRET_HEADER,
    require_internal_secret,
)
from src.persona.api.dependencies.repositories import (
    IdentityRepo,
    SessionRepo,
    get_identity_repository,
    get_session_repository,
)
from src.persona.api.dependencies.services import (
    AdminServiceDep,
    AuthServiceDep,
    OAuthLoginServiceDep,
    TokenServiceDep,
    get_admin_service,
    get_auth_service,
    get_flow_serializer,
    get_identity_provider,
    get_oauth_login_service,
    get_token_service,
)
from src.persona.api.dependencies.tenant import ResolvedTenant, get_resolved_tenant

__all__ = [
    # Database
    "DBSession",
    "get_db_session",
    # Internal auth
    "INTERNAL_SECRET_HEADER",
    "require_internal_secret",
    # Repositories
    "IdentityRepo",
    "SessionRepo",
    "get_identity_repository",
    "get_session_repository",
    # Services
    "AdminServiceDep",
    "AuthServiceDep",
    "OAuthLoginServiceDep",
    "TokenServiceDep",
    "get_admin_service",
    "get_auth_service",
    "get_flow_serializer",
    "get_identity_provider",
    "get_oauth_login_service",
    "get_token_service",
    # Tenant
    "ResolvedTenant",
    "get_resolved_tenant",
]
