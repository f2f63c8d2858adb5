"""Request/response schemas (camelCase on the wire)."""

from src.persona.schemas.base import CamelModel
from src.persona.schemas.identity import (
    IdentityRead,
    LinkIdentityRequest,
    LinkIdentityResponse,
    RevokeSessionsResponse,
    SweepSessionsResponse,
    UpdateRolesRequest,
    UpdateRolesResponse,
)
from src.persona.schemas.token import (
    AccessTokenClaims,
    LogoutResponse,
    RefreshRequest,
    RefreshResponse,
    TokenPair,
)

__all__ = [
    "AccessTokenClaims",
    "CamelModel",
    "IdentityRead",
    "LinkIdentityRequest",
    "LinkIdentityResponse",
    "LogoutResponse",
    "RefreshRequest",
    "RefreshResponse",
    "RevokeSessionsResponse",
    "SweepSessionsResponse",
    "TokenPair",
    "UpdateRolesRequest",
    "UpdateRolesResponse",
]
