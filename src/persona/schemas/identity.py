from pydantic import Field

from src.persona.schemas.base import CamelModel
from src.persona.schemas.token import TokenPair


class IdentityRead(CamelModel):
    id: str
    tenant_id: str
    user_id: str | None = None
    email: str
    roles: list[str]


class LinkIdentityRequest(CamelModel):
    user_id: str = Field(min_length=3, max_length=20)
    roles: list[str] = Field(min_length=1)


class LinkIdentityResponse(CamelModel):
    success: bool = True
    access_token: str
    refresh_token: str
    identity: IdentityRead

    @classmethod
    def build(cls, tokens: TokenPair, identity: IdentityRead) -> "LinkIdentityResponse":
        return cls(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            identity=identity,
        )


class UpdateRolesRequest(CamelModel):
    roles: list[str] = Field(min_length=1)


class UpdateRolesResponse(CamelModel):
    success: bool = True
    updated_count: int


class RevokeSessionsResponse(CamelModel):
    success: bool = True
    revoked_count: int


class SweepSessionsResponse(CamelModel):
    success: bool = True
    deleted_count: int
