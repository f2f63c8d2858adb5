from pydantic import Field

from src.persona.schemas.base import CamelModel


class AccessTokenClaims(CamelModel):
    """Claims carried by a signed access token."""

    sub: str  # identity id
    tenant: str
    user_id: str | None = None
    email: str
    name: str | None = None
    profile_image_url: str | None = None
    roles: list[str] = Field(default_factory=list)
    session_id: str
    iat: int | None = None
    exp: int | None = None
    jti: str | None = None


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str
    expires_in: int


class RefreshRequest(CamelModel):
    refresh_token: str | None = None


class RefreshResponse(CamelModel):
    access_token: str
    expires_in: int


class LogoutResponse(CamelModel):
    success: bool = True
