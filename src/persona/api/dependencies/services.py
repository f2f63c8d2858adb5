"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from src.persona.api.dependencies.repositories import IdentityRepo, SessionRepo
from src.persona.core.config import get_settings
from src.persona.services import (
    AdminService,
    AuthService,
    OAuthLoginService,
    TokenService,
)
from src.persona.services.oauth import IdentityProvider, OAuthFlowSerializer


def get_token_service(session_repo: SessionRepo, identity_repo: IdentityRepo) -> TokenService:
    return TokenService(session_repo, identity_repo, get_settings())


TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]


def get_auth_service(identity_repo: IdentityRepo, token_service: TokenServiceDep) -> AuthService:
    return AuthService(identity_repo, token_service)


def get_admin_service(identity_repo: IdentityRepo, token_service: TokenServiceDep) -> AdminService:
    return AdminService(identity_repo, token_service)


def get_identity_provider(request: Request) -> IdentityProvider:
    """The provider built at startup; 404 when Google login is not configured."""
    provider: IdentityProvider | None = getattr(request.app.state, "identity_provider", None)
    if provider is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Google login is not configured",
        )
    return provider


def get_flow_serializer() -> OAuthFlowSerializer:
    return OAuthFlowSerializer(get_settings().oauth_state_secret)


def get_oauth_login_service(
    provider: Annotated[IdentityProvider, Depends(get_identity_provider)],
    flow_serializer: Annotated[OAuthFlowSerializer, Depends(get_flow_serializer)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> OAuthLoginService:
    settings = get_settings()
    return OAuthLoginService(
        provider=provider,
        auth_service=auth_service,
        flow_serializer=flow_serializer,
        redirect_uri=settings.google_redirect_uri or "",
        default_redirect_url=settings.public_url,
    )


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]
OAuthLoginServiceDep = Annotated[OAuthLoginService, Depends(get_oauth_login_service)]
