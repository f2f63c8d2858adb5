from src.persona.services.admin_service import AdminService, LinkResult
from src.persona.services.auth_service import AuthService, LoginResult
from src.persona.services.oauth_login_service import (
    AuthorizationStart,
    CallbackOutcome,
    OAuthLoginService,
)
from src.persona.services.token_service import IssuedTokens, TokenRejection, TokenService

__all__ = [
    "AdminService",
    "AuthService",
    "AuthorizationStart",
    "CallbackOutcome",
    "IssuedTokens",
    "LinkResult",
    "LoginResult",
    "OAuthLoginService",
    "TokenRejection",
    "TokenService",
]
