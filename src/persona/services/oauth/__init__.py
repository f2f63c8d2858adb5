"""OAuth/OIDC building blocks: provider contract, flow state and errors."""

from src.persona.services.oauth.errors import (
    InvalidOAuthStateError,
    MissingClaimsError,
    OAuthError,
    ProviderExchangeError,
)
from src.persona.services.oauth.provider import (
    GoogleIdentityProvider,
    IdentityProvider,
    OAuthUserInfo,
    extract_user_info,
)
from src.persona.services.oauth.state import (
    OAUTH_FLOW_COOKIE,
    OAUTH_FLOW_MAX_AGE_SECONDS,
    OAuthFlowSerializer,
    OAuthFlowState,
)

__all__ = [
    "GoogleIdentityProvider",
    "IdentityProvider",
    "InvalidOAuthStateError",
    "MissingClaimsError",
    "OAUTH_FLOW_COOKIE",
    "OAUTH_FLOW_MAX_AGE_SECONDS",
    "OAuthError",
    "OAuthFlowSerializer",
    "OAuthFlowState",
    "OAuthUserInfo",
    "ProviderExchangeError",
    "extract_user_info",
]
