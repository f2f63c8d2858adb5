"""OAuth login service - the two-phase authorization-code-with-PKCE flow.

Phase one builds the provider redirect and the signed flow state the browser
carries. Phase two consumes that state on the provider callback, resolves the
identity and issues tokens. Phase two never raises: every failure becomes a
redirect with an ``error`` query parameter.
"""

from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from src.persona.core.logging import bind_tenant_context, get_logger
from src.persona.core.result import ErrorCode, Result, failure, success
from src.persona.core.security import (
    calculate_code_challenge,
    generate_code_verifier,
    generate_nonce,
    generate_oauth_state,
)
from src.persona.schemas.token import TokenPair
from src.persona.services.auth_service import AuthService
from src.persona.services.oauth import (
    IdentityProvider,
    InvalidOAuthStateError,
    OAuthError,
    OAuthFlowSerializer,
    OAuthFlowState,
)

logger = get_logger(__name__)


def is_absolute_url(value: str) -> bool:
    parts = urlsplit(value)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def with_error(url: str, indicator: str) -> str:
    """Append ``error=<indicator>`` to a URL, keeping any existing query."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "error"]
    query.append(("error", indicator))
    return urlunsplit(parts._replace(query=urlencode(query)))


@dataclass(frozen=True)
class AuthorizationStart:
    authorization_url: str
    flow_cookie: str


@dataclass(frozen=True)
class CallbackOutcome:
    redirect_url: str
    tokens: TokenPair | None = None
    error: str | None = None
    is_new: bool = False


class OAuthLoginService:
    def __init__(
        self,
        provider: IdentityProvider,
        auth_service: AuthService,
        flow_serializer: OAuthFlowSerializer,
        redirect_uri: str,
        default_redirect_url: str,
    ):
        self.provider = provider
        self.auth_service = auth_service
        self.flow_serializer = flow_serializer
        self.redirect_uri = redirect_uri
        self.default_redirect_url = default_redirect_url

    async def start_authorization(
        self, tenant_id: str, redirect: str | None = None
    ) -> Result[AuthorizationStart]:
        """Generate state, nonce and PKCE verifier and build the provider redirect.

        An invalid ``redirect`` is dropped rather than rejected.
        """
        redirect_url = None
        if redirect:
            if is_absolute_url(redirect):
                redirect_url = redirect
            else:
                logger.warning("Invalid redirect URL ignored", redirect=redirect)

        flow = OAuthFlowState(
            state=generate_oauth_state(),
            nonce=generate_nonce(),
            code_verifier=generate_code_verifier(),
            tenant_id=tenant_id,
            redirect_url=redirect_url,
        )
        try:
            url = await self.provider.authorization_url(
                redirect_uri=self.redirect_uri,
                state=flow.state,
                nonce=flow.nonce or "",
                code_challenge=calculate_code_challenge(flow.code_verifier),
            )
        except OAuthError:
            logger.exception("Failed to start OAuth flow", provider=self.provider.name)
            return failure(ErrorCode.INTERNAL_ERROR, "Failed to start OAuth flow")

        return success(
            AuthorizationStart(
                authorization_url=url,
                flow_cookie=self.flow_serializer.dumps(flow),
            )
        )

    async def complete_callback(
        self,
        flow_cookie: str | None,
        callback_url: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> CallbackOutcome:
        """Finish the flow. The caller clears the flow cookie whatever the outcome."""
        try:
            flow = self.flow_serializer.loads(flow_cookie)
        except InvalidOAuthStateError as e:
            logger.warning("OAuth callback without valid flow state", reason=str(e))
            return self._failed(self.default_redirect_url, InvalidOAuthStateError.indicator)

        bind_tenant_context(flow.tenant_id)
        final_redirect = flow.redirect_url or self.default_redirect_url

        try:
            user_info = await self.provider.exchange_code(
                callback_url=callback_url,
                code_verifier=flow.code_verifier,
                expected_state=flow.state,
                expected_nonce=flow.nonce,
            )
            result = await self.auth_service.handle_oauth_login(
                flow.tenant_id,
                self.provider.name,
                user_info,
                ip_address,
                user_agent,
            )
        except OAuthError as e:
            logger.warning(
                "OAuth callback failed",
                provider=self.provider.name,
                error_type=type(e).__name__,
                reason=str(e),
            )
            return self._failed(self.default_redirect_url, e.indicator)
        except Exception:
            logger.exception("OAuth callback error", provider=self.provider.name)
            return self._failed(self.default_redirect_url, OAuthError.indicator)

        if not result.ok:
            logger.error("OAuth login failed", error=result.error.message)  # type: ignore[union-attr]
            return self._failed(final_redirect, "auth_failed")

        login = result.unwrap()
        logger.info(
            "OAuth login successful",
            identity_id=login.identity.id,
            tenant_id=login.identity.tenant_id,
            user_id=login.identity.user_id,
            is_new=login.is_new,
        )
        return CallbackOutcome(redirect_url=final_redirect, tokens=login.tokens, is_new=login.is_new)

    @staticmethod
    def _failed(url: str, indicator: str) -> CallbackOutcome:
        return CallbackOutcome(redirect_url=with_error(url, indicator), error=indicator)
