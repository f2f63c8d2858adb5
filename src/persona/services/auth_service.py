"""Auth service - resolves provider accounts to tenant-scoped identities and logs them in."""

from dataclasses import dataclass

from src.persona.core.logging import bind_identity_context, get_logger
from src.persona.core.result import ErrorCode, Result, failure, success
from src.persona.models import Identity
from src.persona.repositories import IdentityAlreadyExistsError, IdentityRepository
from src.persona.schemas.token import TokenPair
from src.persona.services.oauth.provider import OAuthUserInfo
from src.persona.services.token_service import TokenService

logger = get_logger(__name__)


def placeholder_email(provider_user_id: str, provider: str) -> str:
    """Synthetic address for accounts whose provider withholds the email."""
    return f"{provider_user_id}@{provider}.local"


@dataclass(frozen=True)
class LoginResult:
    identity: Identity
    tokens: TokenPair
    is_new: bool


class AuthService:
    """Identity resolution and token issuance for OAuth logins.

    Logins never overwrite an existing identity. Linking and role changes
    go through the internal admin service only.
    """

    def __init__(self, identity_repo: IdentityRepository, token_service: TokenService):
        self.identity_repo = identity_repo
        self.token_service = token_service

    async def handle_oauth_login(
        self,
        tenant_id: str,
        provider: str,
        user_info: OAuthUserInfo,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> Result[LoginResult]:
        """Find or create the identity for (tenant, provider, subject) and issue tokens."""
        resolved = await self._find_or_create(tenant_id, provider, user_info)
        if not resolved.ok:
            return failure(resolved.error.code, resolved.error.message)  # type: ignore[union-attr]
        identity, is_new = resolved.unwrap()

        bind_identity_context(identity.id, identity.tenant_id, identity.user_id)

        issued = await self.token_service.issue(identity, ip_address, user_agent)
        if not issued.ok:
            return failure(issued.error.code, issued.error.message)  # type: ignore[union-attr]

        return success(
            LoginResult(identity=identity, tokens=issued.unwrap().tokens, is_new=is_new)
        )

    async def _find_or_create(
        self, tenant_id: str, provider: str, user_info: OAuthUserInfo
    ) -> Result[tuple[Identity, bool]]:
        try:
            existing = await self.identity_repo.get_by_provider(tenant_id, provider, user_info.id)
        except Exception:
            logger.exception("Failed to look up identity", tenant_id=tenant_id, provider=provider)
            return failure(ErrorCode.INTERNAL_ERROR, "Failed to resolve identity")
        if existing is not None:
            return success((existing, False))

        identity = Identity(
            tenant_id=tenant_id,
            provider=provider,
            provider_user_id=user_info.id,
            email=user_info.email or placeholder_email(user_info.id, provider),
            name=user_info.name,
            profile_image_url=user_info.picture,
            roles=[],
            provider_claims=user_info.raw or None,
        )
        try:
            identity = await self.identity_repo.create(identity)
        except IdentityAlreadyExistsError:
            # A concurrent login inserted the same account first; use its row
            try:
                winner = await self.identity_repo.get_by_provider(
                    tenant_id, provider, user_info.id
                )
            except Exception:
                winner = None
                logger.exception("Failed to re-read identity", tenant_id=tenant_id)
            if winner is None:
                logger.error(
                    "Identity conflict without a readable winner",
                    tenant_id=tenant_id,
                    provider=provider,
                )
                return failure(ErrorCode.INTERNAL_ERROR, "Failed to resolve identity")
            logger.info("Identity insert lost race", identity_id=winner.id, tenant_id=tenant_id)
            return success((winner, False))
        except Exception:
            logger.exception("Failed to create identity", tenant_id=tenant_id, provider=provider)
            return failure(ErrorCode.INTERNAL_ERROR, "Failed to resolve identity")

        logger.info(
            "Identity created",
            identity_id=identity.id,
            tenant_id=tenant_id,
            provider=provider,
        )
        return success((identity, True))

    async def get_identity(self, identity_id: str) -> Result[Identity]:
        try:
            identity = await self.identity_repo.get_by_id(identity_id)
        except Exception:
            logger.exception("Failed to load identity", identity_id=identity_id)
            return failure(ErrorCode.INTERNAL_ERROR, "Failed to load identity")
        if identity is None:
            return failure(ErrorCode.NOT_FOUND, "Identity not found")
        return success(identity)

    async def get_identity_by_user_id(self, tenant_id: str, user_id: str) -> Result[Identity]:
        """First identity linked to ``user_id`` within the tenant."""
        try:
            identity = await self.identity_repo.get_by_user_id(tenant_id, user_id)
        except Exception:
            logger.exception("Failed to load identity", tenant_id=tenant_id)
            return failure(ErrorCode.INTERNAL_ERROR, "Failed to load identity")
        if identity is None:
            return failure(ErrorCode.NOT_FOUND, "Identity not found")
        return success(identity)
