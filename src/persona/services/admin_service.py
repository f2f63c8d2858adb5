"""Admin service - internal service-to-service identity operations.

Callers are authenticated by the internal secret before reaching this layer.
Role and session operations receive an already-resolved tenant; linking does
not, since the tenant is part of the identity row.
"""

from dataclasses import dataclass

from src.persona.core.logging import get_logger
from src.persona.core.result import ErrorCode, Result, failure, success
from src.persona.models import Identity
from src.persona.repositories import IdentityRepository
from src.persona.schemas.token import TokenPair
from src.persona.services.token_service import TokenService

logger = get_logger(__name__)


@dataclass(frozen=True)
class LinkResult:
    identity: Identity
    tokens: TokenPair


class AdminService:
    """Linking, bulk role updates and bulk session revocation."""

    def __init__(self, identity_repo: IdentityRepository, token_service: TokenService):
        self.identity_repo = identity_repo
        self.token_service = token_service

    async def link_identity_to_user(
        self, identity_id: str, user_id: str, roles: list[str]
    ) -> Result[LinkResult]:
        """Set user id and roles on an identity, then issue a fresh token pair.

        The new session carries the updated claims. Existing sessions are left
        alone and keep their old claims until their access tokens expire.
        """
        try:
            identity = await self.identity_repo.update_user_id_and_roles(
                identity_id, user_id, roles
            )
        except Exception:
            logger.exception("Failed to link identity", identity_id=identity_id)
            return failure(ErrorCode.INTERNAL_ERROR, "Failed to link identity")
        if identity is None:
            return failure(ErrorCode.NOT_FOUND, "Identity not found")

        logger.info(
            "Identity linked",
            identity_id=identity.id,
            tenant_id=identity.tenant_id,
            user_id=user_id,
            roles=roles,
        )

        issued = await self.token_service.issue(identity)
        if not issued.ok:
            return failure(issued.error.code, issued.error.message)  # type: ignore[union-attr]
        return success(LinkResult(identity=identity, tokens=issued.unwrap().tokens))

    async def update_user_roles(self, tenant_id: str, user_id: str, roles: list[str]) -> Result[int]:
        """Replace roles on every identity linked to (tenant, user). Zero matches is not an error."""
        try:
            count = await self.identity_repo.update_roles_by_user_id(tenant_id, user_id, roles)
        except Exception:
            logger.exception("Failed to update user roles", tenant_id=tenant_id, user_id=user_id)
            return failure(ErrorCode.INTERNAL_ERROR, "Failed to update roles")
        logger.info(
            "User roles updated",
            tenant_id=tenant_id,
            user_id=user_id,
            roles=roles,
            updated_count=count,
        )
        return success(count)

    async def revoke_user_sessions(self, tenant_id: str, user_id: str) -> Result[int]:
        return await self.token_service.revoke_all_for_user(tenant_id, user_id)

    async def sweep_expired_sessions(self) -> Result[int]:
        return await self.token_service.sweep_expired()
