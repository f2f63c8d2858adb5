"""SQL repository for Identity entity."""

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from src.persona.models import Identity, utc_now
from src.persona.repositories.errors import IdentityAlreadyExistsError


class SqlIdentityRepository:
    """Identity repository over an async SQLAlchemy session.

    Each write commits on its own; no operation needs a multi-row transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, identity: Identity) -> Identity:
        self.session.add(identity)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise IdentityAlreadyExistsError(
                "Identity already exists",
                detail={
                    "tenant_id": identity.tenant_id,
                    "provider": identity.provider,
                },
            ) from e
        return identity

    async def get_by_id(self, identity_id: str) -> Identity | None:
        result = await self.session.execute(select(Identity).where(Identity.id == identity_id))
        return result.scalar_one_or_none()

    async def get_by_provider(
        self, tenant_id: str, provider: str, provider_user_id: str
    ) -> Identity | None:
        result = await self.session.execute(
            select(Identity).where(
                Identity.tenant_id == tenant_id,
                Identity.provider == provider,
                Identity.provider_user_id == provider_user_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, tenant_id: str, email: str) -> Identity | None:
        result = await self.session.execute(
            select(Identity)
            .where(Identity.tenant_id == tenant_id, Identity.email == email)
            .order_by(Identity.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_user_id(self, tenant_id: str, user_id: str) -> Identity | None:
        result = await self.session.execute(
            select(Identity)
            .where(Identity.tenant_id == tenant_id, Identity.user_id == user_id)
            .order_by(Identity.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_by_user_id(self, tenant_id: str, user_id: str) -> list[Identity]:
        result = await self.session.execute(
            select(Identity)
            .where(Identity.tenant_id == tenant_id, Identity.user_id == user_id)
            .order_by(Identity.created_at)
        )
        return list(result.scalars().all())

    async def update_user_id_and_roles(
        self, identity_id: str, user_id: str, roles: list[str]
    ) -> Identity | None:
        identity = await self.get_by_id(identity_id)
        if identity is None:
            return None

        identity.user_id = user_id
        identity.roles = list(roles)
        identity.updated_at = utc_now()
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return identity

    async def update_roles_by_user_id(self, tenant_id: str, user_id: str, roles: list[str]) -> int:
        stmt = (
            update(Identity)
            .where(Identity.tenant_id == tenant_id)  # type: ignore[arg-type]
            .where(Identity.user_id == user_id)  # type: ignore[arg-type]
            .values(roles=list(roles), updated_at=utc_now())
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return result.rowcount or 0  # type: ignore[attr-defined]
