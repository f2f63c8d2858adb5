"""SQL repository for Session entity."""

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from src.persona.models import Session, utc_now
from src.persona.repositories.errors import SessionAlreadyExistsError


class SqlSessionRepository:
    """Session repository over an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, session: Session) -> Session:
        self.session.add(session)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise SessionAlreadyExistsError("Session token hash already exists") from e
        return session

    async def get_by_id(self, session_id: str) -> Session | None:
        result = await self.session.execute(select(Session).where(Session.id == session_id))
        return result.scalar_one_or_none()

    async def get_by_token_hash(self, token_hash: str) -> Session | None:
        result = await self.session.execute(
            select(Session).where(Session.token_hash == token_hash)
        )
        return result.scalar_one_or_none()

    async def list_by_identity_id(self, identity_id: str) -> list[Session]:
        result = await self.session.execute(
            select(Session)
            .where(Session.identity_id == identity_id)
            .order_by(Session.created_at)
        )
        return list(result.scalars().all())

    async def revoke(self, session_id: str) -> bool:
        db_session = await self.get_by_id(session_id)
        if db_session is None:
            return False
        if not db_session.revoked:
            db_session.revoked = True
            try:
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise
        return True

    async def revoke_all_by_identity_id(self, identity_id: str) -> int:
        # Only ever flips revoked False -> True
        stmt = (
            update(Session)
            .where(Session.identity_id == identity_id)  # type: ignore[arg-type]
            .where(Session.revoked == False)  # type: ignore[arg-type]  # noqa: E712
            .values(revoked=True)
            .execution_options(synchronize_session="fetch")
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def delete_expired(self) -> int:
        stmt = delete(Session).where(Session.expires_at < utc_now())  # type: ignore[arg-type]
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return result.rowcount or 0  # type: ignore[attr-defined]
