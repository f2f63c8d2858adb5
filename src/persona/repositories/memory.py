"""In-memory repositories.

Same contract as the SQL repositories, backed by dicts. Used by the test suite
and for running the service without a database. Not shared across processes.
"""

from src.persona.models import Identity, Session, utc_now
from src.persona.repositories.errors import IdentityAlreadyExistsError, SessionAlreadyExistsError


class MemoryIdentityRepository:
    def __init__(self) -> None:
        self.identities: dict[str, Identity] = {}

    async def create(self, identity: Identity) -> Identity:
        if self._natural_key_taken(identity):
            raise IdentityAlreadyExistsError(
                "Identity already exists",
                detail={"tenant_id": identity.tenant_id, "provider": identity.provider},
            )
        self.identities[identity.id] = identity
        return identity

    def _natural_key_taken(self, identity: Identity) -> bool:
        return any(
            existing.tenant_id == identity.tenant_id
            and existing.provider == identity.provider
            and existing.provider_user_id == identity.provider_user_id
            for existing in self.identities.values()
        )

    async def get_by_id(self, identity_id: str) -> Identity | None:
        return self.identities.get(identity_id)

    async def get_by_provider(
        self, tenant_id: str, provider: str, provider_user_id: str
    ) -> Identity | None:
        for identity in self.identities.values():
            if (
                identity.tenant_id == tenant_id
                and identity.provider == provider
                and identity.provider_user_id == provider_user_id
            ):
                return identity
        return None

    async def get_by_email(self, tenant_id: str, email: str) -> Identity | None:
        for identity in self._ordered():
            if identity.tenant_id == tenant_id and identity.email == email:
                return identity
        return None

    async def get_by_user_id(self, tenant_id: str, user_id: str) -> Identity | None:
        matches = await self.list_by_user_id(tenant_id, user_id)
        return matches[0] if matches else None

    async def list_by_user_id(self, tenant_id: str, user_id: str) -> list[Identity]:
        return [
            identity
            for identity in self._ordered()
            if identity.tenant_id == tenant_id and identity.user_id == user_id
        ]

    async def update_user_id_and_roles(
        self, identity_id: str, user_id: str, roles: list[str]
    ) -> Identity | None:
        identity = self.identities.get(identity_id)
        if identity is None:
            return None
        identity.user_id = user_id
        identity.roles = list(roles)
        identity.updated_at = utc_now()
        return identity

    async def update_roles_by_user_id(self, tenant_id: str, user_id: str, roles: list[str]) -> int:
        matches = await self.list_by_user_id(tenant_id, user_id)
        now = utc_now()
        for identity in matches:
            identity.roles = list(roles)
            identity.updated_at = now
        return len(matches)

    def _ordered(self) -> list[Identity]:
        return sorted(self.identities.values(), key=lambda i: i.created_at)


class MemorySessionRepository:
    def __init__(self) -> None:
        self.sessions: dict[str, Session] = {}

    async def create(self, session: Session) -> Session:
        if any(s.token_hash == session.token_hash for s in self.sessions.values()):
            raise SessionAlreadyExistsError("Session token hash already exists")
        self.sessions[session.id] = session
        return session

    async def get_by_id(self, session_id: str) -> Session | None:
        return self.sessions.get(session_id)

    async def get_by_token_hash(self, token_hash: str) -> Session | None:
        for session in self.sessions.values():
            if session.token_hash == token_hash:
                return session
        return None

    async def list_by_identity_id(self, identity_id: str) -> list[Session]:
        return sorted(
            (s for s in self.sessions.values() if s.identity_id == identity_id),
            key=lambda s: s.created_at,
        )

    async def revoke(self, session_id: str) -> bool:
        session = self.sessions.get(session_id)
        if session is None:
            return False
        session.revoked = True
        return True

    async def revoke_all_by_identity_id(self, identity_id: str) -> int:
        count = 0
        for session in self.sessions.values():
            if session.identity_id == identity_id and not session.revoked:
                session.revoked = True
                count += 1
        return count

    async def delete_expired(self) -> int:
        now = utc_now()
        expired = [sid for sid, s in self.sessions.items() if s.expires_at < now]
        for sid in expired:
            del self.sessions[sid]
        return len(expired)
