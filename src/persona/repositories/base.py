"""Storage-agnostic repository contracts.

Services depend on these protocols only. SQL and in-memory implementations
live side by side and must behave identically, including raising
ConstraintViolation subclasses on natural-key collisions.
"""

from typing import Protocol

from src.persona.models import Identity, Session


class IdentityRepository(Protocol):
    async def create(self, identity: Identity) -> Identity:
        """Persist a new identity.

        Raises:
            IdentityAlreadyExistsError: If (tenant_id, provider, provider_user_id) is taken.
        """
        ...

    async def get_by_id(self, identity_id: str) -> Identity | None: ...

    async def get_by_provider(
        self, tenant_id: str, provider: str, provider_user_id: str
    ) -> Identity | None: ...

    async def get_by_email(self, tenant_id: str, email: str) -> Identity | None: ...

    async def get_by_user_id(self, tenant_id: str, user_id: str) -> Identity | None: ...

    async def list_by_user_id(self, tenant_id: str, user_id: str) -> list[Identity]: ...

    async def update_user_id_and_roles(
        self, identity_id: str, user_id: str, roles: list[str]
    ) -> Identity | None:
        """Set user id and roles on one identity. Returns None if it does not exist."""
        ...

    async def update_roles_by_user_id(self, tenant_id: str, user_id: str, roles: list[str]) -> int:
        """Replace roles on every identity linked to (tenant_id, user_id). Returns row count."""
        ...


class SessionRepository(Protocol):
    async def create(self, session: Session) -> Session:
        """Persist a new session.

        Raises:
            SessionAlreadyExistsError: If the token hash is already in use.
        """
        ...

    async def get_by_id(self, session_id: str) -> Session | None: ...

    async def get_by_token_hash(self, token_hash: str) -> Session | None: ...

    async def list_by_identity_id(self, identity_id: str) -> list[Session]: ...

    async def revoke(self, session_id: str) -> bool:
        """Mark one session revoked. Returns False if it does not exist."""
        ...

    async def revoke_all_by_identity_id(self, identity_id: str) -> int:
        """Revoke every unrevoked session of an identity. Returns the number revoked."""
        ...

    async def delete_expired(self) -> int:
        """Delete sessions whose expires_at has passed, revoked or not. Idempotent."""
        ...
