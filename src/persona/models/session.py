"""Session model - server-side record backing one refresh token."""

from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from src.persona.core.security import generate_id
from src.persona.models.base import utc_now


class Session(SQLModel, table=True):
    """Refresh-token session. The raw token is never stored, only its SHA256 hash."""

    __tablename__ = "sessions"

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=32)
    identity_id: str = Field(foreign_key="identities.id", ondelete="CASCADE", index=True)
    # Denormalized from the identity for isolation queries without a join
    tenant_id: str = Field(max_length=255, index=True)
    token_hash: str = Field(max_length=64, unique=True, index=True)
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False, index=True))
    revoked: bool = Field(default=False)
    ip_address: str | None = Field(default=None, max_length=64)
    user_agent: str | None = Field(default=None, max_length=512)
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime, nullable=False)
    )
