"""Identity model - a tenant-scoped binding of one OAuth account to an optional app user."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime, Index, UniqueConstraint
from sqlmodel import Field, SQLModel

from src.persona.core.security import generate_id
from src.persona.models.base import utc_now


class Identity(SQLModel, table=True):
    """OAuth identity. Same provider account may exist once per tenant."""

    __tablename__ = "identities"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "provider",
            "provider_user_id",
            name="uq_identities_tenant_provider_user",
        ),
        Index("ix_identities_tenant_user", "tenant_id", "user_id"),
    )

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=32)
    tenant_id: str = Field(max_length=255, index=True)
    provider: str = Field(max_length=50)
    provider_user_id: str = Field(max_length=255)
    email: str = Field(max_length=320, index=True)
    name: str | None = Field(default=None, max_length=255)
    profile_image_url: str | None = Field(default=None, max_length=2048)
    # Absent until linked by a trusted internal caller
    user_id: str | None = Field(default=None, max_length=64)
    # Ordered list; semantically a set
    roles: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    # Raw provider claims
    provider_claims: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime, nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime, nullable=False)
    )
