"""SQLModel table models.

Re-exports all models for convenient imports and Alembic autogeneration.
"""

from src.persona.models.base import utc_now
from src.persona.models.identity import Identity
from src.persona.models.session import Session

__all__ = [
    "Identity",
    "Session",
    "utc_now",
]
