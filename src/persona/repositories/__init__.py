"""Repository layer - data access abstraction.

Re-exports the repository contracts and both implementations.
"""

from src.persona.repositories.base import IdentityRepository, SessionRepository
from src.persona.repositories.errors import (
    ConstraintViolation,
    IdentityAlreadyExistsError,
    SessionAlreadyExistsError,
)
from src.persona.repositories.identity import SqlIdentityRepository
from src.persona.repositories.memory import MemoryIdentityRepository, MemorySessionRepository
from src.persona.repositories.session import SqlSessionRepository

__all__ = [
    # Contracts
    "IdentityRepository",
    "SessionRepository",
    # Errors
    "ConstraintViolation",
    "IdentityAlreadyExistsError",
    "SessionAlreadyExistsError",
    # SQL
    "SqlIdentityRepository",
    "SqlSessionRepository",
    # In-memory
    "MemoryIdentityRepository",
    "MemorySessionRepository",
]
