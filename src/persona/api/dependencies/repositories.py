"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.persona.api.dependencies.db import DBSession
from src.persona.repositories import (
    IdentityRepository,
    SessionRepository,
    SqlIdentityRepository,
    SqlSessionRepository,
)


def get_identity_repository(session: DBSession) -> IdentityRepository:
    return SqlIdentityRepository(session)


def get_session_repository(session: DBSession) -> SessionRepository:
    return SqlSessionRepository(session)


IdentityRepo = Annotated[IdentityRepository, Depends(get_identity_repository)]
SessionRepo = Annotated[SessionRepository, Depends(get_session_repository)]
