"""Internal service-to-service authentication."""

import secrets
from typing import Annotated

from fastapi import Header, HTTPException, status

from src.persona.core.config import get_settings
from src.persona.core.logging import get_logger

logger = get_logger(__name__)

INTERNAL_SECRET_HEADER = "X-Internal-Secret"


async def require_internal_secret(
    x_internal_secret: Annotated[str | None, Header()] = None,
) -> None:
    """Reject requests that don't carry the shared internal secret."""
    expected = get_settings().internal_secret
    if x_internal_secret is None or not secrets.compare_digest(
        x_internal_secret.encode(), expected.encode()
    ):
        logger.warning("Internal request rejected", secret_present=x_internal_secret is not None)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
