"""Rate limiting for the public OAuth and token endpoints.

In-memory storage (per-process). Disabled in the testing environment.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from src.persona.core.config import get_settings
from src.persona.core.logging import get_logger

logger = get_logger(__name__)


def get_rate_limit_key(request: Request) -> str:
    """Generate rate limit key from client IP only.

    Never include the tenant selector: it is caller-controlled and rotating it
    would mint unlimited buckets.
    """
    return get_remote_address(request) or "unknown"


def create_limiter() -> Limiter:
    """Create rate limiter. Disabled in testing environment."""
    settings = get_settings()

    if settings.app_env == "testing":
        logger.info("Rate limiter disabled (testing environment)")
        return Limiter(key_func=get_rate_limit_key, enabled=False)

    return Limiter(key_func=get_rate_limit_key)


def oauth_limit() -> str:
    return get_settings().rate_limit_oauth


def token_limit() -> str:
    return get_settings().rate_limit_token


# Reads settings at import time; reconfiguration needs a restart.
limiter = create_limiter()
