from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware, correlation_id
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import RequestResponseEndpoint

from src.persona.api.v1.router import api_router
from src.persona.core.config import get_settings
from src.persona.core.db import dispose_engine
from src.persona.core.exceptions import setup_exception_handlers
from src.persona.core.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from src.persona.core.rate_limit import limiter
from src.persona.services.oauth import GoogleIdentityProvider

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info(
        f"Starting {settings.app_name}",
        tenant_mode=settings.tenant_mode.value,
        google_enabled=settings.google_enabled,
    )

    yield

    logger.info("Closing connections...")
    provider = getattr(app.state, "identity_provider", None)
    if isinstance(provider, GoogleIdentityProvider):
        await provider.aclose()
    await dispose_engine()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "auth", "description": "OAuth login"},
    {"name": "token", "description": "Token refresh and logout"},
    {"name": "internal", "description": "Service-to-service identity administration"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant identity and token service",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
    )

    # Owned by the app so discovery/JWKS caches live as long as it does
    app.state.identity_provider = (
        GoogleIdentityProvider.from_settings(settings) if settings.google_enabled else None
    )

    setup_exception_handlers(app)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    @app.middleware("http")
    async def logging_context_middleware(
        request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Bind request_id to log context for all requests."""
        clear_request_context()
        bind_request_context(correlation_id.get())
        try:
            response = await call_next(request)
            return response
        finally:
            clear_request_context()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    # Added last so it is the outermost middleware and the id is set for the rest
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(api_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness only: no storage, tenant or auth."""
        return {"status": "ok", "tenantMode": settings.tenant_mode.value}

    return app


app = create_app()
