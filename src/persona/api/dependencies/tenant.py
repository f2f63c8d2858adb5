"""Tenant resolution dependency.

Resolves the ``tenant`` query parameter against the startup tenant
configuration before any handler touches storage.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Query, status

from src.persona.core.config import get_settings
from src.persona.core.logging import bind_tenant_context, get_logger
from src.persona.core.tenant import resolve_tenant

logger = get_logger(__name__)


async def get_resolved_tenant(
    tenant: Annotated[str | None, Query()] = None,
) -> str:
    """Return the active tenant id or reject the request with 400."""
    result = resolve_tenant(get_settings().tenant_config, tenant)
    if not result.ok:
        logger.warning("Tenant rejected", tenant=tenant, reason=result.error.reason)  # type: ignore[union-attr]
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.error.message,  # type: ignore[union-attr]
        )

    tenant_id = result.unwrap()
    bind_tenant_context(tenant_id)
    return tenant_id


ResolvedTenant = Annotated[str, Depends(get_resolved_tenant)]
