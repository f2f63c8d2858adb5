"""Tenant configuration and per-request tenant resolution.

The service runs in exactly one tenant mode, fixed at startup:

- single: one implicit tenant; callers must NOT pass a tenant selector.
- multi: an allow-list of tenants; every request must pass one of them.

Resolution is a pure function of (config, selector). It never touches storage,
so isolation is decided before any Identity/Session read happens.
"""

from dataclasses import dataclass
from enum import Enum

from src.persona.core.result import ErrorCode, Result, failure, success


class TenantMode(str, Enum):
    """Tenant mode, fixed for the lifetime of the process."""

    SINGLE = "single"
    MULTI = "multi"


class TenantRejection(str, Enum):
    """Why a tenant selector was rejected."""

    TENANT_REQUIRED = "tenant_required"
    TENANT_NOT_ALLOWED = "tenant_not_allowed"


@dataclass(frozen=True)
class TenantConfig:
    mode: TenantMode
    tenants: tuple[str, ...]

    @classmethod
    def build(cls, mode: TenantMode | str, tenants: list[str]) -> "TenantConfig":
        """Validate mode and allow-list. Raises ValueError on misconfiguration."""
        try:
            mode = TenantMode(mode)
        except ValueError as e:
            raise ValueError("tenant mode must be 'single' or 'multi'") from e

        if mode is TenantMode.SINGLE and len(tenants) != 1:
            raise ValueError("single tenant mode requires exactly 1 tenant")
        if mode is TenantMode.MULTI and len(tenants) < 1:
            raise ValueError("multi tenant mode requires at least 1 tenant")

        return cls(mode=mode, tenants=tuple(tenants))


TENANT_ERROR_MESSAGES = {
    TenantRejection.TENANT_REQUIRED: "tenant parameter required",
    TenantRejection.TENANT_NOT_ALLOWED: "invalid tenant",
}


def resolve_tenant(config: TenantConfig, selector: str | None) -> Result[str]:
    """Resolve the active tenant for a request.

    Args:
        config: Startup tenant configuration.
        selector: Caller-supplied tenant, or None when absent. An empty string
            counts as present in single mode and as absent in multi mode.

    Returns:
        Result carrying the tenant id, or an INVALID_INPUT failure whose
        ``reason`` is a TenantRejection.
    """
    if config.mode is TenantMode.SINGLE:
        if selector is not None:
            return failure(
                ErrorCode.INVALID_INPUT,
                "tenant parameter not allowed in single-tenant mode",
                reason=TenantRejection.TENANT_NOT_ALLOWED,
            )
        return success(config.tenants[0])

    if not selector:
        return failure(
            ErrorCode.INVALID_INPUT,
            TENANT_ERROR_MESSAGES[TenantRejection.TENANT_REQUIRED],
            reason=TenantRejection.TENANT_REQUIRED,
        )
    if selector not in config.tenants:
        return failure(
            ErrorCode.INVALID_INPUT,
            TENANT_ERROR_MESSAGES[TenantRejection.TENANT_NOT_ALLOWED],
            reason=TenantRejection.TENANT_NOT_ALLOWED,
        )
    return success(selector)
