"""Internal service-to-service endpoints.

Every route requires the X-Internal-Secret header. Role and session routes
also resolve the tenant; linking does not, since the tenant belongs to the
identity row.
"""

from fastapi import APIRouter, Depends, status

from src.persona.api.dependencies import AdminServiceDep, ResolvedTenant, require_internal_secret
from src.persona.core.exceptions import http_exception_for
from src.persona.schemas.identity import (
    IdentityRead,
    LinkIdentityRequest,
    LinkIdentityResponse,
    RevokeSessionsResponse,
    SweepSessionsResponse,
    UpdateRolesRequest,
    UpdateRolesResponse,
)

router = APIRouter(
    prefix="/internal",
    tags=["internal"],
    dependencies=[Depends(require_internal_secret)],
)


@router.post(
    "/identity/{identity_id}/link",
    response_model=LinkIdentityResponse,
    responses={404: {"description": "Identity not found"}},
)
async def link_identity(
    identity_id: str, body: LinkIdentityRequest, service: AdminServiceDep
) -> LinkIdentityResponse:
    """Link an identity to a downstream user and issue it a fresh token pair."""
    result = await service.link_identity_to_user(identity_id, body.user_id, body.roles)
    if not result.ok:
        raise http_exception_for(result.error)  # type: ignore[arg-type]

    linked = result.unwrap()
    return LinkIdentityResponse.build(
        linked.tokens,
        IdentityRead.model_validate(linked.identity, from_attributes=True),
    )


@router.api_route(
    "/user/{user_id}/roles",
    methods=["POST", "PUT"],
    response_model=UpdateRolesResponse,
)
async def update_user_roles(
    user_id: str, body: UpdateRolesRequest, tenant: ResolvedTenant, service: AdminServiceDep
) -> UpdateRolesResponse:
    """Replace roles on every identity linked to the user in this tenant."""
    result = await service.update_user_roles(tenant, user_id, body.roles)
    if not result.ok:
        raise http_exception_for(result.error)  # type: ignore[arg-type]
    return UpdateRolesResponse(updated_count=result.unwrap())


@router.delete("/user/{user_id}/sessions", response_model=RevokeSessionsResponse)
async def revoke_user_sessions(
    user_id: str, tenant: ResolvedTenant, service: AdminServiceDep
) -> RevokeSessionsResponse:
    """Revoke all sessions of every identity linked to the user in this tenant."""
    result = await service.revoke_user_sessions(tenant, user_id)
    if not result.ok:
        raise http_exception_for(result.error)  # type: ignore[arg-type]
    return RevokeSessionsResponse(revoked_count=result.unwrap())


@router.post(
    "/sessions/sweep",
    response_model=SweepSessionsResponse,
    status_code=status.HTTP_200_OK,
)
async def sweep_expired_sessions(service: AdminServiceDep) -> SweepSessionsResponse:
    """Delete expired sessions across all tenants. Safe to call repeatedly."""
    result = await service.sweep_expired_sessions()
    if not result.ok:
        raise http_exception_for(result.error)  # type: ignore[arg-type]
    return SweepSessionsResponse(deleted_count=result.unwrap())
