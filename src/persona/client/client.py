"""Client for the internal identity API, for use by downstream services.

Every call returns a Result; network failures, timeouts and non-2xx
responses become failures rather than exceptions.
"""

from typing import Any, Protocol, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from src.persona.core.logging import get_logger
from src.persona.core.result import ErrorCode, Result, failure, success
from src.persona.schemas.identity import (
    LinkIdentityResponse,
    RevokeSessionsResponse,
    UpdateRolesResponse,
)

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

STATUS_ERROR_CODES: dict[int, ErrorCode] = {
    400: ErrorCode.INVALID_INPUT,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.ALREADY_EXISTS,
}


class IdentityAdminClient(Protocol):
    async def link_identity_to_user(
        self, identity_id: str, user_id: str, roles: list[str]
    ) -> Result[LinkIdentityResponse]: ...

    async def update_user_roles(self, user_id: str, roles: list[str]) -> Result[UpdateRolesResponse]: ...

    async def revoke_user_sessions(self, user_id: str) -> Result[RevokeSessionsResponse]: ...


class PersonaClient:
    """HTTP client for the /internal endpoints.

    Args:
        endpoint: Base URL of the identity service.
        internal_secret: Sent as X-Internal-Secret.
        tenant_id: Sent as the ``tenant`` query parameter in multi-tenant mode.
        timeout: Request timeout in seconds.
        http_client: Optional client to use instead of one per request.
    """

    def __init__(
        self,
        endpoint: str,
        internal_secret: str,
        tenant_id: str | None = None,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.internal_secret = internal_secret
        self.tenant_id = tenant_id
        self.timeout = timeout
        self._http = http_client

    async def link_identity_to_user(
        self, identity_id: str, user_id: str, roles: list[str]
    ) -> Result[LinkIdentityResponse]:
        return await self._request(
            "POST",
            f"/internal/identity/{quote(identity_id, safe='')}/link",
            LinkIdentityResponse,
            json={"userId": user_id, "roles": roles},
        )

    async def update_user_roles(self, user_id: str, roles: list[str]) -> Result[UpdateRolesResponse]:
        return await self._request(
            "PUT",
            f"/internal/user/{quote(user_id, safe='')}/roles",
            UpdateRolesResponse,
            json={"roles": roles},
        )

    async def revoke_user_sessions(self, user_id: str) -> Result[RevokeSessionsResponse]:
        return await self._request(
            "DELETE",
            f"/internal/user/{quote(user_id, safe='')}/sessions",
            RevokeSessionsResponse,
        )

    async def _request(
        self,
        method: str,
        path: str,
        response_model: type[M],
        json: dict[str, Any] | None = None,
    ) -> Result[M]:
        url = f"{self.endpoint}{path}"
        params = {"tenant": self.tenant_id} if self.tenant_id is not None else None
        headers = {"X-Internal-Secret": self.internal_secret}

        logger.debug("Identity service request", method=method, url=url)
        try:
            if self._http is not None:
                response = await self._http.request(
                    method, url, params=params, json=json, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(
                        method, url, params=params, json=json, headers=headers
                    )
        except httpx.TimeoutException:
            logger.error("Identity service request timed out", url=url)
            return failure(ErrorCode.INTERNAL_ERROR, "Request timed out")
        except httpx.HTTPError as e:
            logger.error("Identity service request error", url=url, error=str(e))
            return failure(ErrorCode.INTERNAL_ERROR, f"Network error: {e}")

        if response.is_error:
            message = _error_message(response)
            logger.error(
                "Identity service request failed", status=response.status_code, error=message
            )
            code = STATUS_ERROR_CODES.get(response.status_code, ErrorCode.INTERNAL_ERROR)
            return failure(code, message)

        try:
            return success(response_model.model_validate(response.json()))
        except (ValueError, ValidationError):
            return failure(ErrorCode.INTERNAL_ERROR, "Unexpected response from identity service")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("detail"), str):
        return body["detail"]
    return f"Identity service error: {response.status_code}"


class NoOpPersonaClient:
    """Stand-in used when the identity service is not configured. Every call fails."""

    async def _not_configured(self) -> Result[Any]:
        logger.warning("Identity service is not configured")
        return failure(ErrorCode.INTERNAL_ERROR, "Identity service is not configured")

    async def link_identity_to_user(
        self, identity_id: str, user_id: str, roles: list[str]
    ) -> Result[LinkIdentityResponse]:
        return await self._not_configured()

    async def update_user_roles(self, user_id: str, roles: list[str]) -> Result[UpdateRolesResponse]:
        return await self._not_configured()

    async def revoke_user_sessions(self, user_id: str) -> Result[RevokeSessionsResponse]:
        return await self._not_configured()
