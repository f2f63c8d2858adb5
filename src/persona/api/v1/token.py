"""Token refresh and logout endpoints.

The refresh token is read from the ``refresh_token`` cookie first, then from
the JSON body.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from starlette.requests import Request
from starlette.responses import Response

from src.persona.api.cookies import (
    REFRESH_TOKEN_COOKIE,
    clear_auth_cookies,
    set_access_cookie,
)
from src.persona.api.dependencies import IdentityRepo, TokenServiceDep
from src.persona.core.config import Settings, get_settings
from src.persona.core.exceptions import error_response
from src.persona.core.logging import bind_identity_context, get_logger
from src.persona.core.rate_limit import limiter, token_limit
from src.persona.core.result import ErrorCode
from src.persona.schemas.token import LogoutResponse, RefreshRequest, RefreshResponse

logger = get_logger(__name__)

router = APIRouter(tags=["token"])


def _reject(detail: str, settings: Settings) -> JSONResponse:
    rejection = error_response(status.HTTP_401_UNAUTHORIZED, detail)
    clear_auth_cookies(rejection, settings)
    return rejection


def _presented_refresh_token(request: Request, body: RefreshRequest | None) -> str | None:
    cookie_token = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if cookie_token:
        return cookie_token
    if body is not None and body.refresh_token:
        return body.refresh_token
    return None


@router.post(
    "/token/refresh",
    response_model=RefreshResponse,
    responses={401: {"description": "Missing, unknown, revoked or expired refresh token"}},
)
@limiter.limit(token_limit)
async def refresh(
    request: Request,
    response: Response,
    token_service: TokenServiceDep,
    identity_repo: IdentityRepo,
    body: RefreshRequest | None = None,
) -> RefreshResponse | JSONResponse:
    """Mint a new access token for the session behind a refresh token.

    The refresh token itself is not rotated. On rejection both auth cookies
    are cleared.
    """
    settings = get_settings()
    refresh_token = _presented_refresh_token(request, body)
    if refresh_token is None:
        return error_response(status.HTTP_401_UNAUTHORIZED, "No refresh token provided")

    validated = await token_service.validate_refresh(refresh_token)
    if not validated.ok:
        error = validated.error
        if error.code is ErrorCode.INTERNAL_ERROR:  # type: ignore[union-attr]
            # The token may well be valid; keep the cookies
            return error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                error.message,  # type: ignore[union-attr]
            )
        logger.info("Refresh rejected", reason=error.reason)  # type: ignore[union-attr]
        return _reject(error.message, settings)  # type: ignore[union-attr]

    session = validated.unwrap()
    identity = await identity_repo.get_by_id(session.identity_id)
    if identity is None:
        logger.warning("Session without identity", session_id=session.id)
        return _reject("Identity not found", settings)

    bind_identity_context(identity.id, identity.tenant_id, identity.user_id)
    access_token = token_service.reissue_access_token(identity, session.id)
    set_access_cookie(response, access_token, settings)
    return RefreshResponse(access_token=access_token, expires_in=token_service.access_ttl)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    request: Request,
    response: Response,
    token_service: TokenServiceDep,
    body: RefreshRequest | None = None,
) -> LogoutResponse:
    """Revoke the session behind the presented refresh token, if any.

    Always succeeds and always clears the auth cookies.
    """
    settings = get_settings()
    refresh_token = _presented_refresh_token(request, body)
    if refresh_token is not None:
        validated = await token_service.validate_refresh(refresh_token)
        if validated.ok:
            revoked = await token_service.revoke(validated.unwrap().id)
            if not revoked.ok:
                logger.warning(
                    "Logout revocation failed",
                    reason=revoked.error.message,  # type: ignore[union-attr]
                )
    clear_auth_cookies(response, settings)
    return LogoutResponse()
