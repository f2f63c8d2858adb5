"""Google OAuth login endpoints.

The start endpoint runs tenant resolution; the callback does not, since the
provider's redirect carries no tenant. The tenant comes back from the signed
flow cookie set at start.
"""

from typing import Annotated

from fastapi import APIRouter, Query, status
from fastapi.responses import RedirectResponse
from starlette.requests import Request

from src.persona.api.cookies import clear_flow_cookie, set_auth_cookies, set_flow_cookie
from src.persona.api.dependencies import OAuthLoginServiceDep, ResolvedTenant
from src.persona.core.config import get_settings
from src.persona.core.rate_limit import limiter, oauth_limit
from src.persona.services.oauth import OAUTH_FLOW_COOKIE
from src.persona.services.oauth_login_service import with_error

router = APIRouter(prefix="/auth", tags=["auth"])


def build_callback_url(request: Request, is_production: bool) -> str:
    """The URL the provider redirected to, as the provider saw it.

    Production always sits behind TLS termination, so the scheme is forced
    to https there whatever the inbound scheme says.
    """
    url = request.url
    if is_production:
        url = url.replace(scheme="https")
    return str(url)


@router.get(
    "/google",
    status_code=status.HTTP_302_FOUND,
    responses={
        302: {"description": "Redirect to Google, or to the app with ?error=oauth_failed"},
        400: {"description": "Tenant missing or not allowed"},
        404: {"description": "Google login not configured"},
    },
)
@limiter.limit(oauth_limit)
async def google_login(
    request: Request,
    tenant: ResolvedTenant,
    service: OAuthLoginServiceDep,
    redirect: Annotated[str | None, Query()] = None,
) -> RedirectResponse:
    """Start the Google login flow for the resolved tenant.

    ``redirect`` is where the browser lands after login; it is ignored unless
    it is an absolute http(s) URL.
    """
    settings = get_settings()
    result = await service.start_authorization(tenant, redirect)
    if not result.ok:
        return RedirectResponse(
            with_error(settings.public_url, "oauth_failed"), status_code=status.HTTP_302_FOUND
        )

    start = result.unwrap()
    response = RedirectResponse(start.authorization_url, status_code=status.HTTP_302_FOUND)
    set_flow_cookie(response, start.flow_cookie, settings)
    return response


@router.get(
    "/google/callback",
    status_code=status.HTTP_302_FOUND,
    responses={302: {"description": "Redirect to the app, with ?error=... on failure"}},
)
@limiter.limit(oauth_limit)
async def google_callback(request: Request, service: OAuthLoginServiceDep) -> RedirectResponse:
    """Finish the Google login flow and set the auth cookies.

    Failures never produce an error page; they redirect with an ``error``
    query parameter (invalid_state, oauth_failed or auth_failed).
    """
    settings = get_settings()
    outcome = await service.complete_callback(
        request.cookies.get(OAUTH_FLOW_COOKIE),
        build_callback_url(request, settings.is_production),
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )

    response = RedirectResponse(outcome.redirect_url, status_code=status.HTTP_302_FOUND)
    clear_flow_cookie(response, settings)
    if outcome.tokens is not None:
        set_auth_cookies(
            response, outcome.tokens.access_token, outcome.tokens.refresh_token, settings
        )
    return response
