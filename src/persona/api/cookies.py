"""Cookie handling for auth tokens and the OAuth flow state.

Production cookies are Secure and SameSite=None so the tokens reach the
API from the application's own origin; development uses SameSite=Lax.
"""

from typing import Literal

from starlette.responses import Response

from src.persona.core.config import Settings
from src.persona.services.oauth import OAUTH_FLOW_COOKIE, OAUTH_FLOW_MAX_AGE_SECONDS

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"
AUTH_COOKIE_MAX_AGE_SECONDS = 30 * 24 * 60 * 60


def _set(response: Response, key: str, value: str, max_age: int, settings: Settings) -> None:
    samesite: Literal["none", "lax"] = "none" if settings.is_production else "lax"
    response.set_cookie(
        key,
        value,
        max_age=max_age,
        path="/",
        domain=settings.cookie_domain or None,
        secure=settings.is_production,
        httponly=True,
        samesite=samesite,
    )


def _delete(response: Response, key: str, settings: Settings) -> None:
    samesite: Literal["none", "lax"] = "none" if settings.is_production else "lax"
    response.delete_cookie(
        key,
        path="/",
        domain=settings.cookie_domain or None,
        secure=settings.is_production,
        httponly=True,
        samesite=samesite,
    )


def set_access_cookie(response: Response, access_token: str, settings: Settings) -> None:
    _set(response, ACCESS_TOKEN_COOKIE, access_token, AUTH_COOKIE_MAX_AGE_SECONDS, settings)


def set_auth_cookies(
    response: Response, access_token: str, refresh_token: str, settings: Settings
) -> None:
    set_access_cookie(response, access_token, settings)
    _set(response, REFRESH_TOKEN_COOKIE, refresh_token, AUTH_COOKIE_MAX_AGE_SECONDS, settings)


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    _delete(response, ACCESS_TOKEN_COOKIE, settings)
    _delete(response, REFRESH_TOKEN_COOKIE, settings)


def set_flow_cookie(response: Response, value: str, settings: Settings) -> None:
    _set(response, OAUTH_FLOW_COOKIE, value, OAUTH_FLOW_MAX_AGE_SECONDS, settings)


def clear_flow_cookie(response: Response, settings: Settings) -> None:
    _delete(response, OAUTH_FLOW_COOKIE, settings)
