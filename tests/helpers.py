"""Shared test helpers."""

from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit

from httpx import AsyncClient, Response

from src.persona.core.config import get_settings
from src.persona.core.security import decode_access_token
from src.persona.services.oauth import InvalidOAuthStateError, OAuthUserInfo

# Matches PERSONA_INTERNAL_SECRET in tests/conftest.py
INTERNAL_SECRET = "test-internal-secret"

AUTHORIZE_ENDPOINT = "https://accounts.example.com/o/oauth2/auth"


class FakeIdentityProvider:
    """In-process identity provider that mimics the state check of a real exchange."""

    name = "google"

    def __init__(self, user_info: OAuthUserInfo | None = None, error: Exception | None = None):
        self.user_info = user_info or OAuthUserInfo(id="g-1")
        self.error = error
        self.authorization_calls: list[dict[str, Any]] = []
        self.exchange_calls: list[dict[str, Any]] = []

    async def authorization_url(
        self, *, redirect_uri: str, state: str, nonce: str, code_challenge: str
    ) -> str:
        params = {
            "redirect_uri": redirect_uri,
            "state": state,
            "nonce": nonce,
            "code_challenge": code_challenge,
        }
        self.authorization_calls.append(params)
        return f"{AUTHORIZE_ENDPOINT}?{urlencode(params)}"

    async def exchange_code(
        self,
        *,
        callback_url: str,
        code_verifier: str,
        expected_state: str,
        expected_nonce: str | None,
    ) -> OAuthUserInfo:
        self.exchange_calls.append(
            {
                "callback_url": callback_url,
                "code_verifier": code_verifier,
                "expected_state": expected_state,
                "expected_nonce": expected_nonce,
            }
        )
        if self.error is not None:
            raise self.error
        query = dict(parse_qsl(urlsplit(callback_url).query))
        if query.get("state") != expected_state:
            raise InvalidOAuthStateError("State mismatch")
        return self.user_info


def query_params(url: str) -> dict[str, str]:
    return dict(parse_qsl(urlsplit(url).query))


async def complete_login(
    client: AsyncClient, tenant: str = "app1", redirect: str | None = None
) -> Response:
    """Run both OAuth legs against the app; returns the callback response."""
    params = {"tenant": tenant}
    if redirect is not None:
        params["redirect"] = redirect
    start = await client.get("/auth/google", params=params)
    assert start.status_code == 302, start.text
    state = query_params(start.headers["location"])["state"]
    return await client.get("/auth/google/callback", params={"code": "auth-code", "state": state})


def access_claims(token: str) -> dict[str, Any]:
    settings = get_settings()
    return decode_access_token(token, settings.jwt_secret_key, settings.jwt_algorithm)


def set_cookie_headers(response: Response) -> dict[str, str]:
    """Raw Set-Cookie header per cookie name; the last header for a name wins."""
    return {
        header.partition("=")[0]: header for header in response.headers.get_list("set-cookie")
    }


def cleared_cookies(response: Response) -> set[str]:
    """Names of cookies the response deletes."""
    names = set()
    for header in response.headers.get_list("set-cookie"):
        name, _, rest = header.partition("=")
        if "max-age=0" in rest.lower():
            names.add(name)
    return names


async def storage_down(*args: Any, **kwargs: Any) -> Any:
    """Stand-in for a repository method whose database is unreachable."""
    raise RuntimeError("db down")
