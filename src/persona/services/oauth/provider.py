"""Identity provider contract and the Google OpenID Connect implementation."""

import asyncio
import hmac
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

import httpx
from jose import JWTError, jwt

from src.persona.core.config import Settings
from src.persona.core.logging import get_logger
from src.persona.services.oauth.errors import (
    InvalidOAuthStateError,
    MissingClaimsError,
    ProviderExchangeError,
)

logger = get_logger(__name__)

OAUTH_SCOPE = "openid email profile"


@dataclass(frozen=True)
class OAuthUserInfo:
    """Claims extracted from a validated ID token."""

    id: str
    email: str | None = None
    name: str | None = None
    picture: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


class IdentityProvider(Protocol):
    """An OIDC provider able to run the authorization-code-with-PKCE flow."""

    name: str

    async def authorization_url(
        self, *, redirect_uri: str, state: str, nonce: str, code_challenge: str
    ) -> str: ...

    async def exchange_code(
        self,
        *,
        callback_url: str,
        code_verifier: str,
        expected_state: str,
        expected_nonce: str | None,
    ) -> OAuthUserInfo: ...


def _has_key(jwks: dict[str, Any], kid: str) -> bool:
    return any(key.get("kid") == kid for key in jwks.get("keys", []))


def extract_user_info(claims: dict[str, Any]) -> OAuthUserInfo:
    """Build user info from ID token claims.

    Raises:
        MissingClaimsError: If the subject claim is absent.
    """
    sub = claims.get("sub")
    if not isinstance(sub, str) or not sub:
        raise MissingClaimsError("ID token has no subject claim")

    def optional(name: str) -> str | None:
        value = claims.get(name)
        return value if isinstance(value, str) else None

    return OAuthUserInfo(
        id=sub,
        email=optional("email"),
        name=optional("name"),
        picture=optional("picture"),
        raw=dict(claims),
    )


class GoogleIdentityProvider:
    """Google OIDC via discovery, PKCE code exchange and JWKS-verified ID tokens.

    Discovery metadata and the JWKS are fetched lazily on first use and kept
    on this instance. The JWKS is refetched when an ID token names a key id
    it does not contain, so signing key rotation needs no restart.
    """

    name = "google"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        issuer: str = "https://accounts.google.com",
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.issuer = issuer.rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._metadata: dict[str, Any] | None = None
        self._jwks: dict[str, Any] | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleIdentityProvider":
        return cls(
            client_id=settings.google_client_id or "",
            client_secret=settings.google_client_secret or "",
            issuer=settings.google_issuer,
            timeout=settings.oauth_http_timeout_seconds,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _get_json(self, url: str) -> dict[str, Any]:
        try:
            response = await self._http.get(url)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderExchangeError(f"Failed to fetch {url}") from e
        if not isinstance(data, dict):
            raise ProviderExchangeError(f"Unexpected response from {url}")
        return data

    async def metadata(self) -> dict[str, Any]:
        """OIDC discovery document, fetched once."""
        if self._metadata is not None:
            return self._metadata
        async with self._lock:
            if self._metadata is None:
                url = f"{self.issuer}/.well-known/openid-configuration"
                metadata = await self._get_json(url)
                for key in ("authorization_endpoint", "token_endpoint", "jwks_uri"):
                    if key not in metadata:
                        raise ProviderExchangeError(f"Discovery document missing {key}")
                self._metadata = metadata
                logger.info("OIDC discovery loaded", issuer=self.issuer)
        return self._metadata

    async def jwks(self, stale: dict[str, Any] | None = None) -> dict[str, Any]:
        """Provider signing keys.

        Passing the key set a lookup failed against refetches it, unless a
        concurrent caller already replaced it.
        """
        if self._jwks is not None and self._jwks is not stale:
            return self._jwks
        metadata = await self.metadata()
        async with self._lock:
            if self._jwks is None or self._jwks is stale:
                self._jwks = await self._get_json(metadata["jwks_uri"])
                logger.info("JWKS loaded", issuer=self.issuer, refreshed=stale is not None)
        return self._jwks

    async def authorization_url(
        self, *, redirect_uri: str, state: str, nonce: str, code_challenge: str
    ) -> str:
        metadata = await self.metadata()
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": OAUTH_SCOPE,
            "state": state,
            "nonce": nonce,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }
        return f"{metadata['authorization_endpoint']}?{urlencode(params)}"

    async def exchange_code(
        self,
        *,
        callback_url: str,
        code_verifier: str,
        expected_state: str,
        expected_nonce: str | None,
    ) -> OAuthUserInfo:
        """Exchange the authorization code in ``callback_url`` for a validated identity.

        The redirect URI sent to the token endpoint is the callback URL
        without its query string, so it must match the one used to start the
        flow.

        Raises:
            InvalidOAuthStateError: If the returned state or nonce does not match.
            ProviderExchangeError: If the provider reports an error or the
                exchange/ID token validation fails.
            MissingClaimsError: If the ID token has no subject.
        """
        parts = urlsplit(callback_url)
        query = {key: values[0] for key, values in parse_qs(parts.query).items()}

        returned_state = query.get("state", "")
        if not hmac.compare_digest(returned_state.encode(), expected_state.encode()):
            raise InvalidOAuthStateError("State mismatch")
        if "error" in query:
            raise ProviderExchangeError(f"Provider returned error: {query['error']}")
        code = query.get("code")
        if not code:
            raise ProviderExchangeError("Callback has no authorization code")

        metadata = await self.metadata()
        redirect_uri = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
        try:
            response = await self._http.post(
                metadata["token_endpoint"],
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": redirect_uri,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code_verifier": code_verifier,
                },
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise ProviderExchangeError("Token request failed") from e
        if response.status_code != 200:
            raise ProviderExchangeError(f"Token exchange failed: HTTP {response.status_code}")

        token_response = response.json()
        id_token = token_response.get("id_token")
        if not id_token:
            raise ProviderExchangeError("Token response has no id_token")

        claims = await self._verify_id_token(
            id_token, access_token=token_response.get("access_token")
        )
        if expected_nonce is not None and claims.get("nonce") != expected_nonce:
            raise InvalidOAuthStateError("Nonce mismatch")
        return extract_user_info(claims)

    async def _verify_id_token(self, id_token: str, access_token: str | None) -> dict[str, Any]:
        metadata = await self.metadata()
        try:
            kid = jwt.get_unverified_header(id_token).get("kid")
        except JWTError as e:
            raise ProviderExchangeError(f"Invalid ID token: {e}") from e

        keys = await self.jwks()
        if kid is not None and not _has_key(keys, kid):
            logger.info("ID token signed with unknown key", kid=kid)
            keys = await self.jwks(stale=keys)

        issuer = metadata.get("issuer", self.issuer)
        # Google has issued tokens both with and without the scheme
        issuers = [issuer, issuer.removeprefix("https://")]
        try:
            return jwt.decode(  # type: ignore[no-any-return]
                id_token,
                keys,
                algorithms=["RS256"],
                audience=self.client_id,
                issuer=issuers,
                access_token=access_token,
            )
        except JWTError as e:
            raise ProviderExchangeError(f"Invalid ID token: {e}") from e
