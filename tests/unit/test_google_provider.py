"""Tests for the Google OIDC provider against a mocked discovery/token/JWKS backend."""

import json
import time
from urllib.parse import parse_qsl

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt

from src.persona.services.oauth import (
    GoogleIdentityProvider,
    InvalidOAuthStateError,
    MissingClaimsError,
    ProviderExchangeError,
    extract_user_info,
)
from tests.helpers import query_params

pytestmark = pytest.mark.unit

ISSUER = "https://accounts.example.com"
CLIENT_ID = "client-123"
CALLBACK = "https://persona.example.com/auth/google/callback"
KID = "test-key"
ROTATED_KID = "rotated-key"


def _private_pem() -> bytes:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


PRIVATE_PEM = _private_pem()
ROTATED_PEM = _private_pem()


def _public_jwk(pem: bytes, kid: str) -> dict:
    key = jwk.construct(pem, "RS256").public_key().to_dict()
    key["kid"] = kid
    key["use"] = "sig"
    return key


class FakeGoogle:
    """Serves discovery, JWKS and token endpoints; records every request."""

    def __init__(self, id_token_claims: dict | None = None, token_status: int = 200):
        self.requests: list[httpx.Request] = []
        self.token_status = token_status
        self.published = {KID: PRIVATE_PEM}
        self.signing_key = (KID, PRIVATE_PEM)
        now = int(time.time())
        self.claims = {
            "iss": ISSUER,
            "aud": CLIENT_ID,
            "sub": "google-sub-1",
            "email": "ada@example.com",
            "name": "Ada Lovelace",
            "picture": "https://img.example.com/ada.png",
            "nonce": "expected-nonce",
            "iat": now,
            "exp": now + 300,
        }
        if id_token_claims is not None:
            self.claims.update(id_token_claims)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/.well-known/openid-configuration":
            return httpx.Response(
                200,
                json={
                    "issuer": ISSUER,
                    "authorization_endpoint": f"{ISSUER}/o/oauth2/v2/auth",
                    "token_endpoint": f"{ISSUER}/token",
                    "jwks_uri": f"{ISSUER}/certs",
                },
            )
        if path == "/certs":
            keys = [_public_jwk(pem, kid) for kid, pem in self.published.items()]
            return httpx.Response(200, json={"keys": keys})
        if path == "/token":
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            access_token = "ya29.access"
            kid, pem = self.signing_key
            id_token = jwt.encode(
                self.claims,
                pem.decode(),
                algorithm="RS256",
                headers={"kid": kid},
                access_token=access_token,
            )
            return httpx.Response(
                200, json={"access_token": access_token, "id_token": id_token}
            )
        return httpx.Response(404)

    def rotate_keys(self) -> None:
        """Start signing with a new key, publishing it ahead of the old one."""
        self.published = {ROTATED_KID: ROTATED_PEM, KID: PRIVATE_PEM}
        self.signing_key = (ROTATED_KID, ROTATED_PEM)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def make_provider(google: FakeGoogle) -> GoogleIdentityProvider:
    return GoogleIdentityProvider(
        client_id=CLIENT_ID,
        client_secret="client-secret",
        issuer=ISSUER,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(google.handler)),
    )


async def exchange(provider, state="st", nonce="expected-nonce", extra=""):
    return await provider.exchange_code(
        callback_url=f"{CALLBACK}?code=auth-code&state=st{extra}",
        code_verifier="verifier",
        expected_state=state,
        expected_nonce=nonce,
    )


class TestAuthorizationUrl:
    async def test_builds_pkce_authorization_request(self):
        provider = make_provider(FakeGoogle())

        url = await provider.authorization_url(
            redirect_uri=CALLBACK, state="st", nonce="nn", code_challenge="cc"
        )

        assert url.startswith(f"{ISSUER}/o/oauth2/v2/auth?")
        params = query_params(url)
        assert params["client_id"] == CLIENT_ID
        assert params["redirect_uri"] == CALLBACK
        assert params["response_type"] == "code"
        assert params["scope"] == "openid email profile"
        assert params["code_challenge"] == "cc"
        assert params["code_challenge_method"] == "S256"
        assert params["state"] == "st"
        assert params["nonce"] == "nn"

    async def test_discovery_is_fetched_once(self):
        google = FakeGoogle()
        provider = make_provider(google)

        for _ in range(3):
            await provider.authorization_url(
                redirect_uri=CALLBACK, state="s", nonce="n", code_challenge="c"
            )

        assert google.paths().count("/.well-known/openid-configuration") == 1

    async def test_discovery_failure(self):
        def broken(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        provider = GoogleIdentityProvider(
            CLIENT_ID,
            "secret",
            ISSUER,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(broken)),
        )

        with pytest.raises(ProviderExchangeError):
            await provider.authorization_url(
                redirect_uri=CALLBACK, state="s", nonce="n", code_challenge="c"
            )


class TestExchangeCode:
    async def test_returns_validated_user_info(self):
        google = FakeGoogle()
        provider = make_provider(google)

        info = await exchange(provider)

        assert info.id == "google-sub-1"
        assert info.email == "ada@example.com"
        assert info.name == "Ada Lovelace"
        assert info.picture == "https://img.example.com/ada.png"
        assert info.raw["nonce"] == "expected-nonce"

    async def test_token_request_carries_verifier_and_clean_redirect_uri(self):
        google = FakeGoogle()
        provider = make_provider(google)

        await exchange(provider)

        token_request = next(r for r in google.requests if r.url.path == "/token")
        form = dict(parse_qsl(token_request.content.decode()))
        assert form["grant_type"] == "authorization_code"
        assert form["code"] == "auth-code"
        assert form["code_verifier"] == "verifier"
        assert form["redirect_uri"] == CALLBACK
        assert form["client_id"] == CLIENT_ID

    async def test_jwks_is_cached(self):
        google = FakeGoogle()
        provider = make_provider(google)

        await exchange(provider)
        await exchange(provider)

        assert google.paths().count("/certs") == 1
        assert google.paths().count("/token") == 2

    async def test_jwks_is_refetched_after_key_rotation(self):
        google = FakeGoogle()
        provider = make_provider(google)
        await exchange(provider)

        google.rotate_keys()
        info = await exchange(provider)

        assert info.id == "google-sub-1"
        assert google.paths().count("/certs") == 2

    async def test_known_key_does_not_refetch_jwks(self):
        google = FakeGoogle()
        google.rotate_keys()
        provider = make_provider(google)
        await exchange(provider)

        google.signing_key = (KID, PRIVATE_PEM)
        await exchange(provider)

        assert google.paths().count("/certs") == 1

    async def test_unpublished_key_is_rejected_after_one_refetch(self):
        google = FakeGoogle()
        google.signing_key = ("unpublished", ROTATED_PEM)
        provider = make_provider(google)

        with pytest.raises(ProviderExchangeError):
            await exchange(provider)
        assert google.paths().count("/certs") == 2

    async def test_state_mismatch_is_checked_before_exchange(self):
        google = FakeGoogle()
        provider = make_provider(google)

        with pytest.raises(InvalidOAuthStateError):
            await exchange(provider, state="other")
        assert "/token" not in google.paths()

    async def test_nonce_mismatch(self):
        provider = make_provider(FakeGoogle({"nonce": "replayed"}))

        with pytest.raises(InvalidOAuthStateError):
            await exchange(provider)

    async def test_provider_error_parameter(self):
        provider = make_provider(FakeGoogle())

        with pytest.raises(ProviderExchangeError):
            await provider.exchange_code(
                callback_url=f"{CALLBACK}?error=access_denied&state=st",
                code_verifier="v",
                expected_state="st",
                expected_nonce=None,
            )

    async def test_token_endpoint_rejection(self):
        provider = make_provider(FakeGoogle(token_status=400))

        with pytest.raises(ProviderExchangeError):
            await exchange(provider)

    @pytest.mark.parametrize(
        "claims",
        [
            {"aud": "someone-else"},
            {"iss": "https://evil.example.com"},
            {"exp": int(time.time()) - 600, "iat": int(time.time()) - 900},
        ],
    )
    async def test_rejects_invalid_id_token(self, claims):
        provider = make_provider(FakeGoogle(claims))

        with pytest.raises(ProviderExchangeError):
            await exchange(provider)

    async def test_issuer_without_scheme_is_accepted(self):
        provider = make_provider(FakeGoogle({"iss": "accounts.example.com"}))

        info = await exchange(provider)

        assert info.id == "google-sub-1"


class TestExtractUserInfo:
    def test_requires_subject(self):
        with pytest.raises(MissingClaimsError):
            extract_user_info({"email": "a@example.com"})

    def test_ignores_non_string_optional_claims(self):
        info = extract_user_info({"sub": "1", "email": None, "name": 42})
        assert info.email is None
        assert info.name is None
        assert json.loads(json.dumps(info.raw)) == {"sub": "1", "email": None, "name": 42}
