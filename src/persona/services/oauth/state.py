"""Short-lived OAuth flow state carried by the browser between start and callback.

All values live in one signed, timestamped cookie. The signature makes the
values tamper-evident; the timestamp bounds their lifetime at read time.
"""

from dataclasses import asdict, dataclass
from typing import Any

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from src.persona.services.oauth.errors import InvalidOAuthStateError

OAUTH_FLOW_COOKIE = "oauth_flow"
OAUTH_FLOW_MAX_AGE_SECONDS = 10 * 60

_REQUIRED_FIELDS = ("state", "code_verifier", "tenant_id")


@dataclass(frozen=True)
class OAuthFlowState:
    state: str
    nonce: str | None
    code_verifier: str
    tenant_id: str
    redirect_url: str | None = None


class OAuthFlowSerializer:
    """Sign and verify :class:`OAuthFlowState` values."""

    def __init__(self, secret_key: str, max_age: int = OAUTH_FLOW_MAX_AGE_SECONDS):
        self._serializer = URLSafeTimedSerializer(secret_key, salt="persona-oauth-flow")
        self.max_age = max_age

    def dumps(self, flow: OAuthFlowState) -> str:
        return self._serializer.dumps(asdict(flow))

    def loads(self, value: str | None) -> OAuthFlowState:
        """Decode a flow cookie.

        Raises:
            InvalidOAuthStateError: If the cookie is absent, expired, tampered
                with, or lacks state, code verifier or tenant.
        """
        if not value:
            raise InvalidOAuthStateError("OAuth flow cookie missing")
        try:
            data: Any = self._serializer.loads(value, max_age=self.max_age)
        except SignatureExpired as e:
            raise InvalidOAuthStateError("OAuth flow expired") from e
        except BadSignature as e:
            raise InvalidOAuthStateError("OAuth flow cookie invalid") from e

        if not isinstance(data, dict):
            raise InvalidOAuthStateError("OAuth flow cookie invalid")
        for field in _REQUIRED_FIELDS:
            if not isinstance(data.get(field), str) or not data[field]:
                raise InvalidOAuthStateError(f"OAuth flow missing {field}")

        nonce = data.get("nonce")
        redirect_url = data.get("redirect_url")
        return OAuthFlowState(
            state=data["state"],
            nonce=nonce if isinstance(nonce, str) else None,
            code_verifier=data["code_verifier"],
            tenant_id=data["tenant_id"],
            redirect_url=redirect_url if isinstance(redirect_url, str) else None,
        )
