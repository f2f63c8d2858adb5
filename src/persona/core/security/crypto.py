"""Cryptographic utilities - token hashing, random identifiers, PKCE, and JWT access tokens."""

import base64
import re
import secrets
from datetime import UTC, datetime, timedelta
from hashlib import sha256
from typing import Any
from uuid import uuid4

from jose import ExpiredSignatureError, JWTError, jwt

BASE62_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

_EXPIRY_PATTERN = re.compile(r"^(\d+)([smhdw])$")
_EXPIRY_UNITS = {
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}


def hash_token(token: str) -> str:
    """Hash a token using SHA256 for secure storage."""
    return sha256(token.encode()).hexdigest()


def generate_id(length: int = 16) -> str:
    """Generate an opaque, URL-safe base62 identifier (~95 bits at length 16)."""
    return "".join(secrets.choice(BASE62_ALPHABET) for _ in range(length))


def generate_refresh_token() -> str:
    """Generate a random refresh token (64 hex characters)."""
    return secrets.token_hex(32)


def generate_oauth_state() -> str:
    return secrets.token_hex(32)


def generate_nonce() -> str:
    return secrets.token_hex(32)


def generate_code_verifier() -> str:
    """Generate a PKCE code verifier (43-128 chars from the unreserved set)."""
    return secrets.token_urlsafe(64)


def calculate_code_challenge(code_verifier: str) -> str:
    """Derive the PKCE S256 code challenge from a verifier."""
    digest = sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def parse_expiry(value: str) -> int:
    """Parse a duration like ``15m`` or ``7d`` into seconds.

    Supported units: s, m, h, d, w.

    Raises:
        ValueError: If the value is not an integer followed by a unit suffix.
    """
    match = _EXPIRY_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(
            f"Invalid expiry '{value}': expected an integer followed by one of s, m, h, d, w"
        )
    amount, unit = match.groups()
    return int(amount) * _EXPIRY_UNITS[unit]


def create_access_token(
    claims: dict[str, Any],
    secret_key: str,
    algorithm: str,
    expires_in_seconds: int,
) -> str:
    """Sign an access token. Adds iat, exp and a unique jti to ``claims``."""
    now = datetime.now(UTC)
    to_encode = {
        **claims,
        "iat": now,
        "exp": now + timedelta(seconds=expires_in_seconds),
        # Unique per token so two tokens minted in the same second still differ
        "jti": uuid4().hex,
    }
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)  # type: ignore[no-any-return]


class AccessTokenExpired(Exception):
    """The access token signature is valid but its exp has passed."""


class AccessTokenInvalid(Exception):
    """The access token could not be decoded or its signature is wrong."""


def decode_access_token(token: str, secret_key: str, algorithm: str) -> dict[str, Any]:
    """Decode and validate an access token (signature and expiry only).

    Raises:
        AccessTokenExpired: If the token has expired.
        AccessTokenInvalid: On any other decoding failure.
    """
    try:
        return jwt.decode(  # type: ignore[no-any-return]
            token,
            secret_key,
            algorithms=[algorithm],
        )
    except ExpiredSignatureError as e:
        raise AccessTokenExpired(str(e)) from e
    except JWTError as e:
        raise AccessTokenInvalid(str(e)) from e
