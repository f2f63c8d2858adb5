"""Security utilities.

Re-exports all security-related functions for convenience.
"""

from src.persona.core.security.crypto import (
    AccessTokenExpired,
    AccessTokenInvalid,
    calculate_code_challenge,
    create_access_token,
    decode_access_token,
    generate_code_verifier,
    generate_id,
    generate_nonce,
    generate_oauth_state,
    generate_refresh_token,
    hash_token,
    parse_expiry,
)

__all__ = [
    "AccessTokenExpired",
    "AccessTokenInvalid",
    "calculate_code_challenge",
    "create_access_token",
    "decode_access_token",
    "generate_code_verifier",
    "generate_id",
    "generate_nonce",
    "generate_oauth_state",
    "generate_refresh_token",
    "hash_token",
    "parse_expiry",
]
