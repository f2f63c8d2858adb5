"""Token service - access token minting/verification and refresh-token sessions.

Refresh tokens are long-lived session handles. They are not rotated on use:
the refresh endpoint re-mints an access token bound to the same session.
Access-token verification is signature and expiry only and never touches
storage, so a revoked session's access token stays valid until its own exp.
"""

import hmac
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

from pydantic import ValidationError

from src.persona.core.config import Settings
from src.persona.core.logging import get_logger
from src.persona.core.result import ErrorCode, Result, failure, success
from src.persona.core.security import (
    AccessTokenExpired,
    AccessTokenInvalid,
    create_access_token,
    decode_access_token,
    generate_refresh_token,
    hash_token,
)
from src.persona.models import Identity, Session, utc_now
from src.persona.repositories import IdentityRepository, SessionRepository
from src.persona.schemas.token import AccessTokenClaims, TokenPair

logger = get_logger(__name__)


class TokenRejection(str, Enum):
    """Why a presented token was refused. All map to ErrorCode.INVALID_TOKEN."""

    MALFORMED = "MALFORMED"
    EXPIRED = "EXPIRED"
    NOT_FOUND = "NOT_FOUND"
    REVOKED = "REVOKED"


@dataclass(frozen=True)
class IssuedTokens:
    tokens: TokenPair
    session: Session


def build_claims(identity: Identity, session_id: str) -> dict[str, object]:
    """Access token claims for an identity bound to one session."""
    claims = AccessTokenClaims(
        sub=identity.id,
        tenant=identity.tenant_id,
        user_id=identity.user_id,
        email=identity.email,
        name=identity.name,
        profile_image_url=identity.profile_image_url,
        roles=list(identity.roles),
        session_id=session_id,
    )
    return claims.model_dump(by_alias=True, exclude_none=True)


class TokenService:
    """Issues, verifies and revokes credentials for identities."""

    def __init__(
        self,
        session_repo: SessionRepository,
        identity_repo: IdentityRepository,
        settings: Settings,
    ):
        self.session_repo = session_repo
        self.identity_repo = identity_repo
        self.secret_key = settings.jwt_secret_key
        self.algorithm = settings.jwt_algorithm
        self.access_ttl = settings.access_token_ttl_seconds
        self.refresh_ttl = settings.refresh_token_ttl_seconds

    async def issue(
        self,
        identity: Identity,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> Result[IssuedTokens]:
        """Create a new session and token pair for an identity.

        The raw refresh token is returned here only; just its hash is stored.
        """
        refresh_token = generate_refresh_token()
        session = Session(
            identity_id=identity.id,
            tenant_id=identity.tenant_id,
            token_hash=hash_token(refresh_token),
            expires_at=utc_now() + timedelta(seconds=self.refresh_ttl),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        try:
            session = await self.session_repo.create(session)
        except Exception:
            logger.exception("Failed to create session", identity_id=identity.id)
            return failure(ErrorCode.INTERNAL_ERROR, "Failed to create session")

        access_token = self.reissue_access_token(identity, session.id)
        logger.info(
            "Session issued",
            identity_id=identity.id,
            session_id=session.id,
            tenant_id=identity.tenant_id,
        )
        return success(
            IssuedTokens(
                tokens=TokenPair(
                    access_token=access_token,
                    refresh_token=refresh_token,
                    expires_in=self.access_ttl,
                ),
                session=session,
            )
        )

    def reissue_access_token(self, identity: Identity, session_id: str) -> str:
        """Mint an access token for an existing session. Storage is not touched."""
        return create_access_token(
            build_claims(identity, session_id),
            self.secret_key,
            self.algorithm,
            self.access_ttl,
        )

    def verify(self, access_token: str) -> Result[AccessTokenClaims]:
        """Check signature and expiry of an access token."""
        try:
            payload = decode_access_token(access_token, self.secret_key, self.algorithm)
        except AccessTokenExpired:
            return failure(ErrorCode.INVALID_TOKEN, "Access token expired", TokenRejection.EXPIRED)
        except AccessTokenInvalid:
            return failure(
                ErrorCode.INVALID_TOKEN, "Invalid access token", TokenRejection.MALFORMED
            )

        try:
            claims = AccessTokenClaims.model_validate(payload)
        except ValidationError:
            return failure(
                ErrorCode.INVALID_TOKEN, "Invalid access token", TokenRejection.MALFORMED
            )
        return success(claims)

    async def validate_refresh(self, refresh_token: str) -> Result[Session]:
        """Resolve a raw refresh token to its usable session.

        Checks run in order: unknown, revoked, expired.
        """
        token_hash = hash_token(refresh_token)
        try:
            session = await self.session_repo.get_by_token_hash(token_hash)
        except Exception:
            logger.exception("Failed to look up session")
            return failure(ErrorCode.INTERNAL_ERROR, "Failed to validate refresh token")

        # Constant-time comparison so lookups can't be used as a timing oracle
        if session is None or not hmac.compare_digest(token_hash, session.token_hash):
            return failure(
                ErrorCode.INVALID_TOKEN, "Invalid refresh token", TokenRejection.NOT_FOUND
            )
        if session.revoked:
            return failure(
                ErrorCode.INVALID_TOKEN, "Session has been revoked", TokenRejection.REVOKED
            )
        if session.expires_at <= utc_now():
            return failure(
                ErrorCode.INVALID_TOKEN, "Refresh token expired", TokenRejection.EXPIRED
            )
        return success(session)

    async def revoke(self, session_id: str) -> Result[None]:
        try:
            revoked = await self.session_repo.revoke(session_id)
        except Exception:
            logger.exception("Failed to revoke session", session_id=session_id)
            return failure(ErrorCode.INTERNAL_ERROR, "Failed to revoke session")
        if not revoked:
            return failure(ErrorCode.NOT_FOUND, "Session not found")
        logger.info("Session revoked", session_id=session_id)
        return success(None)

    async def revoke_all_for_identity(self, identity_id: str) -> Result[int]:
        try:
            count = await self.session_repo.revoke_all_by_identity_id(identity_id)
        except Exception:
            logger.exception("Failed to revoke identity sessions", identity_id=identity_id)
            return failure(ErrorCode.INTERNAL_ERROR, "Failed to revoke sessions")
        logger.info("Identity sessions revoked", identity_id=identity_id, revoked_count=count)
        return success(count)

    async def revoke_all_for_user(self, tenant_id: str, user_id: str) -> Result[int]:
        """Revoke every session of every identity linked to (tenant, user).

        A failure on one identity is logged and skipped; the count only
        includes sessions that were actually revoked.
        """
        try:
            identities = await self.identity_repo.list_by_user_id(tenant_id, user_id)
        except Exception:
            logger.exception("Failed to list user identities", tenant_id=tenant_id)
            return failure(ErrorCode.INTERNAL_ERROR, "Failed to revoke sessions")

        total = 0
        for identity in identities:
            revoked = await self.revoke_all_for_identity(identity.id)
            if revoked.ok:
                total += revoked.unwrap()

        logger.info(
            "User sessions revoked",
            tenant_id=tenant_id,
            user_id=user_id,
            identity_count=len(identities),
            revoked_count=total,
        )
        return success(total)

    async def sweep_expired(self) -> Result[int]:
        """Delete sessions past their expiry, revoked or not. Idempotent."""
        try:
            deleted = await self.session_repo.delete_expired()
        except Exception:
            logger.exception("Failed to sweep expired sessions")
            return failure(ErrorCode.INTERNAL_ERROR, "Failed to sweep sessions")
        logger.info("Expired sessions swept", deleted_count=deleted)
        return success(deleted)
