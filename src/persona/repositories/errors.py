"""Storage-layer errors surfaced by every repository implementation."""

from typing import Any


class ConstraintViolation(Exception):
    """Raised when a storage-layer uniqueness constraint is violated."""

    def __init__(self, message: str, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class IdentityAlreadyExistsError(ConstraintViolation):
    """(tenant_id, provider, provider_user_id) already has an identity."""


class SessionAlreadyExistsError(ConstraintViolation):
    """A session with the same token hash already exists."""
