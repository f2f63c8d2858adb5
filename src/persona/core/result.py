"""Success/failure results returned by every public service operation.

Services never raise for expected failures; the HTTP layer decides how an
ErrorCode maps to a status code.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Error taxonomy shared by all services."""

    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    INVALID_INPUT = "INVALID_INPUT"
    # Covers malformed, expired, revoked and unknown tokens alike
    INVALID_TOKEN = "INVALID_TOKEN"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class AppError:
    code: ErrorCode
    message: str
    reason: Enum | None = None


@dataclass(frozen=True)
class Result(Generic[T]):
    data: T | None = None
    error: AppError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return data, raising RuntimeError if this is a failure."""
        if self.error is not None:
            raise RuntimeError(f"{self.error.code.value}: {self.error.message}")
        return self.data  # type: ignore[return-value]


def success(data: T) -> Result[T]:
    return Result(data=data)


def failure(code: ErrorCode, message: str, reason: Enum | None = None) -> Result:  # type: ignore[type-arg]
    return Result(error=AppError(code=code, message=message, reason=reason))
