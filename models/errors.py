"""
Error kinds and discriminated results.

Every component (identity verifier, access resolver, auth gate, profile
service, upload broker) returns a Result instead of raising. Routers turn a
failed Result into the error envelope; exceptions are reserved for the
outermost handler boundary.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Error kinds, each with an HTTP-equivalent status."""
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INVALID_PAYLOAD = "invalid_payload"
    CONFLICT = "conflict"
    VERIFIER_UNAVAILABLE = "verifier_unavailable"
    RESOLVER_UNAVAILABLE = "resolver_unavailable"
    UPLOAD_FAILED = "upload_failed"
    INTERNAL = "internal"


DEFAULT_STATUS: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_PAYLOAD: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.VERIFIER_UNAVAILABLE: 502,
    ErrorKind.RESOLVER_UNAVAILABLE: 502,
    ErrorKind.UPLOAD_FAILED: 502,
    ErrorKind.INTERNAL: 500,
}


@dataclass
class ServiceError:
    """A typed failure with a client-safe message."""
    kind: ErrorKind
    message: str
    status: int = 0
    details: Any = None

    def __post_init__(self):
        if not self.status:
            self.status = DEFAULT_STATUS[self.kind]

    @property
    def retryable(self) -> bool:
        return self.status == 502

    def to_dict(self) -> dict[str, Any]:
        """Failure envelope body."""
        body: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "status": self.status,
        }
        if self.details:
            body["details"] = self.details
        return body


@dataclass
class Result(Generic[T]):
    """Ok(value) or Err(error)."""
    success: bool
    value: T | None = None
    error: ServiceError | None = field(default=None)

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(
        cls,
        kind: ErrorKind,
        message: str,
        status: int = 0,
        details: Any = None,
    ) -> "Result[T]":
        return cls(success=False, error=ServiceError(kind, message, status, details))

    @classmethod
    def from_error(cls, error: ServiceError) -> "Result[T]":
        return cls(success=False, error=error)
