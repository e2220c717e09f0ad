"""Application-level exception types.

Every failure the API reports to a client is an ``AppError`` subclass. The
subclass fixes the HTTP status and the machine-readable ``ErrorType`` so the
exception handlers can render one uniform envelope.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar


class ErrorType(str, Enum):
    """Stable error identifiers returned in ``error.type``."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        message: Human-readable error message.
        details: Optional structured context (e.g. per-field validation errors).
    """

    message: str = "Internal server error"
    details: dict[str, Any] | None = None

    status_code: ClassVar[int] = 500
    error_type: ClassVar[ErrorType] = ErrorType.INTERNAL_SERVER_ERROR

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


@dataclass
class ValidationAppError(AppError):
    """Raised when request input fails validation."""

    message: str = "Validation failed"

    status_code: ClassVar[int] = 400
    error_type: ClassVar[ErrorType] = ErrorType.VALIDATION_ERROR

    @classmethod
    def from_field_errors(cls, errors: dict[str, list[str]]) -> "ValidationAppError":
        """Build the aggregated error carrying every field's messages."""
        return cls(details={"errors": {field: list(msgs) for field, msgs in errors.items()}})


@dataclass
class AuthenticationAppError(AppError):
    """Raised when a credential is missing, invalid or expired."""

    message: str = "Authentication failed"

    status_code: ClassVar[int] = 401
    error_type: ClassVar[ErrorType] = ErrorType.AUTH_ERROR


@dataclass
class ForbiddenAppError(AppError):
    """Raised when an authenticated caller lacks access."""

    message: str = "Access denied"

    status_code: ClassVar[int] = 403
    error_type: ClassVar[ErrorType] = ErrorType.FORBIDDEN


@dataclass
class NotFoundAppError(AppError):
    """Raised when a requested resource does not exist."""

    message: str = "Resource not found"

    status_code: ClassVar[int] = 404
    error_type: ClassVar[ErrorType] = ErrorType.NOT_FOUND

    @classmethod
    def for_resource(cls, resource: str) -> "NotFoundAppError":
        return cls(message=f"{resource} not found")


@dataclass
class RateLimitAppError(AppError):
    """Raised when a caller exhausted its request budget."""

    message: str = "Too many requests, please try again later"

    status_code: ClassVar[int] = 429
    error_type: ClassVar[ErrorType] = ErrorType.RATE_LIMIT_EXCEEDED


@dataclass
class InternalAppError(AppError):
    """Raised when the server cannot complete an otherwise valid request."""

    status_code: ClassVar[int] = 500
    error_type: ClassVar[ErrorType] = ErrorType.INTERNAL_SERVER_ERROR


class CounterStoreError(Exception):
    """The external counter store could not complete an operation."""


class CredentialVerificationError(Exception):
    """The auth provider could not be reached to verify a credential."""
