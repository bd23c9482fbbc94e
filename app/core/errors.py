"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    key: str
    provider: str
    operation: str
    missing: list[str]
    valid_values: list[str]
    max_bytes: int
    actual_value: int
    http_status: int
    retry_after: float
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class NotFoundAppError(AppError):
    """Raised when a requested resource does not exist."""


class ForbiddenAppError(AppError):
    """Raised when a resource exists but may not be served to the caller."""


@dataclass
class StorageAppError(AppError):
    """Raised when an object storage provider operation fails.

    Attributes:
        retryable: True for transient provider-side failures (timeouts,
            connection resets, 5xx, throttling). Callers map retryable errors
            to 503 and the rest to 500. Adapters never retry on their own.
    """

    retryable: bool = False


class StorageNotFoundError(StorageAppError):
    """Raised when the requested object key does not exist."""
