"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for logs and rate limit headers.

    Every key is optional; each error kind fills in the ones it knows.
    """

    code: str
    message: str
    limit: int
    remaining: int
    reset_at: int
    retry_after: int
    provider: str
    origin: str


class Violation(TypedDict):
    """One failed validation rule, shaped the way form clients expect it."""

    type: str
    value: str
    msg: str
    path: str
    location: str


@dataclass(eq=False)
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


@dataclass(eq=False)
class ValidationAppError(AppError):
    """Raised when one or more submission fields break their rules.

    ``violations`` lists every failed rule of every field, not only the first.
    """

    violations: list[Violation] = field(default_factory=list)


class RateLimitAppError(AppError):
    """Raised when a client has exhausted its quota for the current window."""


class DispatchAppError(AppError):
    """Raised when the mail transport fails to accept a message."""


class OriginRejectedAppError(AppError):
    """Raised when a browser origin is not on the allow-list."""


class ConfigurationAppError(AppError):
    """Raised when the service is misconfigured (e.g. missing credentials)."""
