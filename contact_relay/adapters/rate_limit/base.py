"""Per-client request quota contract.

``enforce_rate_limit`` only talks to ``AbstractRateLimiter``; the in-memory
counter it ships with can be replaced by a shared store (e.g., Redis) when
the relay runs as several processes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of asking the limiter about one client.

    Attributes:
        allowed: False once the client has used up its window.
        limit: Requests a client may make per window.
        remaining: Requests still available in the active window.
        reset_at: Epoch second at which the active window closes.
        retry_after_seconds: Seconds to wait before retrying; None when allowed.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Quota store keyed by an opaque client identifier."""

    @abstractmethod
    def check(self, key: str) -> RateLimitResult:
        """Peek at the quota of ``key``; nothing is recorded."""

    @abstractmethod
    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Record a request for ``key`` if its quota allows it.

        Deciding and recording happen together, so concurrent callers can
        never push a key past its limit.

        Args:
            key: Client identifier, typically ``ip:<address>``.
            cost: Units the request uses.
        """

    @abstractmethod
    def reset(self, key: str) -> None:
        """Drop the window of ``key``."""
