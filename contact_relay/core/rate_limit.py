"""Per-IP quota on the send endpoint.

``enforce_rate_limit`` is declared as a route-level dependency, so FastAPI
runs it before the body is read: malformed and invalid submissions use up
the client's quota as well.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request

from contact_relay.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from contact_relay.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from contact_relay.core.config import settings
from contact_relay.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the limiter shared by all requests of this process.

    A new limiter (with empty counters) replaces the cached one whenever the
    configured quota differs from the one it was built with.
    """

    global _limiter, _limiter_config

    quota = (settings.app.rate_limit_requests, settings.app.rate_limit_window_seconds)
    if _limiter is None or _limiter_config != quota:
        limit, window_seconds = quota
        _limiter = InMemoryFixedWindowRateLimiter(limit=limit, window_seconds=window_seconds)
        _limiter_config = quota
    return _limiter


def client_ip(request: Request) -> str:
    """Resolve the address the quota is charged to.

    Behind a trusted proxy this is the left-most ``X-Forwarded-For`` entry;
    otherwise the socket peer, or "unknown" when the server exposes none.
    """

    if settings.app.trust_proxy:
        first_hop = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
        if first_hop:
            return first_hop

    return request.client.host if request.client else "unknown"


def describe_window(seconds: int) -> str:
    """Render a window length for humans.

    Examples:
        >>> describe_window(900)
        '15 minutes'
        >>> describe_window(86400)
        '24 hours'
        >>> describe_window(45)
        '45 seconds'
    """

    for unit_seconds, unit in ((3600, "hour"), (60, "minute")):
        if seconds >= unit_seconds and seconds % unit_seconds == 0:
            amount = seconds // unit_seconds
            return f"{amount} {unit}{'' if amount == 1 else 's'}"
    return f"{seconds} second{'' if seconds == 1 else 's'}"


def rate_limit_message() -> str:
    if settings.app.rate_limit_message:
        return settings.app.rate_limit_message
    window = describe_window(settings.app.rate_limit_window_seconds)
    return f"Too many requests from this IP. Please try again after {window}."


def _log_fields(key: str, result: RateLimitResult) -> dict[str, object]:
    # Raw client IPs never reach the logs.
    return {
        "key_hash": hashlib.sha256(key.encode()).hexdigest()[:16],
        "limit": result.limit,
        "remaining": result.remaining,
        "window_s": settings.app.rate_limit_window_seconds,
    }


async def enforce_rate_limit(request: Request) -> None:
    """Charge one request to the client's quota.

    Does nothing when ``APP_RATE_LIMIT_ENABLED`` is false.

    Raises:
        RateLimitAppError: When the quota for the current window is used up.
    """

    if not settings.app.rate_limit_enabled:
        return

    key = f"ip:{client_ip(request)}"
    result = get_rate_limiter().consume(key)

    if result.allowed:
        logger.info("rate_limit.allowed", extra=_log_fields(key, result))
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={**_log_fields(key, result), "retry_after_s": retry_after},
    )
    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message=rate_limit_message(),
        details={
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_at": result.reset_at,
            "retry_after": retry_after,
        },
    )
