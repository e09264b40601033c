"""Unit tests for in-memory rate limiter adapter."""

import threading
from unittest.mock import Mock

import pytest

from contact_relay.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter


def test_allows_up_to_limit_in_same_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is True
    result = limiter.consume("k")
    assert result.allowed is True
    assert result.remaining == 0


def test_blocks_when_over_limit() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=2, window_seconds=60, clock=clock)

    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is True

    blocked = limiter.consume("k")
    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.retry_after_seconds == 60
    assert blocked.reset_at == 1060


def test_window_starts_at_first_request() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=10, clock=clock)

    assert limiter.consume("k").allowed is True

    clock.return_value = 1009.5
    blocked = limiter.consume("k")
    assert blocked.allowed is False
    assert blocked.retry_after_seconds == 1

    clock.return_value = 1010.0
    assert limiter.consume("k").allowed is True


def test_blocked_requests_do_not_extend_the_window() -> None:
    clock = Mock(return_value=0.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=100, clock=clock)

    limiter.consume("k")
    for second in (10.0, 50.0, 99.0):
        clock.return_value = second
        assert limiter.consume("k").allowed is False

    clock.return_value = 100.0
    assert limiter.consume("k").allowed is True


def test_isolated_by_key() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.consume("k1").allowed is True
    assert limiter.consume("k1").allowed is False

    assert limiter.consume("k2").allowed is True


def test_check_does_not_consume() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.check("k").allowed is True
    assert limiter.check("k").allowed is True
    assert limiter.consume("k").allowed is True

    after = limiter.check("k")
    assert after.allowed is False
    assert after.remaining == 0


def test_reset_forgets_usage() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60, clock=Mock(return_value=0.0))

    limiter.consume("k")
    assert limiter.consume("k").allowed is False

    limiter.reset("k")
    assert limiter.consume("k").allowed is True


def test_expired_keys_are_pruned() -> None:
    clock = Mock(return_value=0.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=10, clock=clock, prune_every=3)

    limiter.consume("a")
    limiter.consume("b")
    assert len(limiter) == 2

    clock.return_value = 20.0
    limiter.consume("c")

    assert len(limiter) == 1


def test_count_never_exceeds_limit_under_threads() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=5, window_seconds=900, clock=Mock(return_value=0.0))
    results: list[bool] = []
    lock = threading.Lock()

    def hit() -> None:
        allowed = limiter.consume("203.0.113.7").allowed
        with lock:
            results.append(allowed)

    threads = [threading.Thread(target=hit) for _ in range(50)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count(True) == 5
    assert results.count(False) == 45


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0, "window_seconds": 60},
        {"limit": 1, "window_seconds": 0},
        {"limit": 1, "window_seconds": 60, "prune_every": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryFixedWindowRateLimiter(**kwargs)


def test_invalid_consume_args() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60)

    with pytest.raises(ValueError):
        limiter.consume("")

    with pytest.raises(ValueError):
        limiter.consume("k", cost=0)

    with pytest.raises(ValueError):
        limiter.check("")
