"""Process-local fixed-window quota.

Every client key owns one window, opened by its first request and lasting
``window_seconds``. The map lives in this process only: with N workers a
client effectively gets N times the quota.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from contact_relay.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _Window:
    closes_at: float
    used: int = 0

    def expired(self, now: float) -> bool:
        return now >= self.closes_at


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Count requests per key inside a fixed window, under one re-entrant lock.

    Refused requests are not recorded, so hammering a blocked key neither
    raises its count past ``limit`` nor pushes its window further out.
    Closed windows are swept every ``prune_every`` calls to ``consume``.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
        prune_every: int = 1000,
    ) -> None:
        """
        Args:
            limit: Requests a key may make per window.
            window_seconds: Window length.
            clock: Returns the current UNIX time; tests pass a Mock.
            prune_every: Sweep interval, in ``consume`` calls.

        Raises:
            ValueError: If any argument is below 1.
        """
        for name, value in (("limit", limit), ("window_seconds", window_seconds), ("prune_every", prune_every)):
            if value < 1:
                raise ValueError(f"{name} must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._prune_every = prune_every
        self._consumed_calls = 0
        self._lock = threading.RLock()
        self._windows: dict[str, _Window] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def _current_window(self, key: str, now: float, *, store: bool) -> _Window:
        window = self._windows.get(key)
        if window is None or window.expired(now):
            window = _Window(closes_at=now + self._window_seconds)
            if store:
                self._windows[key] = window
        return window

    def _sweep(self, now: float) -> None:
        for key in [k for k, w in self._windows.items() if w.expired(now)]:
            del self._windows[key]

    def _result(self, window: _Window, now: float, *, allowed: bool) -> RateLimitResult:
        return RateLimitResult(
            allowed=allowed,
            limit=self._limit,
            remaining=max(0, self._limit - window.used),
            reset_at=math.ceil(window.closes_at),
            retry_after_seconds=None if allowed else max(0, math.ceil(window.closes_at - now)),
        )

    @staticmethod
    def _require_key(key: str) -> None:
        if not key:
            raise ValueError("key must be a non-empty string")

    def check(self, key: str) -> RateLimitResult:
        self._require_key(key)
        now = self._clock()
        with self._lock:
            window = self._current_window(key, now, store=False)
            return self._result(window, now, allowed=window.used < self._limit)

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Record ``cost`` units for ``key`` when they fit in its window.

        Raises:
            ValueError: If ``key`` is empty or ``cost`` is below 1.
        """
        self._require_key(key)
        if cost < 1:
            raise ValueError("cost must be >= 1")

        now = self._clock()
        with self._lock:
            self._consumed_calls += 1
            if self._consumed_calls % self._prune_every == 0:
                self._sweep(now)

            window = self._current_window(key, now, store=True)
            allowed = window.used + cost <= self._limit
            if allowed:
                window.used += cost
            return self._result(window, now, allowed=allowed)

    def reset(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)
