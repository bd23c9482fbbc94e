"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Advisory: the limit is approximate, not a security boundary.
- The lock only keeps the periodic sweep from iterating the dict while another
  thread inserts into it.
"""

from __future__ import annotations

import math
import threading
import time
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter keeping a timestamp log per key.

    A request is allowed when fewer than ``limit`` requests for the same key
    happened within the trailing ``window_seconds``. Keys whose log empties
    out are dropped by a sweep that runs at most once per
    ``sweep_interval_seconds``, which bounds memory growth.
    """

    def __init__(
        self,
        *,
        limit: int = 100,
        window_seconds: float = 300,
        sweep_interval_seconds: float = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of requests per window.
            window_seconds: Length of the sliding window in seconds.
            sweep_interval_seconds: Minimum time between idle-key sweeps.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If any argument is out of range.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        if sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be > 0")

        self._limit = limit
        self._window_seconds = window_seconds
        self._sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._timestamps_by_key: dict[str, list[float]] = {}
        self._last_sweep: float | None = None

    @property
    def tracked_keys(self) -> int:
        """Number of keys currently holding timestamps."""
        return len(self._timestamps_by_key)

    def _prune(self, timestamps: list[float], window_start: float) -> list[float]:
        return [t for t in timestamps if t > window_start]

    def _maybe_sweep(self, now: float) -> None:
        """Drop keys with no timestamps left in the window, at most once per interval."""
        if self._last_sweep is not None and now - self._last_sweep < self._sweep_interval_seconds:
            return

        self._last_sweep = now
        window_start = now - self._window_seconds
        for key in list(self._timestamps_by_key):
            valid = self._prune(self._timestamps_by_key[key], window_start)
            if valid:
                self._timestamps_by_key[key] = valid
            else:
                del self._timestamps_by_key[key]

    def consume(self, key: str) -> RateLimitResult:
        """Check the window for ``key`` and record the request if allowed.

        Args:
            key: Unique identifier for rate limiting (e.g., ``ip:path``).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        window_start = now - self._window_seconds

        with self._lock:
            self._maybe_sweep(now)

            timestamps = self._prune(self._timestamps_by_key.get(key, []), window_start)
            if len(timestamps) >= self._limit:
                self._timestamps_by_key[key] = timestamps
                reset_at = timestamps[0] + self._window_seconds
                return RateLimitResult(
                    allowed=False,
                    limit=self._limit,
                    remaining=0,
                    reset_at=int(math.ceil(reset_at)),
                    retry_after_seconds=max(1, int(math.ceil(reset_at - now))),
                )

            timestamps.append(now)
            self._timestamps_by_key[key] = timestamps
            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                remaining=max(0, self._limit - len(timestamps)),
                reset_at=int(math.ceil(timestamps[0] + self._window_seconds)),
                retry_after_seconds=None,
            )
