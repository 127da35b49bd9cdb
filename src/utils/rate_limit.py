"""
Per-session sliding-window rate limiting for feedback submissions.

Single-process, in-memory. Each key keeps the timestamps of its accepted
submissions inside the current window; a submission is rejected when the
window already holds `limit` of them.
"""

import threading
import time
from collections import deque
from dataclasses import dataclass

from src.config.settings import config


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""

    exceeded: bool
    remaining: int
    limit: int
    reset_at: float  # Unix timestamp when the oldest counted submission leaves the window
    retry_after: int  # Seconds until retry allowed (0 if not exceeded)

    def to_headers(self) -> dict[str, str]:
        """Convert to rate limit response headers."""
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(max(0, self.remaining)),
            "X-RateLimit-Reset": str(int(self.reset_at)),
        }
        if self.exceeded:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class SlidingWindowRateLimiter:
    def __init__(self, limit: int | None = None, window_seconds: float | None = None, clock=time.time):
        self.limit = limit or config.FEEDBACK_RATE_LIMIT
        self.window_seconds = window_seconds or config.FEEDBACK_RATE_WINDOW
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def check_limit(self, key: str) -> RateLimitResult:
        """Count one submission for key, unless the window is already full."""
        now = self._clock()
        cutoff = now - self.window_seconds

        with self._lock:
            # Idle keys are dropped at most once per window
            if now - self._last_sweep >= self.window_seconds:
                self._drop_idle(cutoff)
                self._last_sweep = now

            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()

            if len(hits) >= self.limit:
                reset_at = hits[0] + self.window_seconds
                return RateLimitResult(
                    exceeded=True,
                    remaining=0,
                    limit=self.limit,
                    reset_at=reset_at,
                    retry_after=max(1, int(reset_at - now + 0.999)),
                )

            hits.append(now)
            return RateLimitResult(
                exceeded=False,
                remaining=self.limit - len(hits),
                limit=self.limit,
                reset_at=hits[0] + self.window_seconds,
                retry_after=0,
            )

    def cleanup_expired(self) -> None:
        """Drop keys with no submissions in the current window."""
        now = self._clock()
        with self._lock:
            self._drop_idle(now - self.window_seconds)
            self._last_sweep = now

    def _drop_idle(self, cutoff: float) -> None:
        expired = [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for k in expired:
            del self._hits[k]
