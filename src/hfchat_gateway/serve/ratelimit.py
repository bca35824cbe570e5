"""In-process fixed-window rate limiter keyed by client address."""
from __future__ import annotations
import math
import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass
class RateDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: float


class FixedWindowRateLimiter:
    """Allow `max_requests` per `window_seconds` per key.

    A key's window starts at its first hit and resets on the first hit after
    it expires. Expired keys are swept at most once per window.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._last_prune = clock()

    def _prune(self, now: float) -> None:
        expired = [k for k, (start, _) in self._windows.items() if now - start >= self.window_seconds]
        for k in expired:
            del self._windows[k]

    def __len__(self) -> int:
        return len(self._windows)

    def hit(self, key: str) -> RateDecision:
        now = self._clock()
        if now - self._last_prune >= self.window_seconds:
            self._prune(now)
            self._last_prune = now
        start, count = self._windows.get(key, (now, 0))
        if now - start >= self.window_seconds:
            start, count = now, 0
        count += 1
        self._windows[key] = (start, count)
        reset_after = max(0.0, self.window_seconds - (now - start))
        return RateDecision(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_after=reset_after,
        )

    def headers(self, decision: RateDecision) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(decision.limit),
            "X-RateLimit-Remaining": str(decision.remaining),
        }
        if not decision.allowed:
            headers["Retry-After"] = str(math.ceil(decision.reset_after))
        return headers
