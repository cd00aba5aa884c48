"""
In-memory sliding-window rate limiter.

State lives in the process, so limits are per worker. The whole table is
swept every CLEANUP_INTERVAL seconds to drop idle identifiers.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

CLEANUP_INTERVAL = 5 * 60


@dataclass
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset: int  # seconds until the oldest request leaves the window


class RateLimiter:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._requests: Dict[str, List[float]] = {}
        self._last_cleanup = clock()

    def _cleanup(self, now: float, window: float) -> None:
        for key in list(self._requests):
            kept = [t for t in self._requests[key] if now - t < window * 2]
            if kept:
                self._requests[key] = kept
            else:
                del self._requests[key]
        self._last_cleanup = now

    def check(self, identifier: str, limit: int = 20, window: float = 60.0) -> RateLimitResult:
        """Record a request for `identifier` unless the window is already full."""
        now = self._clock()
        if now - self._last_cleanup > CLEANUP_INTERVAL:
            self._cleanup(now, window)

        window_start = now - window
        requests = [t for t in self._requests.get(identifier, []) if t > window_start]

        if len(requests) >= limit:
            self._requests[identifier] = requests
            return RateLimitResult(
                success=False,
                limit=limit,
                remaining=0,
                reset=math.ceil(requests[0] + window - now),
            )

        requests.append(now)
        self._requests[identifier] = requests
        return RateLimitResult(
            success=True,
            limit=limit,
            remaining=limit - len(requests),
            reset=math.ceil(requests[0] + window - now),
        )

    def tracked_identifiers(self) -> int:
        return len(self._requests)


_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    global _limiter
    if _limiter is None:
        _limiter = RateLimiter()
    return _limiter
