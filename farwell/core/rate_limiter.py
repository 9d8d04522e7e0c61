from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Tuple

from fastapi import Request

from farwell.core.errors import TooManyRequests


SWEEP_INTERVAL_SECONDS = 60.0


class _RateLimiter:
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._hits: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._next_sweep = 0.0

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        if now < self._next_sweep:
            return
        self._hits = {key: hit for key, hit in self._hits.items() if hit[1] >= now}
        self._next_sweep = now + SWEEP_INTERVAL_SECONDS

    def check(self, key: str, limit: int, window_seconds: int) -> None:
        now = self._clock()
        with self._lock:
            self._sweep(now)
            count, reset = self._hits.get(key, (0, now + window_seconds))
            if now > reset:
                count = 0
                reset = now + window_seconds
            count += 1
            self._hits[key] = (count, reset)
            if count > limit:
                retry_after = max(1, int(reset - now))
                raise TooManyRequests(headers={"Retry-After": str(retry_after)})

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


_limiter = _RateLimiter()


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_ip(request: Request, scope: str, *, limit: int, window_seconds: int) -> None:
    key = f"{scope}:{_client_ip(request)}"
    _limiter.check(key, limit, window_seconds)


def reset_rate_limits() -> None:
    """Forget every counter (tests)."""
    _limiter.reset()
