"""Request throttling for the auth endpoints.

Two kinds of keys share one limiter: the caller's IP (applied as a route
dependency) and the account email (applied inside the handler once the body is
parsed), so a reset code cannot be guessed by spreading attempts over many IPs.
Counters are process-local.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from threading import Lock

from fastapi import Depends, Request, status

from huequitas.core.errors import AppError

logger = logging.getLogger(__name__)


class RateLimitExceeded(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, retry_after: int) -> None:
        super().__init__("Too many requests")
        self.headers = {"Retry-After": str(retry_after)}


class SlidingWindowLimiter:
    def __init__(self, *, max_keys: int = 20_000) -> None:
        self._max_keys = max_keys
        self._lock = Lock()
        self._hits: dict[str, deque[float]] = {}

    def check(self, key: str, *, limit: int, window_seconds: int) -> int:
        """Count one attempt for ``key``; returns 0 when allowed, else seconds to wait."""
        now = time.monotonic()

        with self._lock:
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= now - window_seconds:
                hits.popleft()

            if len(hits) >= limit:
                return max(1, int(window_seconds - (now - hits[0])) + 1)

            hits.append(now)
            if len(self._hits) > self._max_keys:
                self._drop_expired(now, window_seconds)
            return 0

    def clear(self) -> None:
        with self._lock:
            self._hits.clear()

    def _drop_expired(self, now: float, window_seconds: int) -> None:
        # Keys whose newest hit is older than the window hold no live state
        for key in [k for k, h in self._hits.items() if not h or h[-1] <= now - window_seconds]:
            del self._hits[key]


_limiter = SlidingWindowLimiter()


def client_ip(request: Request) -> str:
    # Behind the gateway the first X-Forwarded-For entry is the real caller
    forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    if forwarded:
        return forwarded
    return request.client.host if request.client else "unknown"


def enforce(scope: str, key: str, *, limit: int, window_seconds: int) -> None:
    retry_after = _limiter.check(f"{scope}:{key}", limit=limit, window_seconds=window_seconds)
    if retry_after:
        logger.warning("Rate limit hit for %s (%s)", scope, key)
        raise RateLimitExceeded(retry_after)


def rate_limit(scope: str, *, limit: int, window_seconds: int):
    """Route dependency limiting ``scope`` per client IP."""

    def _by_ip(request: Request) -> None:
        enforce(scope, client_ip(request), limit=limit, window_seconds=window_seconds)

    return Depends(_by_ip)


def _reset_for_tests() -> None:
    _limiter.clear()
