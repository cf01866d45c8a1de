"""
Fixed-window Rate Limiting

WHY: Slow down credential stuffing and signup spam on the auth endpoints.

Counters live in process memory keyed by "<action prefix>:<client address>".
A window opens on the first request for a key and resets entirely once it
elapses; there is no sliding behaviour.

LIMITATIONS (accepted):
- Not persisted across restarts, not shared between processes.
- Buckets are never evicted on their own; memory grows with the number of
  distinct client keys. sweep() drops expired buckets when called.
- Clients without a resolvable address share the "unknown" bucket.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

UNKNOWN_CLIENT = "unknown"


@dataclass
class Bucket:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    retry_after_seconds: int | None = None


class RateLimiter:
    """
    Thread-safe fixed-window counter store.

    One instance is created per application (see create_app) and reached via
    current_app.extensions["rate_limiter"].
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._buckets: dict[str, Bucket] = {}
        self._lock = threading.Lock()

    def check(self, key: str, window_seconds: float, max_requests: int) -> RateLimitResult:
        """
        Count one request against key.

        Allows max_requests per window; request max_requests + 1 is denied
        with the whole seconds left until the window resets (at least 1).
        """
        with self._lock:
            now = self._clock()
            bucket = self._buckets.get(key)

            if bucket is None or bucket.reset_at <= now:
                self._buckets[key] = Bucket(count=1, reset_at=now + window_seconds)
                return RateLimitResult(allowed=True)

            if bucket.count >= max_requests:
                retry_after = max(1, math.ceil(bucket.reset_at - now))
                return RateLimitResult(allowed=False, retry_after_seconds=retry_after)

            bucket.count += 1
            return RateLimitResult(allowed=True)

    def sweep(self) -> int:
        """Drop buckets whose window has elapsed. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, bucket in self._buckets.items() if bucket.reset_at <= now]
            for key in expired:
                del self._buckets[key]
            return len(expired)

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)


def client_address(headers, remote_addr: str | None) -> str:
    """
    Resolve the client address used as the rate-limit key.

    Order: first X-Forwarded-For entry, X-Real-IP, the socket peer address,
    then the shared "unknown" bucket.
    """
    forwarded_for = headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return remote_addr or UNKNOWN_CLIENT
