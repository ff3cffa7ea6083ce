"""
Natours Backend — Rate Limiting Guard
======================================

What:  Per-IP request ceiling for the API (100 requests per hour by default).
Why:   Protects the API from brute-force and scraping without authentication.
How:   An injected store keeps one window per client key:
       (hit count, reset time). The guard counts the hit and rejects the
       request once the count passes the ceiling.
Who:   Applied by the guard chain to paths under `rate_limit_path_prefix`.
When:  After the header/origin guards, before the body is read.

Algorithm: Fixed window per client
    1. First hit from a key opens a window ending `window_seconds` later
    2. Every hit increments the count, rejected hits included
    3. hits > limit → 429 with Retry-After until the window ends
    4. Once the window ends, the next hit opens a fresh one

Thread Safety:
    `hit()` holds a lock around read-increment-write, so concurrent requests
    from one client can never undercount. The store lives in one process;
    several workers each keep their own windows.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from starlette.requests import Request
from starlette.responses import Response

from natours.exceptions import RateLimitExceededError
from natours.middleware.pipeline import GuardContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowState:
    """Snapshot of one client's window right after a hit."""

    key: str
    hits: int
    reset_at: float

    def remaining(self, limit: int) -> int:
        return max(0, limit - self.hits)


class InMemoryRateLimitStore:
    """
    Process-wide hit counters keyed by client identity.

    Constructed once by the application factory and passed to the guard.
    Tests inject a fake `clock` to move time forward.
    """

    # Expired windows are dropped every CLEANUP_EVERY hits
    CLEANUP_EVERY = 1000

    def __init__(self, window_seconds: int, clock: Callable[[], float] = time.time):
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()
        self._hits_since_cleanup = 0

    def now(self) -> float:
        return self._clock()

    def hit(self, key: str) -> WindowState:
        """Atomically counts one request for `key` and returns the updated window."""
        with self._lock:
            now = self._clock()
            hits, reset_at = self._windows.get(key, (0, 0.0))
            if reset_at <= now:
                hits, reset_at = 0, now + self.window_seconds
            hits += 1
            self._windows[key] = (hits, reset_at)

            self._hits_since_cleanup += 1
            if self._hits_since_cleanup >= self.CLEANUP_EVERY:
                self._cleanup_expired(now)
            return WindowState(key=key, hits=hits, reset_at=reset_at)

    def reset(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)

    def __len__(self) -> int:
        return len(self._windows)

    def _cleanup_expired(self, now: float) -> None:
        """Removes keys whose window already ended. Caller holds the lock."""
        expired = [key for key, (_, reset_at) in self._windows.items() if reset_at <= now]
        for key in expired:
            del self._windows[key]
        self._hits_since_cleanup = 0
        if expired:
            logger.debug("Cleaned up %d expired rate limit windows", len(expired))


def client_identity(request: Request, trust_proxy: bool = False) -> str:
    """
    Returns the key a client is limited by.

    Behind a reverse proxy the socket peer is the proxy itself, so with
    `trust_proxy` the first X-Forwarded-For hop is used instead.
    """
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return getattr(request.client, "host", "unknown") if request.client else "unknown"


class RateLimitGuard:
    """
    Counts API requests per client and rejects the ones over the ceiling.

    Headers on every limited response:
        X-RateLimit-Limit:     Ceiling for the window
        X-RateLimit-Remaining: Requests left in the current window
        X-RateLimit-Reset:     Unix time at which the window ends
    """

    def __init__(
        self,
        store: InMemoryRateLimitStore,
        max_requests: int,
        message: str,
        path_prefix: str = "/api",
        trust_proxy: bool = False,
    ):
        self.store = store
        self.max_requests = max_requests
        self.message = message
        self.path_prefix = path_prefix.rstrip("/")
        self.trust_proxy = trust_proxy

    def applies_to(self, path: str) -> bool:
        if not self.path_prefix:
            return True
        return path == self.path_prefix or path.startswith(self.path_prefix + "/")

    async def __call__(self, ctx: GuardContext, request: Request) -> Optional[Response]:
        if not self.applies_to(ctx.path):
            return None

        key = client_identity(request, self.trust_proxy)
        state = self.store.hit(key)

        ctx.response_headers.update(
            {
                "X-RateLimit-Limit": str(self.max_requests),
                "X-RateLimit-Remaining": str(state.remaining(self.max_requests)),
                "X-RateLimit-Reset": str(math.ceil(state.reset_at)),
            }
        )

        if state.hits > self.max_requests:
            retry_after = max(1, math.ceil(state.reset_at - self.store.now()))
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                key,
                state.hits,
                self.store.window_seconds,
            )
            raise RateLimitExceededError(self.message, retry_after=retry_after)
        return None
