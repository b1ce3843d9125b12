"""
Sliding-window rate limiting, keyed by client identity.

Each client keeps the timestamps of its accepted requests from the last
``window_seconds``; a request is rejected when that log is already full.
Rejected requests are not recorded, so a client regains capacity as soon
as its oldest accepted request leaves the window.

State lives in process memory and is only touched from the event loop.
"""

import logging
import math
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from triddle.core.errors import error_response

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    retry_after: float = 0.0


class SlidingWindowRateLimiter:
    def __init__(self, max_requests: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        if max_requests < 1 or window_seconds <= 0:
            raise ValueError("max_requests must be >= 1 and window_seconds > 0")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()

    def hit(self, key: str) -> RateLimitResult:
        """Record a request for ``key`` if it fits in the window."""
        now = self.clock()
        self._maybe_sweep(now)

        hits = self._hits.setdefault(key, deque())
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()

        if len(hits) >= self.max_requests:
            retry_after = hits[0] + self.window_seconds - now
            return RateLimitResult(False, self.max_requests, 0, max(retry_after, 0.0))

        hits.append(now)
        return RateLimitResult(True, self.max_requests, self.max_requests - len(hits))

    def _maybe_sweep(self, now: float) -> None:
        # Drop clients with no hits left in the window, at most once per window
        if now - self._last_sweep < self.window_seconds:
            return
        cutoff = now - self.window_seconds
        for key in [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]:
            del self._hits[key]
        self._last_sweep = now


def client_identity(scope: Scope, trust_proxy: bool = False) -> str:
    """Client IP; the first X-Forwarded-For hop when running behind a trusted proxy."""
    if trust_proxy:
        for name, value in scope.get("headers", []):
            if name == b"x-forwarded-for":
                first_hop = value.decode("latin-1").split(",")[0].strip()
                if first_hop:
                    return first_hop
    client = scope.get("client")
    return client[0] if client else "unknown"


class RateLimitMiddleware:
    def __init__(self, app: ASGIApp, limiter: SlidingWindowRateLimiter, trust_proxy: bool = False):
        self.app = app
        self.limiter = limiter
        self.trust_proxy = trust_proxy

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        key = client_identity(scope, self.trust_proxy)
        result = self.limiter.hit(key)
        limit_headers = {
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
        }

        if not result.allowed:
            logger.warning(f"Rate limit exceeded for {key} on {scope['method']} {scope['path']}")
            limit_headers["Retry-After"] = str(math.ceil(result.retry_after))
            response = error_response(429, RATE_LIMIT_MESSAGE, headers=limit_headers)
            await response(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                headers = MutableHeaders(scope=message)
                for name, value in limit_headers.items():
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_headers)
