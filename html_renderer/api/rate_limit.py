"""
Rate Limiting
=============

In-process fixed-window rate limiter keyed by client address.

Each client may make ``rate_limit_max_requests`` requests per
``rate_limit_window_s`` seconds; further requests get a 429 until the window
rolls over. Counters live in process memory, so with several workers each
worker enforces its own limit.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse

from html_renderer.config.logging import get_logger

logger = get_logger(__name__)


@dataclass
class _Window:
    started_at: float
    count: int


class FixedWindowRateLimiter:
    """Counts requests per key in fixed time windows."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}

    def hit(self, key: str) -> Tuple[bool, int, float]:
        """
        Record one request for ``key``.

        Returns:
            (allowed, remaining, seconds until the window resets)
        """
        now = self._clock()
        self._evict_expired(now)

        window = self._windows.get(key)
        if window is None:
            window = self._windows[key] = _Window(started_at=now, count=0)

        window.count += 1
        reset_in = max(0.0, window.started_at + self.window_seconds - now)
        remaining = max(0, self.max_requests - window.count)
        return window.count <= self.max_requests, remaining, reset_in

    def _evict_expired(self, now: float) -> None:
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]


def client_key(request: Request) -> str:
    """Rate limit key for a request."""
    return request.client.host if request.client else "unknown"


def create_rate_limit_middleware(
    limiter: FixedWindowRateLimiter, exempt_paths: Optional[set] = None
):
    """Build an HTTP middleware enforcing ``limiter``."""
    exempt = exempt_paths or set()

    async def rate_limit_middleware(request: Request, call_next) -> Response:  # type: ignore
        if request.url.path in exempt:
            return await call_next(request)

        allowed, remaining, reset_in = limiter.hit(client_key(request))
        headers = {
            "RateLimit-Limit": str(limiter.max_requests),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(int(reset_in) + 1),
        }

        if not allowed:
            logger.warning("Rate limit exceeded", client=client_key(request), path=request.url.path)
            return PlainTextResponse(
                "Too many requests, please try again later.", status_code=429, headers=headers
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response

    return rate_limit_middleware
