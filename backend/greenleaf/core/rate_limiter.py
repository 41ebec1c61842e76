"""
Rate limiting for the storefront API.

In-memory sliding windows. With multiple workers each process keeps its own
counters, so effective limits scale with the worker count.

Limiters:
- global middleware: RATE_LIMIT_REQUESTS per RATE_LIMIT_WINDOW_SECONDS
- strict: budtender chat (LLM calls are expensive)
- checkout: Stripe session creation
"""
import threading
import time
import logging
from collections import defaultdict
from typing import Dict, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from greenleaf.core.config import settings
from greenleaf.core.exceptions import BusinessError

logger = logging.getLogger(__name__)

EXEMPT_PATHS = {"/api/health", "/health", "/docs", "/redoc", "/openapi.json", "/api/webhooks/stripe"}


class RateLimiter:
    """In-memory rate limiter with sliding window."""

    def __init__(self, requests: int = 100, window: int = 60, name: str = "default"):
        """
        Args:
            requests: Maximum requests allowed in window
            window: Time window in seconds
            name: Label used in log lines
        """
        self.requests = requests
        self.window = window
        self.name = name
        # Dict[client_id, List[timestamp]]
        self.clients: Dict[str, list] = defaultdict(list)
        self.last_cleanup = time.time()
        self._lock = threading.Lock()

    def is_allowed(self, client_id: str) -> Tuple[bool, int]:
        """
        Check if client is allowed to make request.

        Returns:
            (allowed: bool, remaining: int)
        """
        now = time.time()
        with self._lock:
            # Cleanup old entries every 5 minutes
            if now - self.last_cleanup > 300:
                self._cleanup(now)
                self.last_cleanup = now

            cutoff = now - self.window
            timestamps = [ts for ts in self.clients[client_id] if ts > cutoff]
            self.clients[client_id] = timestamps

            if len(timestamps) < self.requests:
                timestamps.append(now)
                return True, self.requests - len(timestamps)
            return False, 0

    def reset(self):
        with self._lock:
            self.clients.clear()

    def _cleanup(self, now: float):
        """Remove expired entries to prevent memory bloat."""
        cutoff = now - self.window
        for client_id in list(self.clients.keys()):
            timestamps = [ts for ts in self.clients[client_id] if ts > cutoff]
            if timestamps:
                self.clients[client_id] = timestamps
            else:
                del self.clients[client_id]

        logger.info(f"Rate limiter '{self.name}' cleanup: {len(self.clients)} active clients")


rate_limiter = RateLimiter(
    requests=settings.RATE_LIMIT_REQUESTS,
    window=settings.RATE_LIMIT_WINDOW_SECONDS,
    name="global",
)
strict_rate_limiter = RateLimiter(requests=settings.STRICT_RATE_LIMIT_REQUESTS, window=60, name="strict")
checkout_rate_limiter = RateLimiter(requests=settings.CHECKOUT_RATE_LIMIT_REQUESTS, window=60, name="checkout")

ALL_LIMITERS = (rate_limiter, strict_rate_limiter, checkout_rate_limiter)


def client_identifier(request: Request) -> str:
    """Session token prefix for signed-in callers, IP address otherwise."""
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return f"user:{auth_header[7:20]}"
    client_ip = request.client.host if request.client else "unknown"
    return f"ip:{client_ip}"


def limit_with(limiter: RateLimiter):
    """Build a route dependency enforcing `limiter` for the calling client."""

    def dependency(request: Request):
        client_id = client_identifier(request)
        allowed, remaining = limiter.is_allowed(client_id)
        if not allowed:
            logger.warning(f"Rate limit '{limiter.name}' exceeded for {client_id} on {request.url.path}")
            raise BusinessError.rate_limit_exceeded(
                f"Too many requests. Try again in {limiter.window} seconds.",
                retry_after=limiter.window,
                limit=limiter.requests,
            )
        return remaining

    return dependency


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies the global limiter to every request."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client_id = client_identifier(request)
        allowed, remaining = rate_limiter.is_allowed(client_id)

        if not allowed:
            logger.warning(
                f"Rate limit exceeded for {client_id} on {request.method} {request.url.path}"
            )
            return JSONResponse(
                status_code=429,
                content={"detail": f"Rate limit exceeded. Try again in {rate_limiter.window} seconds."},
                headers={
                    "Retry-After": str(rate_limiter.window),
                    "X-RateLimit-Limit": str(rate_limiter.requests),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rate_limiter.requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Window"] = str(rate_limiter.window)

        return response
