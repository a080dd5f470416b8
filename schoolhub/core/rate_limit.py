"""
Per-client request budgets for the API.

Each client (by remote address) gets one sliding-window budget for reads
and one for writes. A request over budget is answered 429 in the usual
``{"status": false, "message": ...}`` envelope with Retry-After set.

State is held in process memory: with several workers each one enforces
its own budget.
"""

import logging
import math
import time
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from schoolhub.api.schemas.envelope import failure

logger = logging.getLogger(__name__)

READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

RATE_LIMIT_MESSAGE = "Too many requests"


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: float


class InMemoryRateLimiter:
    """Sliding-window counter keyed by (client, bucket)."""

    def __init__(
        self, clock: Callable[[], float] = time.monotonic, sweep_interval: float = 300.0
    ):
        self._clock = clock
        self._hits: defaultdict[tuple[str, str], deque[float]] = defaultdict(deque)
        self._sweep_interval = sweep_interval
        self._last_sweep = clock()

    def _sweep(self, now: float, window: float) -> None:
        """Forget clients with no hits inside the window."""
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= now - window]
        for key in idle:
            del self._hits[key]
        if idle:
            logger.debug(f"Dropped {len(idle)} idle rate limit entries")

    def hit(self, key: tuple[str, str], limit: int, window: float) -> RateLimitDecision:
        """
        Record one request for key unless the window is already full.

        Args:
            key: (client identifier, bucket name)
            limit: Requests allowed per window
            window: Window length in seconds

        Returns:
            RateLimitDecision; a refused request is not recorded
        """
        now = self._clock()
        self._sweep(now, window)
        hits = self._hits[key]
        while hits and hits[0] <= now - window:
            hits.popleft()

        if len(hits) >= limit:
            return RateLimitDecision(
                allowed=False, limit=limit, remaining=0, retry_after=hits[0] + window - now
            )

        hits.append(now)
        return RateLimitDecision(
            allowed=True, limit=limit, remaining=limit - len(hits), retry_after=0.0
        )

    def reset(self) -> None:
        self._hits.clear()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Enforce read and write budgets on every path under prefix."""

    def __init__(
        self,
        app,
        *,
        read_limit: int,
        write_limit: int,
        window_seconds: int,
        prefix: str = "/api/v1",
        exempt_paths: tuple[str, ...] = ("/api/v1/health", "/api/v1/readyz"),
        limiter: InMemoryRateLimiter | None = None,
    ):
        super().__init__(app)
        self.read_limit = read_limit
        self.write_limit = write_limit
        self.window_seconds = window_seconds
        self.prefix = prefix
        self.exempt_paths = exempt_paths
        self.limiter = limiter or InMemoryRateLimiter()

    @staticmethod
    def _client_id(request: Request) -> str:
        return request.client.host if request.client else "unknown"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if not path.startswith(self.prefix) or path in self.exempt_paths:
            return await call_next(request)

        if request.method in READ_METHODS:
            bucket, limit = "read", self.read_limit
        else:
            bucket, limit = "write", self.write_limit

        client = self._client_id(request)
        decision = self.limiter.hit((client, bucket), limit, self.window_seconds)

        if not decision.allowed:
            retry_after = max(1, math.ceil(decision.retry_after))
            logger.warning(
                f"Rate limit exceeded for {client} on {request.method} {path}",
                extra={"client": client, "bucket": bucket, "limit": limit},
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=failure(RATE_LIMIT_MESSAGE),
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response
